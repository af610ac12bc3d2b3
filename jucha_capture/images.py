# -*- coding: utf-8 -*-
"""
촬영 이미지와 상태 전이

CapturedImage 는 불변 값이며, 상태 전이 함수는 항상 새 값을 반환합니다.

    capturing → processing → resolved | unrecognized | error
    unrecognized / error → processing (재시도)
"""

import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class ImageState(str, Enum):
    CAPTURING = "capturing"
    PROCESSING = "processing"
    RESOLVED = "resolved"
    UNRECOGNIZED = "unrecognized"
    ERROR = "error"


class ImageSource(str, Enum):
    CAMERA = "camera"
    FILE = "file"


RETRYABLE_STATES = (ImageState.UNRECOGNIZED, ImageState.ERROR)

_ALLOWED = {
    ImageState.CAPTURING: (ImageState.PROCESSING,),
    ImageState.PROCESSING: (ImageState.RESOLVED, ImageState.UNRECOGNIZED, ImageState.ERROR),
    ImageState.UNRECOGNIZED: (ImageState.PROCESSING,),
    ImageState.ERROR: (ImageState.PROCESSING,),
    ImageState.RESOLVED: (),
}


class InvalidTransition(Exception):
    def __init__(self, image_id, current, target):
        super().__init__(f"이미지 {image_id}: {current.value} → {target.value} 전이 불가")
        self.image_id = image_id
        self.current = current
        self.target = target


@dataclass(frozen=True)
class CapturedImage:
    image_id: str
    data: bytes = field(repr=False)
    state: ImageState = ImageState.CAPTURING
    plate: Optional[str] = None
    error: Optional[str] = None
    attempt: int = 0
    source: ImageSource = ImageSource.CAMERA
    created_at: float = field(default_factory=time.time)

    @property
    def is_processing(self):
        return self.state is ImageState.PROCESSING

    @property
    def retryable(self):
        return self.state in RETRYABLE_STATES


class ImageIdFactory:
    """밀리초 타임스탬프 기반 ID. 같은 밀리초에 여러 장이 생겨도 중복되지 않음"""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            now = int(self._clock() * 1000)
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return str(now)


new_image_id = ImageIdFactory()


def _transition(image, target, **changes):
    if target not in _ALLOWED[image.state]:
        raise InvalidTransition(image.image_id, image.state, target)
    return replace(image, state=target, **changes)


def new_image(data, source=ImageSource.CAMERA, image_id=None):
    return CapturedImage(image_id=image_id or new_image_id(), data=data, source=source)


def begin_processing(image):
    """처리 시작 (최초 인식 또는 재시도). attempt 증가"""
    return _transition(image, ImageState.PROCESSING, plate=None, error=None,
                       attempt=image.attempt + 1)


def resolve(image, plate):
    return _transition(image, ImageState.RESOLVED, plate=plate, error=None)


def mark_unrecognized(image, message):
    return _transition(image, ImageState.UNRECOGNIZED, plate=None, error=message)


def mark_error(image, message):
    return _transition(image, ImageState.ERROR, plate=None, error=message)
