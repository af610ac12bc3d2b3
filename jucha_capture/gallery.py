# -*- coding: utf-8 -*-
"""
촬영 이미지 저장소

상태 전이는 모두 이 클래스를 거쳐 적용되고, 변경이 생길 때마다
구독자(화면 표시 계층)에게 (이벤트, 이미지) 로 알립니다.
"""

import logging
from collections import OrderedDict

from .images import ImageState, begin_processing, mark_error, mark_unrecognized, resolve

logger = logging.getLogger(__name__)

EVENT_ADDED = "added"
EVENT_UPDATED = "updated"
EVENT_DISCARDED = "discarded"


class ImageGallery:

    def __init__(self):
        self._images = OrderedDict()
        self._subscribers = []

    def subscribe(self, callback):
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _notify(self, event, image):
        for callback in list(self._subscribers):
            try:
                callback(event, image)
            except Exception:
                logger.exception("구독자 처리 중 오류")

    def __len__(self):
        return len(self._images)

    def __contains__(self, image_id):
        return image_id in self._images

    def get(self, image_id):
        return self._images.get(image_id)

    def images(self):
        """최신 이미지부터"""
        return list(reversed(self._images.values()))

    def add(self, image):
        self._images[image.image_id] = image
        self._notify(EVENT_ADDED, image)
        return image

    def discard(self, image_id):
        image = self._images.pop(image_id, None)
        if image is not None:
            logger.info(f"이미지 삭제: {image_id}")
            self._notify(EVENT_DISCARDED, image)
        return image

    def _store(self, image):
        self._images[image.image_id] = image
        self._notify(EVENT_UPDATED, image)
        return image

    def begin_processing(self, image_id):
        image = self._images[image_id]
        return self._store(begin_processing(image))

    def complete(self, image_id, attempt, result):
        """인식 결과 반영. 이미지가 삭제되었거나 더 새로운 시도가 있으면 무시"""
        image = self._images.get(image_id)
        if image is None:
            logger.info(f"삭제된 이미지의 인식 결과 무시: {image_id}")
            return False
        if image.attempt != attempt or image.state is not ImageState.PROCESSING:
            logger.info(f"이전 시도의 인식 결과 무시: {image_id} (시도 {attempt})")
            return False

        if result.outcome is ImageState.RESOLVED:
            image = resolve(image, result.candidate)
        elif result.outcome is ImageState.UNRECOGNIZED:
            image = mark_unrecognized(image, result.error)
        else:
            image = mark_error(image, result.error)
        self._store(image)
        return True

    def first_resolved(self):
        for image in self.images():
            if image.state is ImageState.RESOLVED:
                return image
        return None

    def retryable(self):
        return [image for image in self.images() if image.retryable]

    def in_flight(self):
        return [image for image in self.images() if image.is_processing]
