# -*- coding: utf-8 -*-
"""
카메라/미디어 경계

카메라 목록 조회와 스트림 획득을 담당하는 "미디어 소스 제공자" 인터페이스.
실제 구현은 opencv_media.OpenCVMediaProvider 이며, 테스트에서는
스크립트된 가짜 제공자로 대체합니다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np


class FacingMode(str, Enum):
    """카메라 방향 선호"""
    ENVIRONMENT = "environment"     # 후면 (바깥쪽)
    USER = "user"                   # 전면 (사용자 쪽)

    def opposite(self):
        if self is FacingMode.ENVIRONMENT:
            return FacingMode.USER
        return FacingMode.ENVIRONMENT


# ================================
# 미디어 오류
# ================================

class MediaAccessError(Exception):
    """카메라 접근 실패의 기본 클래스 (플랫폼 오류 이름을 따름)"""
    platform_name = "UnknownError"

    def __init__(self, message="", constraint=None):
        super().__init__(message or self.platform_name)
        self.constraint = constraint


class PermissionDeniedError(MediaAccessError):
    platform_name = "NotAllowedError"


class DeviceNotFoundError(MediaAccessError):
    platform_name = "NotFoundError"


class NotSupportedError(MediaAccessError):
    platform_name = "NotSupportedError"


class DeviceBusyError(MediaAccessError):
    platform_name = "NotReadableError"


class OverconstrainedError(MediaAccessError):
    platform_name = "OverconstrainedError"


# ================================
# 요청 조건
# ================================

@dataclass(frozen=True)
class VideoConstraints:
    """스트림 요청 조건. 아무 필드도 없으면 "아무 카메라나" 를 의미"""
    device_id: Optional[str] = None         # exact 장치 지정
    facing_mode: Optional[FacingMode] = None  # ideal 방향
    ideal_width: Optional[int] = None
    ideal_height: Optional[int] = None
    min_width: Optional[int] = None
    min_height: Optional[int] = None
    max_width: Optional[int] = None
    max_height: Optional[int] = None

    @property
    def has_resolution(self):
        return any(v is not None for v in (
            self.ideal_width, self.ideal_height,
            self.min_width, self.min_height,
            self.max_width, self.max_height,
        ))

    @property
    def is_unconstrained(self):
        return self.device_id is None and self.facing_mode is None and not self.has_resolution

    def describe(self):
        parts = []
        if self.device_id is not None:
            parts.append(f"device={self.device_id}")
        if self.facing_mode is not None:
            parts.append(f"facing={self.facing_mode.value}")
        if self.ideal_width or self.ideal_height:
            parts.append(f"ideal={self.ideal_width}x{self.ideal_height}")
        if self.min_width or self.min_height:
            parts.append(f"min={self.min_width}x{self.min_height}")
        if self.max_width or self.max_height:
            parts.append(f"max={self.max_width}x{self.max_height}")
        return ", ".join(parts) or "video=true"


# ================================
# 스트림 / 트랙
# ================================

class MediaTrack(ABC):
    """하드웨어 트랙 하나"""
    kind = "video"

    @property
    @abstractmethod
    def live(self) -> bool:
        """트랙이 아직 하드웨어를 점유 중인지"""

    @abstractmethod
    def stop(self):
        """하드웨어 해제. 여러 번 호출해도 안전해야 함"""

    def settings(self) -> dict:
        return {}


class MediaStream(ABC):
    """획득한 라이브 스트림"""

    def __init__(self, stream_id, label="", device_id=None):
        self.stream_id = stream_id
        self.label = label
        self.device_id = device_id

    @abstractmethod
    def get_tracks(self) -> List[MediaTrack]:
        """스트림의 모든 트랙"""

    @abstractmethod
    def read_frame(self) -> Optional[np.ndarray]:
        """현재 프레임 (BGR). 읽을 수 없으면 None"""

    @abstractmethod
    def frame_size(self) -> Tuple[int, int]:
        """(너비, 높이). 준비되지 않았으면 (0, 0)"""

    def stop(self):
        for track in self.get_tracks():
            track.stop()

    @property
    def active(self):
        return any(track.live for track in self.get_tracks())


class MediaSourceProvider(ABC):
    """플랫폼 카메라 기능 (장치 목록 + 스트림 획득)"""

    @abstractmethod
    def enumerate_devices(self) -> list:
        """VideoInputDevice 목록 (열거 순서 그대로)"""

    @abstractmethod
    def get_user_media(self, constraints: VideoConstraints) -> MediaStream:
        """조건에 맞는 스트림 획득. 실패 시 MediaAccessError 발생"""
