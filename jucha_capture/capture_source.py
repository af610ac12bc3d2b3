# -*- coding: utf-8 -*-
"""
카메라 소스 관리

장치 목록 조회, 추천 순위 정렬, 단계적 조건 완화를 통한 스트림 획득,
세션 해제를 담당합니다. 미리보기 표면(surface)에는 한 번에 하나의
세션만 바인딩되며, 새 세션을 획득하기 전에 기존 세션의 트랙을 모두
정지합니다.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Type

from . import config
from .devices import default_device, rank_devices, video_inputs
from .media import (
    DeviceBusyError,
    DeviceNotFoundError,
    FacingMode,
    MediaAccessError,
    NotSupportedError,
    OverconstrainedError,
    PermissionDeniedError,
    VideoConstraints,
)

logger = logging.getLogger(__name__)


# ================================
# 실패 분류
# ================================

class FailureReason(str, Enum):
    PERMISSION_DENIED = "permission-denied"
    DEVICE_NOT_FOUND = "device-not-found"
    DEVICE_UNSUPPORTED = "device-unsupported"
    DEVICE_BUSY = "device-busy"
    CONSTRAINTS_UNSATISFIABLE = "constraints-unsatisfiable"
    UNKNOWN = "unknown"


# 사용자 메시지와 조치 방법
FAILURE_MESSAGES = {
    FailureReason.PERMISSION_DENIED: (
        "카메라 접근이 거부되었습니다.",
        "시스템 설정에서 카메라 접근을 허용한 뒤 다시 시도하세요.",
    ),
    FailureReason.DEVICE_NOT_FOUND: (
        "카메라를 찾을 수 없습니다.",
        "카메라 연결을 확인하거나 파일에서 이미지를 선택하세요.",
    ),
    FailureReason.DEVICE_UNSUPPORTED: (
        "이 환경에서는 카메라를 사용할 수 없습니다.",
        "파일에서 이미지를 선택하세요.",
    ),
    FailureReason.DEVICE_BUSY: (
        "카메라가 다른 프로그램에서 사용 중입니다.",
        "카메라를 사용 중인 프로그램을 종료한 뒤 다시 시도하세요.",
    ),
    FailureReason.CONSTRAINTS_UNSATISFIABLE: (
        "카메라 설정에 문제가 있습니다.",
        "다른 카메라를 선택하거나 파일에서 이미지를 선택하세요.",
    ),
    FailureReason.UNKNOWN: (
        "카메라에 접근할 수 없습니다.",
        "카메라를 다시 시작하거나 파일에서 이미지를 선택하세요.",
    ),
}

_ERROR_REASONS = (
    (PermissionDeniedError, FailureReason.PERMISSION_DENIED),
    (DeviceNotFoundError, FailureReason.DEVICE_NOT_FOUND),
    (NotSupportedError, FailureReason.DEVICE_UNSUPPORTED),
    (DeviceBusyError, FailureReason.DEVICE_BUSY),
    (OverconstrainedError, FailureReason.CONSTRAINTS_UNSATISFIABLE),
)


def classify_error(error):
    """획득 오류를 실패 분류로 변환"""
    for error_type, reason in _ERROR_REASONS:
        if isinstance(error, error_type):
            return reason
    return FailureReason.UNKNOWN


@dataclass
class AcquisitionFailure:
    reason: FailureReason
    attempts: List[Tuple[str, FailureReason]] = field(default_factory=list)
    detail: str = ""

    @property
    def message(self):
        return FAILURE_MESSAGES[self.reason][0]

    @property
    def action(self):
        return FAILURE_MESSAGES[self.reason][1]


# ================================
# 조건 완화 단계
# ================================

@dataclass(frozen=True)
class ConstraintStep:
    """획득 시도 한 단계. retry_on 에 해당하는 실패일 때만 다음 단계로 진행"""
    name: str
    constraints: VideoConstraints
    retry_on: Tuple[Type[MediaAccessError], ...] = ()


# 모든 카메라에서 똑같이 실패하므로 다음 단계를 시도할 의미가 없는 오류
_HOPELESS = (PermissionDeniedError, NotSupportedError)


def device_chain(device_id):
    """특정 카메라 획득 단계 (고해상도 → 최소 조건)"""
    return (
        ConstraintStep(
            name="exact-device-high-resolution",
            constraints=VideoConstraints(
                device_id=device_id,
                ideal_width=config.DEVICE_IDEAL_WIDTH,
                ideal_height=config.DEVICE_IDEAL_HEIGHT,
                max_width=config.DEVICE_MAX_WIDTH,
                max_height=config.DEVICE_MAX_HEIGHT,
            ),
            retry_on=(OverconstrainedError,),
        ),
        ConstraintStep(
            name="exact-device-minimal",
            constraints=VideoConstraints(device_id=device_id),
        ),
    )


def facing_chain(facing):
    """방향 선호 획득 단계 (선호 방향 → 반대 방향 → 아무 카메라)"""
    facing = FacingMode(facing)

    def with_resolution(mode):
        return VideoConstraints(
            facing_mode=mode,
            ideal_width=config.FACING_IDEAL_WIDTH,
            ideal_height=config.FACING_IDEAL_HEIGHT,
            min_width=config.FACING_MIN_WIDTH,
            min_height=config.FACING_MIN_HEIGHT,
        )

    return (
        ConstraintStep(
            name=f"facing-{facing.value}",
            constraints=with_resolution(facing),
            retry_on=(MediaAccessError,),
        ),
        ConstraintStep(
            name=f"facing-{facing.opposite().value}",
            constraints=with_resolution(facing.opposite()),
            retry_on=(MediaAccessError,),
        ),
        ConstraintStep(
            name="any-camera",
            constraints=VideoConstraints(),
        ),
    )


def build_chain(target):
    if isinstance(target, FacingMode) or target in (m.value for m in FacingMode):
        return facing_chain(target)
    return device_chain(str(target))


def _should_continue(step, error):
    if isinstance(error, _HOPELESS):
        return False
    return isinstance(error, step.retry_on)


# ================================
# 미리보기 표면 / 세션
# ================================

class CaptureSurface:
    """스트림이 바인딩되는 렌더링 표면 (미리보기 창)"""

    def __init__(self, name=None):
        self.name = name or config.WINDOW_NAME
        self.stream = None

    @property
    def bound(self):
        return self.stream is not None

    def bind(self, stream):
        self.stream = stream

    def unbind(self):
        self.stream = None

    def frame_size(self):
        if self.stream is None:
            return 0, 0
        return self.stream.frame_size()

    def read_frame(self):
        if self.stream is None:
            return None
        return self.stream.read_frame()


class CaptureSession:
    """획득한 스트림 하나를 감싸는 세션"""

    def __init__(self, stream, device_id=None, step=None):
        self.stream = stream
        self.device_id = device_id
        self.step = step
        self.started_at = time.time()
        self.active = True

    def stop(self):
        """모든 트랙 정지 (여러 번 호출해도 안전)"""
        for track in self.stream.get_tracks():
            if track.live:
                logger.debug(f"트랙 정지: {track.kind}")
                track.stop()
        self.active = False

    @property
    def duration(self):
        """획득 후 경과 시간 (초)"""
        return time.time() - self.started_at

    def track_settings(self):
        return [track.settings() for track in self.stream.get_tracks() if track.live]

    def __repr__(self):
        return f"CaptureSession(device={self.device_id!r}, step={self.step!r}, active={self.active})"


# ================================
# 카메라 소스 관리자
# ================================

class CaptureSourceManager:
    """카메라 목록 조회와 스트림 획득/해제 담당"""

    def __init__(self, provider, surface=None):
        self.provider = provider
        self.surface = surface if surface is not None else CaptureSurface()
        self.session = None

    def list_devices(self):
        """추천순으로 정렬된 비디오 입력 장치 목록"""
        devices = video_inputs(self.provider.enumerate_devices())

        if devices and any(not d.label for d in devices):
            # 권한이 없어 라벨이 비어 있음 → 임시 획득으로 라벨 잠금 해제
            logger.info("카메라 라벨 확인을 위해 임시 권한 요청")
            try:
                stream = self.provider.get_user_media(VideoConstraints(
                    ideal_width=config.UNLOCK_WIDTH,
                    ideal_height=config.UNLOCK_HEIGHT,
                ))
            except MediaAccessError as e:
                logger.warning(f"라벨 잠금 해제 실패 ({e.platform_name}): {e}")
            else:
                stream.stop()
                devices = video_inputs(self.provider.enumerate_devices())

        ranked = rank_devices(devices)
        logger.info(f"{len(ranked)}개의 카메라 장치 감지")
        for device in ranked:
            logger.debug(f"  - {device.display_label} ({device.device_id})")
        return ranked

    def default_device(self, devices=None):
        if devices is None:
            devices = self.list_devices()
        return default_device(devices)

    def acquire(self, target=None):
        """카메라 스트림 획득. 성공 시 CaptureSession, 실패 시 AcquisitionFailure"""
        if target is None:
            target = FacingMode(config.DEFAULT_FACING_MODE)

        # 새 획득 전에 기존 세션 해제
        self.release()

        chain = build_chain(target)
        failure = AcquisitionFailure(reason=FailureReason.UNKNOWN)

        for step in chain:
            logger.info(f"카메라 획득 시도 [{step.name}]: {step.constraints.describe()}")
            try:
                stream = self.provider.get_user_media(step.constraints)
            except MediaAccessError as e:
                reason = classify_error(e)
                failure.reason = reason
                failure.detail = f"{e.platform_name}: {e}"
                failure.attempts.append((step.name, reason))
                logger.warning(f"카메라 획득 실패 [{step.name}]: {failure.detail}")
                if _should_continue(step, e):
                    continue
                break
            except Exception as e:
                failure.reason = FailureReason.UNKNOWN
                failure.detail = repr(e)
                failure.attempts.append((step.name, FailureReason.UNKNOWN))
                logger.exception(f"카메라 획득 중 예상치 못한 오류 [{step.name}]")
                break

            device_id = step.constraints.device_id or stream.device_id
            session = CaptureSession(stream, device_id=device_id, step=step.name)
            self.surface.bind(stream)
            self.session = session
            width, height = stream.frame_size()
            logger.info(f"카메라 획득 성공 [{step.name}]: {stream.label or device_id} ({width}x{height})")
            logger.debug(f"트랙 설정: {session.track_settings()}")
            return session

        logger.error(f"카메라 획득 최종 실패: {failure.reason.value} (시도 {len(failure.attempts)}회)")
        return failure

    def release(self, session=None):
        """세션 해제. 여러 번 호출해도 안전"""
        session = session or self.session
        if session is None:
            return

        session.stop()
        if self.surface.stream is session.stream:
            self.surface.unbind()
        if self.session is session:
            self.session = None
        logger.info(f"카메라 정지 (사용 시간 {session.duration:.1f}초)")

    def switch_device(self, devices):
        """추천 순서상 다음 카메라로 전환"""
        if not devices:
            return AcquisitionFailure(reason=FailureReason.DEVICE_NOT_FOUND)

        current = self.session.device_id if self.session else None
        ids = [d.device_id for d in devices]
        if current in ids:
            next_device = devices[(ids.index(current) + 1) % len(devices)]
        else:
            next_device = devices[0]

        logger.info(f"카메라 전환: {next_device.display_label}")
        return self.acquire(next_device.device_id)
