# -*- coding: utf-8 -*-
"""
OpenCV 기반 미디어 소스 제공자

리눅스에서는 /sys/class/video4linux 에서 장치 이름과 하드웨어 그룹을 읽고,
그 외 환경에서는 카메라 인덱스를 하나씩 열어 보는 방식으로 장치를 찾습니다.
"""

import logging
import os
import re
import uuid

import cv2

from . import config
from .devices import VideoInputDevice, is_front_facing, rank_devices
from .media import (
    DeviceBusyError,
    DeviceNotFoundError,
    FacingMode,
    MediaSourceProvider,
    MediaStream,
    MediaTrack,
    NotSupportedError,
    OverconstrainedError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

SYSFS_VIDEO_ROOT = "/sys/class/video4linux"
DEV_ROOT = "/dev"
_VIDEO_NODE = re.compile(r"^video(\d+)$")


class OpenCVVideoTrack(MediaTrack):

    def __init__(self, capture, label=""):
        self._capture = capture
        self.label = label
        self._live = True

    @property
    def live(self):
        return self._live

    def stop(self):
        if self._live:
            self._capture.release()
            self._live = False

    def settings(self):
        if not self._live:
            return {}
        return {
            'width': int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            'height': int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            'frameRate': self._capture.get(cv2.CAP_PROP_FPS),
        }


class OpenCVStream(MediaStream):

    def __init__(self, capture, index, label="", first_frame=None):
        super().__init__(
            stream_id=uuid.uuid4().hex,
            label=label,
            device_id=str(index),
        )
        self._capture = capture
        self._track = OpenCVVideoTrack(capture, label)
        self._size = (0, 0)
        if first_frame is not None:
            self._remember(first_frame)

    def _remember(self, frame):
        height, width = frame.shape[:2]
        self._size = (width, height)

    def get_tracks(self):
        return [self._track]

    def read_frame(self):
        if not self._track.live:
            return None
        ret, frame = self._capture.read()
        if not ret or frame is None:
            return None
        self._remember(frame)
        return frame

    def frame_size(self):
        if not self._track.live:
            return 0, 0
        if self._size != (0, 0):
            return self._size
        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        return width, height


class OpenCVMediaProvider(MediaSourceProvider):
    """cv2.VideoCapture 로 카메라를 여는 제공자"""

    def __init__(self, probe_count=None, backend=None,
                 sysfs_root=SYSFS_VIDEO_ROOT, dev_root=DEV_ROOT):
        self.probe_count = probe_count or config.CAMERA_PROBE_COUNT
        self.backend = backend if backend is not None else cv2.CAP_ANY
        self.sysfs_root = sysfs_root
        self.dev_root = dev_root

    # ------------------------------
    # 장치 목록
    # ------------------------------

    def enumerate_devices(self):
        if os.path.isdir(self.sysfs_root):
            return self._sysfs_devices()
        return self._probe_devices()

    def _read_sysfs(self, *parts):
        path = os.path.join(self.sysfs_root, *parts)
        try:
            with open(path, encoding="utf-8") as f:
                return f.read().strip()
        except OSError:
            return ""

    def _sysfs_devices(self):
        nodes = []
        for entry in os.listdir(self.sysfs_root):
            match = _VIDEO_NODE.match(entry)
            if match:
                nodes.append((int(match.group(1)), entry))

        devices = []
        for index, entry in sorted(nodes):
            # 메타데이터 노드(index != 0)는 캡처 장치가 아님
            if self._read_sysfs(entry, "index") not in ("", "0"):
                continue
            group = os.path.realpath(os.path.join(self.sysfs_root, entry, "device"))
            devices.append(VideoInputDevice(
                device_id=str(index),
                label=self._read_sysfs(entry, "name"),
                group_id=group,
            ))
        return devices

    def _probe_devices(self):
        devices = []
        for index in range(self.probe_count):
            cap = cv2.VideoCapture(index, self.backend)
            opened = cap.isOpened()
            cap.release()
            if opened:
                devices.append(VideoInputDevice(device_id=str(index), group_id=str(index)))
        return devices

    # ------------------------------
    # 스트림 획득
    # ------------------------------

    def _select_device(self, devices, constraints):
        if constraints.device_id is not None:
            for device in devices:
                if device.device_id == constraints.device_id:
                    return device
            raise DeviceNotFoundError(f"카메라 {constraints.device_id} 없음")

        if constraints.facing_mode is not None:
            ranked = rank_devices(devices)
            if constraints.facing_mode is FacingMode.USER:
                matches = [d for d in ranked if is_front_facing(d)]
            else:
                matches = [d for d in ranked if not is_front_facing(d)]
            # facing 은 ideal 조건이므로 맞는 카메라가 없으면 아무 카메라나 사용
            return matches[0] if matches else ranked[0]

        return devices[0]

    def _check_permission(self, index):
        node = os.path.join(self.dev_root, f"video{index}")
        if os.path.exists(node) and not os.access(node, os.R_OK | os.W_OK):
            raise PermissionDeniedError(f"{node} 접근 권한 없음")

    def _apply_resolution(self, cap, constraints):
        width = constraints.ideal_width
        height = constraints.ideal_height
        if width and constraints.max_width:
            width = min(width, constraints.max_width)
        if height and constraints.max_height:
            height = min(height, constraints.max_height)
        if width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        actual_width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        checks = (
            ("width", constraints.min_width, actual_width, lambda limit, v: v < limit),
            ("height", constraints.min_height, actual_height, lambda limit, v: v < limit),
            ("width", constraints.max_width, actual_width, lambda limit, v: v > limit),
            ("height", constraints.max_height, actual_height, lambda limit, v: v > limit),
        )
        for name, limit, actual, violated in checks:
            if limit and actual and violated(limit, actual):
                raise OverconstrainedError(
                    f"{name}={actual} 이(가) 요청 범위를 벗어남 ({limit})",
                    constraint=name,
                )

    def get_user_media(self, constraints):
        devices = self.enumerate_devices()
        if not devices:
            raise DeviceNotFoundError("사용 가능한 카메라가 없습니다")

        device = self._select_device(devices, constraints)
        try:
            index = int(device.device_id)
        except ValueError:
            raise DeviceNotFoundError(f"잘못된 카메라 ID: {device.device_id}")

        self._check_permission(index)

        try:
            cap = cv2.VideoCapture(index, self.backend)
        except cv2.error as e:
            raise NotSupportedError(str(e))

        if not cap.isOpened():
            cap.release()
            raise DeviceBusyError(f"카메라 {index} 를 열 수 없습니다")

        cap.set(cv2.CAP_PROP_BUFFERSIZE, config.CAMERA_BUFFER_SIZE)

        try:
            self._apply_resolution(cap, constraints)
        except OverconstrainedError:
            cap.release()
            raise

        ret, frame = cap.read()
        if not ret or frame is None:
            cap.release()
            raise DeviceBusyError(f"카메라 {index} 에서 프레임을 읽을 수 없습니다")

        logger.debug(f"카메라 {index} 열림: {device.display_label}")
        return OpenCVStream(cap, index, label=device.label, first_frame=frame)
