# -*- coding: utf-8 -*-
"""
비디오 입력 장치와 카메라 추천 순위
"""

from dataclasses import dataclass

VIDEO_INPUT = "videoinput"

# 라벨 키워드별 추천도 (높을수록 우선)
TRIPLE_KEYWORDS = ("トリプル", "triple", "트리플")
DUAL_WIDE_KEYWORDS = ("デュアル広角", "dual wide", "듀얼")
REAR_KEYWORDS = ("背面", "メイン", "rear", "back", "main", "environment", "후면")
ULTRA_WIDE_KEYWORDS = ("超広角", "ultra wide", "ultrawide", "초광각", "wide")
TELEPHOTO_KEYWORDS = ("望遠", "telephoto", "망원")
FRONT_KEYWORDS = ("前面", "front", "user", "facetime", "전면")

PRIORITY_TRIPLE = 5
PRIORITY_DUAL_WIDE = 4
PRIORITY_REAR = 3
PRIORITY_AMBIGUOUS = 2
PRIORITY_ULTRA_WIDE = 1
PRIORITY_TELEPHOTO = 0.5
PRIORITY_FRONT = 0

RECOMMENDED_PRIORITY = PRIORITY_REAR


@dataclass(frozen=True)
class VideoInputDevice:
    device_id: str
    label: str = ""
    group_id: str = ""
    kind: str = VIDEO_INPUT

    @property
    def display_label(self):
        if self.label:
            return self.label
        return f"카메라 {self.device_id[:8]}"


def _contains(label, keywords):
    return any(keyword in label for keyword in keywords)


def camera_priority(label):
    """라벨로 카메라 추천도 계산 (후면 카메라 우선)"""
    label = (label or "").lower()

    if _contains(label, TRIPLE_KEYWORDS):
        return PRIORITY_TRIPLE
    if _contains(label, DUAL_WIDE_KEYWORDS):
        return PRIORITY_DUAL_WIDE
    if _contains(label, FRONT_KEYWORDS):
        return PRIORITY_FRONT
    if _contains(label, TELEPHOTO_KEYWORDS):
        return PRIORITY_TELEPHOTO
    if _contains(label, ULTRA_WIDE_KEYWORDS):
        return PRIORITY_ULTRA_WIDE
    if _contains(label, REAR_KEYWORDS):
        return PRIORITY_REAR
    return PRIORITY_AMBIGUOUS


def is_front_facing(device):
    return camera_priority(device.label) == PRIORITY_FRONT


def rank_devices(devices):
    """추천순 정렬. 동점이면 열거 순서 유지"""
    return sorted(devices, key=lambda d: camera_priority(d.label), reverse=True)


def default_device(devices):
    """기본 선택 카메라 (추천 1순위)"""
    ranked = rank_devices(devices)
    return ranked[0] if ranked else None


def video_inputs(devices):
    return [d for d in devices if d.kind == VIDEO_INPUT]
