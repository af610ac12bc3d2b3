import pytest

from jucha_capture.devices import (
    PRIORITY_AMBIGUOUS,
    PRIORITY_DUAL_WIDE,
    PRIORITY_FRONT,
    PRIORITY_REAR,
    PRIORITY_TELEPHOTO,
    PRIORITY_TRIPLE,
    PRIORITY_ULTRA_WIDE,
    VideoInputDevice,
    camera_priority,
    default_device,
    is_front_facing,
    rank_devices,
    video_inputs,
)


@pytest.mark.parametrize("label, priority", [
    ("iPhone 背面トリプルカメラ", PRIORITY_TRIPLE),
    ("Back Triple Camera", PRIORITY_TRIPLE),
    ("iPhone 背面デュアル広角カメラ", PRIORITY_DUAL_WIDE),
    ("iPhone 背面カメラ", PRIORITY_REAR),
    ("Back Camera", PRIORITY_REAR),
    ("iPhone 背面超広角カメラ", PRIORITY_ULTRA_WIDE),
    ("iPhone 背面望遠カメラ", PRIORITY_TELEPHOTO),
    ("Back Telephoto Camera", PRIORITY_TELEPHOTO),
    ("iPhone 前面カメラ", PRIORITY_FRONT),
    ("FaceTime HD Camera", PRIORITY_FRONT),
    ("USB2.0 HD UVC WebCam", PRIORITY_AMBIGUOUS),
    ("", PRIORITY_AMBIGUOUS),
])
def test_camera_priority(label, priority):
    assert camera_priority(label) == priority


def test_triple_camera_ranked_first_and_default(iphone_devices):
    ranked = rank_devices(iphone_devices)
    assert [d.label for d in ranked] == ["iPhone 背面トリプルカメラ", "iPhone 前面カメラ"]
    assert default_device(iphone_devices).device_id == "triple-id"


def test_ranking_does_not_depend_on_enumeration_order(iphone_devices):
    assert default_device(list(reversed(iphone_devices))).device_id == "triple-id"


def test_ties_keep_enumeration_order():
    devices = [VideoInputDevice("a", "Cam A"), VideoInputDevice("b", "Cam B"),
               VideoInputDevice("c", "Back Camera")]
    assert [d.device_id for d in rank_devices(devices)] == ["c", "a", "b"]


def test_default_device_of_empty_list():
    assert default_device([]) is None


def test_display_label_falls_back_to_id_prefix():
    device = VideoInputDevice("0123456789abcdef")
    assert device.display_label == "카메라 01234567"
    assert VideoInputDevice("x", "Back Camera").display_label == "Back Camera"


def test_front_facing_detection(iphone_devices):
    assert [is_front_facing(d) for d in iphone_devices] == [False, True]


def test_video_inputs_filters_other_kinds():
    devices = [VideoInputDevice("a"), VideoInputDevice("mic", kind="audioinput")]
    assert [d.device_id for d in video_inputs(devices)] == ["a"]
