"""Shared fakes for the capture and recognition tests.

- ``FakeProvider``: scripted media provider that records every call in order
- ``FakeRecognizer``: deterministic OCR engine keyed by image bytes
"""

import threading

import numpy as np
import pytest

from jucha_capture.devices import VideoInputDevice
from jucha_capture.gallery import ImageGallery
from jucha_capture.media import MediaSourceProvider, MediaStream, MediaTrack
from jucha_capture.ocr import TextRecognizer


class FakeTrack(MediaTrack):

    def __init__(self, log, name):
        self._log = log
        self.name = name
        self._live = True

    @property
    def live(self):
        return self._live

    def stop(self):
        if self._live:
            self._log.append(("stop", self.name))
            self._live = False

    def settings(self):
        return {"label": self.name} if self._live else {}


class FakeStream(MediaStream):

    def __init__(self, log, name, device_id=None, frame=None):
        super().__init__(stream_id=name, label=name, device_id=device_id)
        self.track = FakeTrack(log, name)
        self.frame = frame

    def get_tracks(self):
        return [self.track]

    def read_frame(self):
        if not self.track.live or self.frame is None:
            return None
        return self.frame.copy()

    def frame_size(self):
        if self.frame is None:
            return 0, 0
        height, width = self.frame.shape[:2]
        return width, height


class FakeProvider(MediaSourceProvider):
    """Each get_user_media call consumes the next scripted outcome.

    An exception instance is raised; anything else yields a stream.
    """

    def __init__(self, devices=(), outcomes=(), frame=None, unlocked_devices=None):
        self.devices = list(devices)
        self.outcomes = list(outcomes)
        self.frame = frame
        self.unlocked_devices = unlocked_devices
        self.requests = []
        self.streams = []
        self.log = []

    def enumerate_devices(self):
        self.log.append(("enumerate",))
        return list(self.devices)

    def get_user_media(self, constraints):
        self.requests.append(constraints)
        name = f"stream{len(self.requests)}"
        self.log.append(("acquire", name))

        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome

        if self.unlocked_devices is not None:
            self.devices = list(self.unlocked_devices)
            self.unlocked_devices = None

        stream = FakeStream(self.log, name, constraints.device_id or "0", self.frame)
        self.streams.append(stream)
        return stream


class FakeRecognizer(TextRecognizer):
    """Returns ``texts[image_bytes]`` (raising it if it is an exception).

    A ``threading.Event`` in ``gates`` holds the call until it is set.
    """

    def __init__(self, texts=None, default=""):
        self.texts = dict(texts or {})
        self.default = default
        self.gates = {}
        self.calls = []

    def image_to_text(self, image_bytes, languages):
        self.calls.append((image_bytes, languages))
        gate = self.gates.get(image_bytes)
        if gate is not None:
            gate.wait(5)
        result = self.texts.get(image_bytes, self.default)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def frame():
    rng = np.random.default_rng(0)
    return rng.integers(0, 255, size=(480, 640, 3), dtype=np.uint8)


@pytest.fixture
def iphone_devices():
    return [
        VideoInputDevice("triple-id", "iPhone 背面トリプルカメラ", "g1"),
        VideoInputDevice("front-id", "iPhone 前面カメラ", "g2"),
    ]


@pytest.fixture
def gallery():
    return ImageGallery()


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def gate():
    return threading.Event()
