import numpy as np
import pytest

import jucha_capture.ocr as ocr
from jucha_capture.ocr import TesseractRecognizer, TextRecognizer
from jucha_capture.preprocess import encode_jpeg


def test_base_recognizer_is_abstract():
    with pytest.raises(NotImplementedError):
        TextRecognizer().image_to_text(b"", "eng")


def test_tesseract_call(monkeypatch):
    calls = []

    def image_to_string(image, lang, config):
        calls.append((image, lang, config))
        return "品川 500 あ 1234\n"

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", image_to_string)
    frame = np.zeros((40, 80, 3), dtype=np.uint8)
    frame[..., 0] = 255  # BGR 파랑

    text = TesseractRecognizer(tesseract_config="--psm 7").image_to_text(encode_jpeg(frame, 100), "jpn+eng")

    assert text == "品川 500 あ 1234\n"
    (image, lang, config), = calls
    assert (lang, config) == ("jpn+eng", "--psm 7")
    # RGB 순서로 전달
    assert image[..., 2].mean() > 200
    assert image[..., 0].mean() < 50


def test_undecodable_input_raises(monkeypatch):
    monkeypatch.setattr(ocr.pytesseract, "image_to_string", lambda *a, **k: "")
    with pytest.raises(ValueError):
        TesseractRecognizer().image_to_text(b"garbage", "eng")
