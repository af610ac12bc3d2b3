# -*- coding: utf-8 -*-
"""
문자 인식 엔진 경계

엔진의 계약은 "텍스트를 반환하거나 예외를 던진다" 뿐입니다.
"""

import logging
import time

import cv2
import pytesseract

from . import config
from .preprocess import decode_image

logger = logging.getLogger(__name__)


class TextRecognizer:
    """문자 인식 엔진 인터페이스"""

    def image_to_text(self, image_bytes, languages):
        raise NotImplementedError


class TesseractRecognizer(TextRecognizer):
    """Tesseract OCR (pytesseract)"""

    def __init__(self, tesseract_config=None, tesseract_cmd=None):
        self.tesseract_config = tesseract_config or config.TESSERACT_CONFIG
        tesseract_cmd = tesseract_cmd or config.TESSERACT_CMD
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logger.info(f"Tesseract 인식기 초기화 (config: {self.tesseract_config})")

    def image_to_text(self, image_bytes, languages):
        image = decode_image(image_bytes)
        if image is None:
            raise ValueError("OCR 입력 이미지를 디코딩할 수 없습니다")
        if image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

        start_time = time.time()
        text = pytesseract.image_to_string(
            image, lang=languages, config=self.tesseract_config
        )
        logger.debug(f"OCR 완료 ({languages}, 처리시간: {time.time() - start_time:.2f}초)")
        return text
