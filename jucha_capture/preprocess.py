# -*- coding: utf-8 -*-
"""
이미지 인코딩/디코딩 및 OCR 전처리
"""

import io
import logging

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from . import config

logger = logging.getLogger(__name__)


def encode_jpeg(image, quality=None):
    """BGR/그레이 이미지를 JPEG 바이트로 인코딩"""
    quality = quality or config.IMAGE_QUALITY
    ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("JPEG 인코딩 실패")
    return buf.tobytes()


def _decode_with_pillow(data):
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.seek(0)
            rgb = np.array(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Pillow 디코딩 실패: {e}")
        return None
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


def decode_image(data):
    """인코딩된 이미지 바이트 → BGR 배열. 읽을 수 없으면 None"""
    if not data:
        return None

    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if image is not None and image.size > 0:
        return image

    # OpenCV 가 지원하지 않는 형식 (GIF 등)
    return _decode_with_pillow(data)


def adjust_contrast(image, factor):
    """CSS contrast(): (v - 0.5) * factor + 0.5"""
    adjusted = (image.astype(np.float32) - 127.5) * factor + 127.5
    return np.clip(adjusted, 0, 255).astype(np.uint8)


def adjust_brightness(image, factor):
    """CSS brightness(): v * factor"""
    adjusted = image.astype(np.float32) * factor
    return np.clip(adjusted, 0, 255).astype(np.uint8)


def to_grayscale(image):
    if image.ndim == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def normalize_for_ocr(image, contrast=None, brightness=None):
    """명암 대비 → 밝기 → 그레이스케일 (항상 같은 순서로 적용)"""
    contrast = config.CONTRAST_FACTOR if contrast is None else contrast
    brightness = config.BRIGHTNESS_FACTOR if brightness is None else brightness

    image = adjust_contrast(image, contrast)
    image = adjust_brightness(image, brightness)
    return to_grayscale(image)


def normalize_encoded(data, contrast=None, brightness=None):
    """인코딩된 이미지를 전처리 후 다시 JPEG 로 인코딩"""
    image = decode_image(data)
    if image is None:
        raise ValueError("이미지를 디코딩할 수 없습니다")
    return encode_jpeg(normalize_for_ocr(image, contrast, brightness))
