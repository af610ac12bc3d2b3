# -*- coding: utf-8 -*-
"""
번호판 촬영/인식 클라이언트 설정 파일
모든 시스템 파라미터를 이 파일에서 관리합니다.
환경 변수 또는 .env 파일로 덮어쓸 수 있습니다.
"""

import logging
import os

from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()


def _env_int(name, default):
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_float(name, default):
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_bool(name, default):
    value = os.getenv(name)
    if value in (None, ""):
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ================================
# 카메라 설정
# ================================
CAMERA_PROBE_COUNT = _env_int("CAMERA_PROBE_COUNT", 4)   # sysfs가 없을 때 탐색할 카메라 인덱스 수
CAMERA_BUFFER_SIZE = 1                                  # 카메라 버퍼 크기 (지연 최소화)
DEFAULT_FACING_MODE = os.getenv("DEFAULT_FACING_MODE", "environment")

# 특정 카메라 지정 시 고해상도 요청 (1단계)
DEVICE_IDEAL_WIDTH = 1920           # 이상적인 너비 (Full HD)
DEVICE_IDEAL_HEIGHT = 1080          # 이상적인 높이
DEVICE_MAX_WIDTH = 4096             # 최대 너비
DEVICE_MAX_HEIGHT = 2160            # 최대 높이

# 방향(facing)만 지정 시 요청 해상도
FACING_IDEAL_WIDTH = 1280           # 이상적인 너비 (HD)
FACING_IDEAL_HEIGHT = 720           # 이상적인 높이
FACING_MIN_WIDTH = 640              # 최소 너비
FACING_MIN_HEIGHT = 480             # 최소 높이

# 라벨 잠금 해제용 임시 촬영 해상도
UNLOCK_WIDTH = 640
UNLOCK_HEIGHT = 480

# ================================
# 촬영 이미지 설정
# ================================
IMAGE_QUALITY = _env_int("IMAGE_QUALITY", 90)   # JPEG 이미지 품질 (0-100)

# ================================
# 번호판 인식 설정
# ================================
PLATE_LOCALE = os.getenv("PLATE_LOCALE", "jp")          # 번호판 패턴 세트 (jp / kr)
PLATE_NORMALIZER = os.getenv("PLATE_NORMALIZER", "none")  # 후보 문자열 정규화 전략

# 로케일별 Tesseract 언어 (두 문자 체계 동시 인식)
OCR_LANGUAGES = {
    'jp': 'jpn+eng',
    'kr': 'kor+eng',
}
OCR_LANGUAGE_OVERRIDE = os.getenv("OCR_LANGUAGES", "")  # 비어 있으면 로케일 기본값 사용
TESSERACT_CONFIG = os.getenv("TESSERACT_CONFIG", "--psm 6 --oem 3")
TESSERACT_CMD = os.getenv("TESSERACT_CMD", "")          # tesseract 실행 파일 경로 (선택)

# 이미지 전처리 파라미터 (CSS filter 와 동일한 의미)
NORMALIZE_IMAGE = _env_bool("NORMALIZE_IMAGE", True)    # 전처리 사용 여부
CONTRAST_FACTOR = _env_float("CONTRAST_FACTOR", 1.5)    # contrast(150%)
BRIGHTNESS_FACTOR = _env_float("BRIGHTNESS_FACTOR", 1.1)  # brightness(110%)

# ================================
# 웹서버 설정
# ================================
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")
PARKING_RECORDS_PATH = "/api/parking-records"
API_TIMEOUT = _env_int("API_TIMEOUT", 30)       # API 요청 타임아웃 (초)
SPOT_COUNT = 100                                # 주차 위치 수 (1 ~ 100)

# ================================
# 로그 설정
# ================================
LOG_LEVEL = logging.DEBUG if _env_bool("DEBUG", False) else logging.INFO
LOG_FILE = os.getenv("LOG_FILE", "jucha_capture.log")
LOG_MAX_SIZE = 10 * 1024 * 1024     # 로그 파일 최대 크기 (10MB)
LOG_BACKUP_COUNT = 5                # 로그 백업 파일 수
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

# ================================
# 화면 표시 설정
# ================================
WINDOW_NAME = "Jucha Capture"       # 미리보기 창 제목
DISPLAY_WIDTH = 1024                # 미리보기 창 너비
FONT_SCALE = 0.6                    # 글자 크기
THICKNESS = 2                       # 선 두께
COLOR_TEXT = (255, 255, 255)        # 글자 색 (흰색)
COLOR_OK = (0, 255, 0)              # 인식 성공 (초록)
COLOR_BUSY = (0, 255, 255)          # 처리 중 (노랑)
COLOR_FAIL = (0, 0, 255)            # 실패 (빨강)
LOOP_DELAY = 0.01                   # 미리보기 루프 대기 시간 (초)


def ocr_languages(locale=None):
    """로케일에 맞는 Tesseract 언어 문자열 반환"""
    if OCR_LANGUAGE_OVERRIDE:
        return OCR_LANGUAGE_OVERRIDE
    return OCR_LANGUAGES.get(locale or PLATE_LOCALE, OCR_LANGUAGES['jp'])
