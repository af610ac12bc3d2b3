# -*- coding: utf-8 -*-
"""
주차 기록 서버 전송
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from . import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    record_id: Optional[int] = None


def next_spot(spot_number, spot_count=None):
    """다음 주차 위치 (마지막 다음은 1)"""
    spot_count = spot_count or config.SPOT_COUNT
    return spot_number + 1 if spot_number < spot_count else 1


class RecordSubmitter:
    """번호판 후보와 사진을 주차 기록 API 로 전송"""

    def __init__(self, base_url=None, timeout=None, session=None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout or config.API_TIMEOUT
        self.session = session or requests.Session()
        logger.info(f"기록 서버 클라이언트 초기화: {self.url}")

    @property
    def url(self):
        return self.base_url + config.PARKING_RECORDS_PATH

    def validate(self, plate, spot_number):
        if not plate or not plate.strip():
            return "번호판을 입력해주세요"
        if not isinstance(spot_number, int) or not 1 <= spot_number <= config.SPOT_COUNT:
            return f"주차 위치는 1~{config.SPOT_COUNT} 사이로 지정해주세요"
        return None

    def submit(self, plate, image_bytes, spot_number, staff_id="", notes=""):
        """한 번만 전송하고 결과를 SubmissionResult 로 반환"""
        problem = self.validate(plate, spot_number)
        if problem:
            logger.warning(f"전송 취소: {problem}")
            return SubmissionResult(False, problem)

        data = {
            'license_plate': plate.strip(),
            'spot_number': str(spot_number),
            'staff_id': staff_id or "",
            'notes': notes or "",
        }
        files = None
        if image_bytes:
            files = {'image': ('license_plate.jpg', image_bytes, 'image/jpeg')}

        try:
            response = self.session.post(self.url, data=data, files=files, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"기록 서버 통신 오류: {e}")
            return SubmissionResult(False, "서버에 연결할 수 없습니다")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.ok and body.get('success', True):
            record_id = body.get('id') or body.get('record_id')
            logger.info(f"주차 기록 등록 완료: {data['license_plate']} (위치 {spot_number})")
            return SubmissionResult(True, "등록되었습니다", record_id)

        message = body.get('error') or "등록에 실패했습니다"
        logger.warning(f"서버 응답 오류: {response.status_code} - {message}")
        return SubmissionResult(False, message)
