# -*- coding: utf-8 -*-
"""
번호판 인식 파이프라인

프레임 촬영 → 전처리 → OCR → 패턴 기반 후보 추출 → 결과 분류.
OCR 은 기본 실행기(스레드)에서 돌기 때문에 인식 중에도 미리보기와
추가 촬영이 막히지 않으며, 이미지마다 독립된 작업으로 처리됩니다.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional

from . import config
from .gallery import ImageGallery
from .images import ImageSource, ImageState, new_image
from .plate_patterns import collapse_whitespace, extract_plate, get_normalizer, patterns_for
from .preprocess import decode_image, encode_jpeg, normalize_encoded

logger = logging.getLogger(__name__)

UNRECOGNIZED_MESSAGE = "번호판을 읽을 수 없습니다"
ERROR_MESSAGE = "번호판 인식 처리에 실패했습니다"


@dataclass(frozen=True)
class RecognitionResult:
    outcome: ImageState
    raw_text: str = ""
    candidate: Optional[str] = None     # None 이면 인식 불가
    pattern: Optional[re.Pattern] = None
    error: Optional[str] = None


class RecognitionPipeline:
    """촬영 이미지를 번호판 후보 문자열로 변환"""

    def __init__(self, recognizer, gallery=None, locale=None, normalizer=None,
                 normalize_image=None, languages=None, executor=None):
        self.recognizer = recognizer
        self.gallery = gallery if gallery is not None else ImageGallery()
        self.locale = locale or config.PLATE_LOCALE
        self.patterns = patterns_for(self.locale)
        self.normalizer = normalizer or get_normalizer(config.PLATE_NORMALIZER)
        self.normalize_image = config.NORMALIZE_IMAGE if normalize_image is None else normalize_image
        self.languages = languages or config.ocr_languages(self.locale)
        self.executor = executor
        self._tasks = set()

    # ------------------------------
    # 이미지 획득
    # ------------------------------

    def capture_frame(self, surface):
        """현재 프레임을 원본 해상도 JPEG 로 저장. 준비되지 않았으면 None"""
        if surface is None or not surface.bound:
            logger.warning("촬영 실패: 카메라가 연결되어 있지 않습니다")
            return None

        width, height = surface.frame_size()
        if width == 0 or height == 0:
            logger.warning("촬영 실패: 영상 크기가 0 입니다 (카메라 준비 중)")
            return None

        frame = surface.read_frame()
        if frame is None or frame.size == 0:
            logger.warning("촬영 실패: 프레임을 읽을 수 없습니다")
            return None

        image = new_image(encode_jpeg(frame), source=ImageSource.CAMERA)
        height, width = frame.shape[:2]
        logger.info(f"사진 촬영 완료: {width}x{height} ({image.image_id})")
        return image

    def load_from_file(self, file):
        """파일 경로 또는 파일 객체에서 이미지 읽기. 읽을 수 없으면 None"""
        if hasattr(file, "read"):
            name = getattr(file, "name", "<stream>")
            data = file.read()
        else:
            name = str(file)
            try:
                with open(file, "rb") as f:
                    data = f.read()
            except OSError as e:
                logger.warning(f"파일 열기 실패: {name} ({e})")
                return None

        logger.info(f"파일 선택: {name}, 크기: {len(data)}bytes")
        decoded = decode_image(data)
        if decoded is None:
            logger.warning(f"지원하지 않는 이미지 형식: {name}")
            return None

        return new_image(encode_jpeg(decoded), source=ImageSource.FILE)

    # ------------------------------
    # 인식
    # ------------------------------

    def _read_text(self, data):
        if self.normalize_image:
            data = normalize_encoded(data)
        return self.recognizer.image_to_text(data, self.languages)

    def classify(self, raw_text):
        """OCR 원문을 결과로 분류"""
        text = collapse_whitespace(raw_text)
        candidate, pattern = extract_plate(text, self.patterns)

        if candidate is None:
            return RecognitionResult(
                outcome=ImageState.UNRECOGNIZED,
                raw_text=raw_text,
                error=UNRECOGNIZED_MESSAGE,
            )

        # 정규화 결과가 비면 원래 후보 유지
        plate = self.normalizer.normalize(candidate) or candidate
        return RecognitionResult(
            outcome=ImageState.RESOLVED,
            raw_text=raw_text,
            candidate=plate,
            pattern=pattern,
        )

    async def recognize(self, image):
        """이미지 한 장 인식. 예외를 밖으로 던지지 않음"""
        loop = asyncio.get_running_loop()
        try:
            raw_text = await loop.run_in_executor(self.executor, self._read_text, image.data)
        except Exception:
            logger.exception(f"OCR 처리 오류: {image.image_id}")
            return RecognitionResult(outcome=ImageState.ERROR, error=ERROR_MESSAGE)

        logger.debug(f"OCR 결과: {raw_text!r}")
        return self.classify(raw_text)

    # ------------------------------
    # 작업 관리
    # ------------------------------

    def submit(self, image):
        """저장소에 추가하고 인식 작업 시작. 실행 중인 이벤트 루프 필요"""
        loop = asyncio.get_running_loop()
        self.gallery.add(image)
        return self._schedule(loop, image.image_id)

    def retry(self, image_id):
        """실패한 이미지를 다시 촬영하지 않고 재인식"""
        image = self.gallery.get(image_id)
        if image is None or not image.retryable:
            logger.warning(f"재시도할 수 없는 이미지: {image_id}")
            return None
        return self._schedule(asyncio.get_running_loop(), image_id)

    def retry_failed(self):
        return [self.retry(image.image_id) for image in self.gallery.retryable()]

    def _schedule(self, loop, image_id):
        image = self.gallery.begin_processing(image_id)
        task = loop.create_task(self._run(image))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, image):
        logger.info(f"OCR 처리 시작: {image.image_id} (시도 {image.attempt})")
        result = await self.recognize(image)

        if result.outcome is ImageState.RESOLVED:
            logger.info(f"추출 결과: {result.candidate} ({image.image_id})")
        else:
            logger.warning(f"번호판 인식 실패: {image.image_id} ({result.outcome.value})")

        self.gallery.complete(image.image_id, image.attempt, result)
        return result

    @property
    def pending(self):
        return len(self._tasks)

    async def wait_idle(self):
        """진행 중인 모든 인식 작업 완료 대기"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
