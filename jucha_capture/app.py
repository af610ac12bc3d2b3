# -*- coding: utf-8 -*-
"""
미리보기 창 기반 번호판 촬영 클라이언트

키 조작:
    c      : 촬영 후 인식
    r      : 실패한 이미지 재인식
    n      : 다음 카메라로 전환
    s      : 인식된 최신 번호판을 서버에 등록
    x      : 최신 이미지 삭제
    q, ESC : 종료
"""

import asyncio
import logging

import cv2

from . import config
from .capture_source import AcquisitionFailure
from .gallery import EVENT_ADDED, EVENT_DISCARDED
from .images import ImageState
from .submission import next_spot

logger = logging.getLogger(__name__)

KEY_ESC = 27

STATE_COLORS = {
    ImageState.CAPTURING: config.COLOR_BUSY,
    ImageState.PROCESSING: config.COLOR_BUSY,
    ImageState.RESOLVED: config.COLOR_OK,
    ImageState.UNRECOGNIZED: config.COLOR_FAIL,
    ImageState.ERROR: config.COLOR_FAIL,
}


def report_failure(failure):
    """획득 실패를 사용자에게 안내"""
    print(f"[카메라 오류] {failure.message}")
    print(f"  → {failure.action}")
    logger.error(f"카메라 획득 실패 상세: {failure.detail}")


class CaptureApp:
    """카메라 미리보기, 촬영, 인식 결과 표시"""

    def __init__(self, manager, pipeline, submitter=None, spot_number=1,
                 staff_id="", notes="", target=None):
        self.manager = manager
        self.pipeline = pipeline
        self.gallery = pipeline.gallery
        self.submitter = submitter
        self.spot_number = spot_number
        self.staff_id = staff_id
        self.notes = notes
        self.target = target
        self.devices = []
        self.status = ("", config.COLOR_TEXT)
        self._submit_task = None
        self._unsubscribe = self.gallery.subscribe(self.on_gallery_event)

    # ------------------------------
    # 저장소 이벤트
    # ------------------------------

    def on_gallery_event(self, event, image):
        if event == EVENT_DISCARDED:
            self.status = (f"discarded {image.image_id}", config.COLOR_TEXT)
            return
        if event == EVENT_ADDED:
            logger.info(f"촬영 이미지 추가: {image.image_id} ({image.source.value})")

        text = f"{image.image_id}: {image.state.value}"
        if image.state is ImageState.RESOLVED:
            print(f"[인식 완료] {image.plate} ({image.image_id})")
        elif image.state in (ImageState.UNRECOGNIZED, ImageState.ERROR):
            print(f"[인식 실패] {image.error} ({image.image_id}) - 'r' 키로 재시도")
        self.status = (text, STATE_COLORS[image.state])

    # ------------------------------
    # 시작 / 종료
    # ------------------------------

    def start(self):
        """카메라 목록 조회 후 스트림 획득. 실패하면 False"""
        self.devices = self.manager.list_devices()
        target = self.target
        if target is None and self.devices:
            target = self.manager.default_device(self.devices).device_id

        outcome = self.manager.acquire(target)
        if isinstance(outcome, AcquisitionFailure):
            report_failure(outcome)
            return False
        return True

    def cleanup(self):
        logger.info("시스템 정리 중...")
        self.manager.release()
        cv2.destroyAllWindows()
        self._unsubscribe()
        logger.info("시스템 정리 완료")

    # ------------------------------
    # 화면 표시
    # ------------------------------

    def draw_overlay(self, frame):
        text, color = self.status
        images = self.gallery.images()
        summary = (f"Spot: {self.spot_number}  Images: {len(images)}  "
                   f"Processing: {len(self.gallery.in_flight())}")
        if self.submitting:
            summary += "  Sending..."
        cv2.putText(frame, summary, (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, config.FONT_SCALE, config.COLOR_TEXT, config.THICKNESS)
        if text:
            cv2.putText(frame, text, (10, 60),
                        cv2.FONT_HERSHEY_SIMPLEX, config.FONT_SCALE, color, config.THICKNESS)
        return frame

    def render(self, frame):
        height, width = frame.shape[:2]
        if width > config.DISPLAY_WIDTH:
            scale = config.DISPLAY_WIDTH / width
            frame = cv2.resize(frame, (config.DISPLAY_WIDTH, int(height * scale)))
        return self.draw_overlay(frame)

    # ------------------------------
    # 키 처리
    # ------------------------------

    async def handle_key(self, key):
        """키 입력 처리. 종료 키면 False"""
        if key in (KEY_ESC, ord('q')):
            return False

        if key == ord('c'):
            image = self.pipeline.capture_frame(self.manager.surface)
            if image is not None:
                self.pipeline.submit(image)
        elif key == ord('r'):
            tasks = self.pipeline.retry_failed()
            logger.info(f"재인식 요청: {len(tasks)}건")
        elif key == ord('n'):
            outcome = self.manager.switch_device(self.devices)
            if isinstance(outcome, AcquisitionFailure):
                report_failure(outcome)
        elif key == ord('s'):
            self.submit_latest()
        elif key == ord('x'):
            images = self.gallery.images()
            if images:
                self.gallery.discard(images[0].image_id)
        return True

    @property
    def submitting(self):
        return self._submit_task is not None and not self._submit_task.done()

    def submit_latest(self):
        """인식된 최신 번호판 전송 작업 시작. 전송 중이면 무시"""
        if self.submitter is None:
            logger.warning("서버 전송이 비활성화되어 있습니다 (--submit)")
            return None

        if self.submitting:
            logger.info("이전 전송이 아직 진행 중입니다")
            return None

        image = self.gallery.first_resolved()
        if image is None:
            print("[전송] 인식된 번호판이 없습니다")
            return None

        self._submit_task = asyncio.get_running_loop().create_task(self._submit(image))
        return self._submit_task

    async def _submit(self, image):
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None, self.submitter.submit,
            image.plate, image.data, self.spot_number, self.staff_id, self.notes,
        )
        print(f"[전송] {result.message}")
        if result.success:
            self._after_submit(image)
        return result

    def _after_submit(self, image):
        # 같은 번호판의 다른 촬영본도 함께 정리
        for other in self.gallery.images():
            if other.plate == image.plate:
                self.gallery.discard(other.image_id)
        self.spot_number = next_spot(self.spot_number)
        self.notes = ""

    # ------------------------------
    # 메인 루프
    # ------------------------------

    async def run(self):
        """미리보기 루프 실행. 종료 코드 반환"""
        if not self.start():
            self.cleanup()
            return 1

        logger.info("미리보기 시작 (종료: ESC 또는 'q')")
        cv2.namedWindow(config.WINDOW_NAME, cv2.WINDOW_AUTOSIZE)

        try:
            while True:
                frame = self.manager.surface.read_frame()
                if frame is not None:
                    cv2.imshow(config.WINDOW_NAME, self.render(frame))

                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF and not await self.handle_key(key):
                    break

                # 인식 작업에 실행 기회 제공
                await asyncio.sleep(config.LOOP_DELAY)

        except KeyboardInterrupt:
            logger.info("사용자에 의해 중단됨")
        finally:
            await self.pipeline.wait_idle()
            if self._submit_task is not None:
                await asyncio.gather(self._submit_task, return_exceptions=True)
            self.cleanup()

        return 0


async def recognize_files(pipeline, paths, submitter=None, spot_number=1, staff_id="", notes=""):
    """미리보기 없이 파일 이미지 인식 (선택적으로 서버 등록)"""
    for path in paths:
        image = pipeline.load_from_file(path)
        if image is None:
            print(f"{path}: 이미지를 읽을 수 없습니다")
            continue
        pipeline.submit(image)

    await pipeline.wait_idle()

    resolved = 0
    for image in reversed(pipeline.gallery.images()):
        if image.state is ImageState.RESOLVED:
            resolved += 1
            print(f"{image.image_id}: {image.plate}")
        else:
            print(f"{image.image_id}: {image.error}")
            continue

        if submitter is not None:
            result = submitter.submit(image.plate, image.data, spot_number, staff_id, notes)
            print(f"  → {result.message}")
            if result.success:
                pipeline.gallery.discard(image.image_id)
                spot_number = next_spot(spot_number)

    return 0 if resolved else 1
