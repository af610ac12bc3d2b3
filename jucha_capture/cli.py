# -*- coding: utf-8 -*-
"""
명령행 진입점

    python -m jucha_capture                  # 미리보기 창으로 촬영
    python -m jucha_capture --list-devices   # 카메라 목록 (추천순)
    python -m jucha_capture --image a.jpg    # 파일 인식
"""

import argparse
import asyncio
import logging
from logging.handlers import RotatingFileHandler

from . import __version__, config
from .app import CaptureApp, recognize_files
from .capture_source import CaptureSourceManager
from .devices import RECOMMENDED_PRIORITY, camera_priority
from .media import FacingMode
from .ocr import TesseractRecognizer
from .opencv_media import OpenCVMediaProvider
from .plate_patterns import NORMALIZERS, PATTERN_SETS, get_normalizer
from .recognition import RecognitionPipeline
from .submission import RecordSubmitter

logger = logging.getLogger(__name__)


def setup_logging(level=None):
    """파일(회전) + 콘솔 로그 설정"""
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format=config.LOG_FORMAT,
        handlers=[
            RotatingFileHandler(
                config.LOG_FILE,
                maxBytes=config.LOG_MAX_SIZE,
                backupCount=config.LOG_BACKUP_COUNT,
                encoding='utf-8',
            ),
            logging.StreamHandler(),
        ],
        force=True,
    )


def spot_number(value):
    number = int(value)
    if not 1 <= number <= config.SPOT_COUNT:
        raise argparse.ArgumentTypeError(f"1~{config.SPOT_COUNT} 사이의 값이어야 합니다")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="jucha-capture",
        description="주차장 번호판 촬영 및 인식 클라이언트",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--list-devices", action="store_true", help="카메라 목록을 추천순으로 출력")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--device", help="사용할 카메라 ID")
    source.add_argument(
        "--facing",
        choices=[mode.value for mode in FacingMode],
        help="카메라 방향 (environment: 후면, user: 전면)",
    )
    source.add_argument("--image", nargs="+", metavar="PATH", help="미리보기 없이 이미지 파일 인식")

    parser.add_argument("--submit", action="store_true", help="인식 결과를 주차 기록 서버에 등록")
    parser.add_argument("--spot", type=spot_number, default=1, help="주차 위치 (1~100)")
    parser.add_argument("--staff-id", default="", help="담당자 ID")
    parser.add_argument("--notes", default="", help="비고")

    parser.add_argument("--locale", choices=sorted(PATTERN_SETS), default=config.PLATE_LOCALE,
                        help="번호판 형식")
    parser.add_argument("--normalizer", choices=sorted(NORMALIZERS), default=config.PLATE_NORMALIZER,
                        help="번호판 후보 정규화 방식")
    parser.add_argument("--no-normalize", dest="normalize_image", action="store_false",
                        help="OCR 전 이미지 전처리 생략")
    parser.add_argument("--server", default=None, help=f"기록 서버 주소 (기본: {config.API_BASE_URL})")
    parser.add_argument("--debug", action="store_true", help="디버그 로그 출력")
    return parser


def list_devices(manager):
    devices = manager.list_devices()
    if not devices:
        print("카메라를 찾을 수 없습니다")
        return 1

    default = manager.default_device(devices)
    print("=" * 60)
    for device in devices:
        priority = camera_priority(device.label)
        marks = []
        if device is default:
            marks.append("기본")
        if priority >= RECOMMENDED_PRIORITY:
            marks.append("추천")
        suffix = f" [{', '.join(marks)}]" if marks else ""
        print(f"  {device.device_id:>6}  {device.display_label}  (우선순위 {priority}){suffix}")
    print("=" * 60)
    return 0


async def run(args, provider=None, recognizer=None, submitter=None):
    pipeline = RecognitionPipeline(
        recognizer or TesseractRecognizer(),
        locale=args.locale,
        normalizer=get_normalizer(args.normalizer),
        normalize_image=args.normalize_image,
    )
    if args.submit and submitter is None:
        submitter = RecordSubmitter(base_url=args.server)

    if args.image:
        return await recognize_files(
            pipeline, args.image, submitter,
            spot_number=args.spot, staff_id=args.staff_id, notes=args.notes,
        )

    manager = CaptureSourceManager(provider or OpenCVMediaProvider())
    target = args.device or (FacingMode(args.facing) if args.facing else None)
    app = CaptureApp(
        manager, pipeline, submitter,
        spot_number=args.spot, staff_id=args.staff_id, notes=args.notes, target=target,
    )
    return await app.run()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else None)

    print("=" * 60)
    print(f"번호판 촬영 클라이언트 v{__version__}")
    print(f"  - 번호판 형식: {args.locale} (OCR: {config.ocr_languages(args.locale)})")
    print(f"  - 이미지 전처리: {'사용' if args.normalize_image else '생략'}")
    if args.submit:
        print(f"  - 기록 서버: {args.server or config.API_BASE_URL} (주차 위치 {args.spot})")
    print("=" * 60)

    if args.list_devices:
        return list_devices(CaptureSourceManager(OpenCVMediaProvider()))

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("사용자에 의해 중단됨")
        return 0
