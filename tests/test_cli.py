import asyncio
import logging
import logging.handlers

import cv2
import pytest

from jucha_capture import cli, config
from jucha_capture.media import FacingMode

from conftest import FakeRecognizer


def test_defaults():
    args = cli.build_parser().parse_args([])
    assert args.spot == 1
    assert args.locale == config.PLATE_LOCALE
    assert args.normalize_image is True
    assert args.image is None and args.device is None and args.facing is None


def test_options():
    args = cli.build_parser().parse_args([
        "--facing", "user", "--submit", "--spot", "12", "--staff-id", "S01",
        "--locale", "kr", "--no-normalize", "--server", "http://x:3001",
    ])
    assert FacingMode(args.facing) is FacingMode.USER
    assert args.submit and args.spot == 12 and args.staff_id == "S01"
    assert args.locale == "kr"
    assert args.normalize_image is False
    assert args.server == "http://x:3001"


@pytest.mark.parametrize("argv", [
    ["--spot", "0"],
    ["--spot", "101"],
    ["--locale", "us"],
    ["--device", "0", "--facing", "user"],
])
def test_invalid_options(argv):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(argv)


def test_setup_logging_uses_rotating_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOG_FILE", str(tmp_path / "capture.log"))
    cli.setup_logging(logging.DEBUG)
    try:
        handlers = logging.getLogger().handlers
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)
        assert logging.getLogger().level == logging.DEBUG
    finally:
        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()


def test_run_recognizes_image_files(tmp_path, frame, capsys):
    path = tmp_path / "plate.jpg"
    cv2.imwrite(str(path), frame)
    args = cli.build_parser().parse_args(["--image", str(path), "--no-normalize"])

    exit_code = asyncio.run(cli.run(args, recognizer=FakeRecognizer(default="品川 500 あ 1234")))

    assert exit_code == 0
    assert "品川500あ1234" in capsys.readouterr().out
