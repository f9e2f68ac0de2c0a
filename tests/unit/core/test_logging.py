"""
core/logging.py 테스트

콘솔/파일 핸들러 구성과 로거 레벨 조정 확인
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Iterator

import pytest

from core.logging import (
    LOG_FORMAT,
    NOISY_LOGGERS,
    ContextFormatter,
    get_log_file_path,
    mask_signature,
    setup_logging,
)


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """테스트 후 루트 로거 핸들러/레벨 복원"""
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level

    yield

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if handler not in saved_handlers:
            handler.close()
    for handler in saved_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(saved_level)


class TestGetLogFilePath:
    """get_log_file_path 테스트"""

    def test_file_name(self, temp_dir: Path) -> None:
        assert get_log_file_path("check_connection", temp_dir) == temp_dir / "check_connection.log"


class TestContextFormatter:
    """ContextFormatter 테스트"""

    @staticmethod
    def _record(msg: str, **extra: object) -> logging.LogRecord:
        record = logging.makeLogRecord({"name": "adapters.binance", "levelname": "INFO", "msg": msg})
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_plain_message(self) -> None:
        formatter = ContextFormatter("%(name)s | %(message)s")

        assert formatter.format(self._record("hello")) == "adapters.binance | hello"

    def test_extra_fields_appended(self) -> None:
        """extra 필드는 key=value로 출력"""
        formatter = ContextFormatter("%(message)s")

        output = formatter.format(self._record("Binance API error", path="/api/v3/order", code=-2010))

        assert output == "Binance API error | path=/api/v3/order code=-2010"

    def test_signature_masked(self) -> None:
        formatter = ContextFormatter(LOG_FORMAT)
        url = "https://api.binance.com/api/v3/account?timestamp=1&signature=c8db56825ae71d6d"

        output = formatter.format(self._record("Request timeout", url=url))

        assert "c8db56825ae71d6d" not in output
        assert "signature=***" in output
        assert "timestamp=1" in output

    def test_mask_signature(self) -> None:
        assert mask_signature("a=1&signature=abc123") == "a=1&signature=***"
        assert mask_signature("no secrets") == "no secrets"


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    """setup_logging 테스트"""

    def test_handlers(self, temp_dir: Path) -> None:
        """콘솔 + 일별 롤링 파일 핸들러"""
        root_logger = setup_logging("unit", console_level=logging.WARNING, log_dir=temp_dir)

        handlers = root_logger.handlers
        assert len(handlers) == 2

        console = [h for h in handlers if type(h) is logging.StreamHandler]
        files = [h for h in handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(console) == 1
        assert console[0].stream is sys.stdout
        assert console[0].level == logging.WARNING
        assert len(files) == 1
        assert files[0].when == "MIDNIGHT"
        assert files[0].backupCount == 7

    def test_creates_log_dir_and_writes(self, temp_dir: Path) -> None:
        log_dir = temp_dir / "nested" / "logs"

        setup_logging("unit", log_dir=log_dir)
        logging.getLogger("adapters.test").info("hello", extra={"symbol": "BTCUSDT"})

        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (log_dir / "unit.log").read_text(encoding="utf-8")
        assert "hello" in content
        assert "adapters.test" in content
        assert "symbol=BTCUSDT" in content

    def test_repeated_setup_does_not_duplicate(self, temp_dir: Path) -> None:
        setup_logging("unit", log_dir=temp_dir)
        root_logger = setup_logging("unit", log_dir=temp_dir)

        assert len(root_logger.handlers) == 2

    def test_noisy_loggers_quieted(self, temp_dir: Path) -> None:
        setup_logging("unit", log_dir=temp_dir)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
