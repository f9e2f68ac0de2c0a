"""
로깅 설정 유틸리티

라이브러리 모듈은 logging.getLogger(__name__)과 extra={...}만 사용하고,
핸들러 구성은 프로세스 진입점(scripts/)에서 setup_logging()으로 수행.

- 콘솔: INFO 레벨
- 파일: INFO 레벨 (TimedRotatingFileHandler, daily)
- extra 필드는 메시지 뒤에 key=value 형태로 출력
- 서명 쿼리(signature=...)는 마스킹

사용법:
    from core.logging import setup_logging
    setup_logging("check_connection")
"""

import logging
import re
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7  # 최대 7일치 파일 유지

# 레벨을 WARNING으로 올릴 서드파티 로거
NOISY_LOGGERS = [
    "httpcore",       # HTTP 연결 상세 로그
    "httpx",          # 요청마다 서명 URL 포함 로그
    "websockets",     # WebSocket 프레임 로그
    "asyncio",
]

SIGNATURE_PATTERN = re.compile(r"(signature=)[0-9a-fA-F]+")
MASK = "***"

# LogRecord 기본 속성 (extra 필드 구분용)
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def mask_signature(text: str) -> str:
    """signature= 쿼리 값 마스킹"""
    return SIGNATURE_PATTERN.sub(rf"\g<1>{MASK}", text)


class ContextFormatter(logging.Formatter):
    """extra 필드를 덧붙이고 서명을 마스킹하는 포맷터

    예: ... | adapters.binance.rest_client | Binance API error | path=/api/v3/order code=-2010
    """

    def formatMessage(self, record: logging.LogRecord) -> str:
        message = super().formatMessage(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            message = f"{message} | {pairs}"
        return message

    def format(self, record: logging.LogRecord) -> str:
        # 예외 트레이스백의 URL까지 포함해 마스킹
        return mask_signature(super().format(record))


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """로깅 설정 초기화

    Args:
        process_name: 프로세스 이름 (로그 파일명으로 사용)
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        log_dir: 로그 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        설정된 루트 Logger
    """
    log_file = get_log_file_path(process_name, log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # 핸들러에서 필터링

    # 재호출 시 핸들러 중복 방지
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # check_connection.log.2026-02-21
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name}",
        extra={"log_file": str(log_file), "console_level": logging.getLevelName(console_level)},
    )

    return root_logger


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """로그 파일 경로 반환"""
    return (log_dir or Paths.LOGS_DIR) / f"{process_name}.log"
