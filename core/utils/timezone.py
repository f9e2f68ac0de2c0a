"""
타임존 유틸리티

거래소 타임스탬프(밀리초)와 UTC datetime 간 변환 헬퍼
내부 표현은 항상 timezone-aware UTC
"""

import time
from datetime import datetime, timedelta, timezone


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_utc() -> datetime:
    """현재 UTC 시간"""
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """현재 로컬 시간 (밀리초 타임스탬프)"""
    return int(time.time() * 1000)


def utc_from_timestamp_ms(ts_ms: int) -> datetime:
    """밀리초 타임스탬프를 UTC datetime으로 변환

    Example:
        >>> utc_from_timestamp_ms(1499827319559).year
        2017
    """
    return EPOCH + timedelta(milliseconds=ts_ms)


def to_timestamp_ms(dt: datetime) -> int:
    """datetime을 밀리초 타임스탬프로 변환

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // timedelta(milliseconds=1)
