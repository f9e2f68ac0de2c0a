"""
유틸리티 패키지

타임스탬프 변환 등 공통 유틸리티
"""

from core.utils.timezone import (
    now_utc,
    now_ms,
    utc_from_timestamp_ms,
    to_timestamp_ms,
)

__all__ = [
    "now_utc",
    "now_ms",
    "utc_from_timestamp_ms",
    "to_timestamp_ms",
]
