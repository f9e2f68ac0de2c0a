"""
Binance 요청 가중치 관리

응답 헤더의 X-MBX-USED-WEIGHT-1m 값으로 1분 윈도우 사용량을 추적.
중단 임계값 도달 또는 429/418 차단 중에는 요청을 보내기 전에 RateLimitError 발생.
자동 재시도는 하지 않음 (호출자가 retry_after 참고).
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Mapping

from adapters.binance.errors import RateLimitError
from core.constants import RateLimitThresholds

logger = logging.getLogger(__name__)


USED_WEIGHT_HEADER = "x-mbx-used-weight-1m"
ORDER_COUNT_HEADER = "x-mbx-order-count-10s"
RETRY_AFTER_HEADER = "retry-after"

# Retry-After 헤더 없이 429/418이 온 경우
DEFAULT_RETRY_AFTER_SEC = 30

RATE_LIMITED_STATUSES = (418, 429)


@dataclass
class RateLimitTracker:
    """요청 가중치 추적기

    - used_weight_1m: 마지막 응답 기준 1분간 사용 가중치
    - order_count_10s: 마지막 응답 기준 10초간 주문 수
    - banned_until: 429/418 응답의 Retry-After 만료 시각 (UTC)
    """

    WEIGHT_WINDOW: ClassVar[timedelta] = timedelta(seconds=60)

    used_weight_1m: int = 0
    order_count_10s: int = 0
    banned_until: datetime | None = None
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def observe(self, status_code: int, headers: Mapping[str, Any]) -> int | None:
        """응답 상태 코드와 헤더 반영

        Args:
            status_code: HTTP 상태 코드
            headers: 응답 헤더 (대소문자 무관)

        Returns:
            429/418 응답이면 Retry-After 초, 아니면 None
        """
        values = {k.lower(): v for k, v in headers.items()}
        now = datetime.now(timezone.utc)

        weight = values.get(USED_WEIGHT_HEADER)
        if weight is not None:
            self.used_weight_1m = int(weight)

        order_count = values.get(ORDER_COUNT_HEADER)
        if order_count is not None:
            self.order_count_10s = int(order_count)

        self.last_updated = now

        if status_code not in RATE_LIMITED_STATUSES:
            return None

        retry_after = int(values.get(RETRY_AFTER_HEADER, DEFAULT_RETRY_AFTER_SEC))
        self.banned_until = now + timedelta(seconds=retry_after)
        return retry_after

    def check(self) -> None:
        """요청 전 확인

        1분 윈도우가 지났으면 카운터를 리셋하고 통과.

        Raises:
            RateLimitError: 차단 중이거나 중단 임계값 도달 시
        """
        now = datetime.now(timezone.utc)

        if self.banned_until is not None:
            if now < self.banned_until:
                raise RateLimitError(
                    retry_after=_ceil_seconds(self.banned_until - now),
                    message="Banned by Binance",
                )
            self.banned_until = None

        if not self.should_stop:
            return

        if self.window_expired:
            self.reset()
            return

        logger.warning(
            "Rate limit threshold reached",
            extra={"rate_info": self.to_dict()},
        )
        raise RateLimitError(
            retry_after=_ceil_seconds(self.last_updated + self.WEIGHT_WINDOW - now),
            message="Request weight threshold reached",
        )

    @property
    def should_warn(self) -> bool:
        """경고 임계값 도달 여부"""
        return self.used_weight_1m >= RateLimitThresholds.WEIGHT_WARN

    @property
    def should_stop(self) -> bool:
        """요청 중단 임계값 도달 여부"""
        return self.used_weight_1m >= RateLimitThresholds.WEIGHT_STOP

    @property
    def is_banned(self) -> bool:
        """Retry-After 대기 중 여부"""
        return self.banned_until is not None and datetime.now(timezone.utc) < self.banned_until

    @property
    def window_expired(self) -> bool:
        """마지막 응답 후 1분 가중치 윈도우가 지났는지 여부"""
        return datetime.now(timezone.utc) - self.last_updated >= self.WEIGHT_WINDOW

    @property
    def remaining_weight(self) -> int:
        """남은 가중치 (STOP 임계값 기준)"""
        return max(0, RateLimitThresholds.WEIGHT_STOP - self.used_weight_1m)

    def reset(self) -> None:
        """가중치 카운터 리셋 (차단 시각은 유지)"""
        self.used_weight_1m = 0
        self.order_count_10s = 0
        self.last_updated = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (로깅용)"""
        return {
            "used_weight_1m": self.used_weight_1m,
            "order_count_10s": self.order_count_10s,
            "remaining_weight": self.remaining_weight,
            "is_banned": self.is_banned,
            "banned_until": self.banned_until.isoformat() if self.banned_until else None,
            "last_updated": self.last_updated.isoformat(),
        }


def _ceil_seconds(delta: timedelta) -> int:
    """남은 시간을 올림한 초 (최소 1초)"""
    return max(1, math.ceil(delta.total_seconds()))
