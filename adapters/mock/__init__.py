"""
Mock 어댑터

테스트용 Mock 전송 계층 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.exchange_client import (
    MockRequest,
    MockRestTransport,
    MockState,
    MockStreamConnection,
    MockStreamTransport,
)

__all__ = [
    "MockRequest",
    "MockRestTransport",
    "MockState",
    "MockStreamConnection",
    "MockStreamTransport",
]
