"""
어댑터 레이어

외부 서비스(거래소)와의 연동을 담당.
Protocol 기반 전송 계층 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IRestTransport,
    IStreamConnection,
    IStreamTransport,
    IStreamSubscription,
)
from adapters.models import (
    Account,
    Balance,
    Kline,
    LotSizeFilter,
    Order,
    OrderRequest,
    PriceFilter,
    SymbolPrice,
    TradeEvent,
)

__all__ = [
    # Interfaces
    "IRestTransport",
    "IStreamConnection",
    "IStreamTransport",
    "IStreamSubscription",
    # Models
    "Account",
    "Balance",
    "Kline",
    "LotSizeFilter",
    "Order",
    "OrderRequest",
    "PriceFilter",
    "SymbolPrice",
    "TradeEvent",
]
