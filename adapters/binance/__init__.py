"""
Binance 어댑터

Binance Spot API 연동을 담당.
서명 REST API와 aggTrade WebSocket 스트림 지원.
"""

from adapters.binance.api import BinanceApi
from adapters.binance.errors import (
    AuthenticationError,
    BinanceApiError,
    BinanceError,
    NoTradesError,
    OrderError,
    ParseError,
    RateLimitError,
    TransportError,
)
from adapters.binance.market_data import BinanceMarketData
from adapters.binance.rate_limiter import RateLimitTracker
from adapters.binance.rest_client import BinanceRestClient
from adapters.binance.trading import BinanceTrading
from adapters.binance.transport import (
    HttpxRestTransport,
    RestResponse,
    WebsocketsStreamTransport,
)
from adapters.binance.ws_client import BinanceAggTradeStream, subscribe_agg_trades

__all__ = [
    "BinanceApi",
    "BinanceRestClient",
    "BinanceMarketData",
    "BinanceTrading",
    "BinanceAggTradeStream",
    "subscribe_agg_trades",
    "HttpxRestTransport",
    "WebsocketsStreamTransport",
    "RestResponse",
    "RateLimitTracker",
    # Errors
    "BinanceError",
    "TransportError",
    "BinanceApiError",
    "RateLimitError",
    "OrderError",
    "AuthenticationError",
    "ParseError",
    "NoTradesError",
]
