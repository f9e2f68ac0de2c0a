"""
어댑터 테스트 픽스처

Mock 전송 계층 기반 클라이언트/접근자 및 Binance 응답 샘플 제공.
"""

from typing import Any

import pytest

from adapters.binance.market_data import BinanceMarketData
from adapters.binance.rest_client import BinanceRestClient
from adapters.binance.trading import BinanceTrading
from adapters.mock.exchange_client import MockRestTransport, MockState


TEST_API_KEY = "test_api_key"
TEST_API_SECRET = "test_api_secret"


# -------------------------------------------------------------------------
# Mock 전송 계층 / 클라이언트 픽스처
# -------------------------------------------------------------------------

@pytest.fixture
def mock_transport() -> MockRestTransport:
    """서명을 실제로 검증하는 Mock REST 전송 계층"""
    return MockRestTransport(MockState(api_secret=TEST_API_SECRET, server_time=1_700_000_000_000))


@pytest.fixture
def rest_client(mock_transport: MockRestTransport) -> BinanceRestClient:
    """Mock 전송 계층을 사용하는 인증 REST 클라이언트"""
    return BinanceRestClient(
        base_url="https://api.mock.binance",
        api_key=TEST_API_KEY,
        api_secret=TEST_API_SECRET,
        transport=mock_transport,
    )


@pytest.fixture
def public_client(mock_transport: MockRestTransport) -> BinanceRestClient:
    """인증 정보 없는 REST 클라이언트"""
    return BinanceRestClient(base_url="https://api.mock.binance", transport=mock_transport)


@pytest.fixture
def market(rest_client: BinanceRestClient) -> BinanceMarketData:
    return BinanceMarketData(rest_client)


@pytest.fixture
def trading(rest_client: BinanceRestClient) -> BinanceTrading:
    return BinanceTrading(rest_client)


# -------------------------------------------------------------------------
# Binance API 응답 샘플
# -------------------------------------------------------------------------

@pytest.fixture
def binance_order_response() -> dict[str, Any]:
    """Binance 주문 조회 API 응답 샘플"""
    return {
        "symbol": "BTCUSDT",
        "orderId": 28,
        "orderListId": -1,
        "clientOrderId": "6gCrw2kRUAF9CvJDGP16IP",
        "price": "51700.00000000",
        "origQty": "0.00020400",
        "executedQty": "0.00020400",
        "cummulativeQuoteQty": "10.54680000",
        "status": "FILLED",
        "timeInForce": "GTC",
        "type": "LIMIT",
        "side": "SELL",
        "stopPrice": "0.00000000",
        "icebergQty": "0.00000000",
        "time": 1507725176595,
        "updateTime": 1507725176600,
        "isWorking": True,
        "origQuoteOrderQty": "0.00000000",
    }


@pytest.fixture
def binance_account_response() -> dict[str, Any]:
    """Binance 계좌 API 응답 샘플"""
    return {
        "makerCommission": 15,
        "takerCommission": 15,
        "buyerCommission": 0,
        "sellerCommission": 0,
        "canTrade": True,
        "canWithdraw": True,
        "canDeposit": True,
        "updateTime": 123456789,
        "accountType": "SPOT",
        "balances": [
            {"asset": "BTC", "free": "0.00500000", "locked": "0.00000000"},
            {"asset": "LTC", "free": "0.00000000", "locked": "1.50000000"},
            {"asset": "ETH", "free": "0.00000000", "locked": "0.00000000"},
        ],
        "permissions": ["SPOT"],
    }


@pytest.fixture
def binance_ws_agg_trade() -> dict[str, Any]:
    """Binance WebSocket aggTrade 메시지 샘플"""
    return {
        "e": "aggTrade",
        "E": 1672515782136,
        "s": "BNBBTC",
        "a": 12345,
        "p": "0.001",
        "q": "100",
        "f": 100,
        "l": 105,
        "T": 1672515782136,
        "m": True,
        "M": True,
    }
