"""
Binance 주문/계좌 테스트

BinanceTrading 주문 생성(실거래/테스트), 주문 조회, 잔고 테스트 (MockRestTransport 사용).
"""

from decimal import Decimal

import pytest

from adapters.binance.errors import BinanceApiError, OrderError, RateLimitError
from adapters.binance.trading import BinanceTrading
from adapters.mock.exchange_client import MockRestTransport
from adapters.models import Balance, OrderRequest
from core.constants import ApiPaths
from core.types import OrderMode, OrderSide, OrderStatus


class TestPlaceOrder:
    """주문 생성 테스트"""

    @pytest.mark.asyncio
    async def test_limit_order(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        """지정가 주문 파라미터 (GTC, 문자열 수치)"""
        order = await trading.place_limit_order(
            "SELL", "BTCUSDT", Decimal("0.000204"), Decimal("51700")
        )

        assert order is not None
        assert order.status == OrderStatus.NEW.value
        assert order.original_qty == Decimal("0.000204")
        assert order.price == Decimal("51700")
        assert order.created_at is not None

        request = mock_transport.requests_to(ApiPaths.ORDER)[0]
        assert request.method == "POST"
        assert request.params["type"] == "LIMIT"
        assert request.params["timeInForce"] == "GTC"
        assert request.params["quantity"] == "0.000204"
        assert request.params["price"] == "51700"

    @pytest.mark.asyncio
    async def test_market_quote_order(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        """호가 자산 금액 시장가 주문은 quoteOrderQty로 전송"""
        mock_transport.set_price("BTCUSDT", "50000")

        order = await trading.place_market_quote_order("BUY", "BTCUSDT", Decimal("100"))

        assert order is not None
        assert order.is_filled is True
        assert order.executed_qty == Decimal("0.002")

        request = mock_transport.requests_to(ApiPaths.ORDER)[0]
        assert request.params["quoteOrderQty"] == "100"
        assert "quantity" not in request.params
        assert "timeInForce" not in request.params

    @pytest.mark.asyncio
    async def test_market_order_by_quantity(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        order = await trading.place_market_order(OrderSide.SELL, "BTCUSDT", Decimal("0.01"))

        assert order is not None
        assert order.side == "SELL"
        request = mock_transport.requests_to(ApiPaths.ORDER)[0]
        assert request.params["quantity"] == "0.01"
        assert "quoteOrderQty" not in request.params

    @pytest.mark.asyncio
    async def test_test_mode_is_not_persisted(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        """테스트 모드 주문은 검증만 하고 주문 내역에 남지 않음"""
        result = await trading.place_limit_order(
            "BUY", "BTCUSDT", Decimal("0.001"), Decimal("40000"), mode=OrderMode.TEST
        )

        assert result is None
        assert len(mock_transport.requests_to(ApiPaths.ORDER_TEST)) == 1
        assert mock_transport.requests_to(ApiPaths.ORDER) == []
        assert await trading.get_orders("BTCUSDT") == []

    @pytest.mark.asyncio
    async def test_mode_accepts_string(self, trading: BinanceTrading) -> None:
        request = OrderRequest.market("BTCUSDT", "BUY", Decimal("1"))

        assert await trading.place_order(request, mode="test") is None

    @pytest.mark.asyncio
    async def test_invalid_mode(self, trading: BinanceTrading) -> None:
        request = OrderRequest.market("BTCUSDT", "BUY", Decimal("1"))

        with pytest.raises(ValueError):
            await trading.place_order(request, mode="paper")

    @pytest.mark.asyncio
    async def test_rejected_order_raises_order_error(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        """거래소 거부는 OrderError (결과 없음)"""
        mock_transport.set_fail_next(
            status_code=400, code=-2010, message="Account has insufficient balance."
        )

        with pytest.raises(OrderError) as exc_info:
            await trading.place_market_order("BUY", "BTCUSDT", Decimal("1"))

        assert isinstance(exc_info.value, BinanceApiError)
        assert exc_info.value.code == -2010

    @pytest.mark.asyncio
    async def test_rejected_test_order(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        mock_transport.set_price("ETHUSDT", "2000")

        with pytest.raises(OrderError) as exc_info:
            await trading.place_market_order("BUY", "NOPEUSDT", Decimal("1"), mode=OrderMode.TEST)

        assert exc_info.value.code == -1121

    @pytest.mark.asyncio
    async def test_rate_limit_is_not_wrapped(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        await trading.rest_client.sync_time()
        mock_transport.set_fail_next(
            status_code=429, code=-1003, message="Too many requests", headers={"Retry-After": "5"}
        )

        with pytest.raises(RateLimitError) as exc_info:
            await trading.place_market_order("BUY", "BTCUSDT", Decimal("1"))

        assert not isinstance(exc_info.value, OrderError)
        assert exc_info.value.retry_after == 5


class TestOrderQueries:
    """주문 조회 테스트"""

    @pytest.mark.asyncio
    async def test_last_filled_order(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        """FILLED 주문 중 생성 시간이 가장 늦은 주문"""
        mock_transport.add_order("BTCUSDT", OrderStatus.NEW.value, time=1)
        expected = mock_transport.add_order("BTCUSDT", OrderStatus.FILLED.value, time=5)
        mock_transport.add_order("BTCUSDT", OrderStatus.FILLED.value, time=3)

        order = await trading.get_last_filled_order("BTCUSDT")

        assert order is not None
        assert order.order_id == str(expected["orderId"])
        assert order.timestamp_ms == 5

    @pytest.mark.asyncio
    async def test_last_filled_order_none(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        mock_transport.add_order("BTCUSDT", OrderStatus.NEW.value, time=1)
        mock_transport.add_order("BTCUSDT", OrderStatus.CANCELED.value, time=2)

        assert await trading.get_last_filled_order("BTCUSDT") is None

    @pytest.mark.asyncio
    async def test_get_orders_params(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        await trading.get_orders("BTCUSDT", start_time=10, limit=2000)

        request = mock_transport.requests_to(ApiPaths.ALL_ORDERS)[0]
        assert request.params["symbol"] == "BTCUSDT"
        assert request.params["startTime"] == "10"
        assert request.params["limit"] == "1000"
        assert "endTime" not in request.params

    @pytest.mark.asyncio
    async def test_get_orders_without_symbol_propagates_error(self, trading: BinanceTrading) -> None:
        """심볼 없는 전체 주문 조회는 거래소 에러 그대로 전달"""
        with pytest.raises(BinanceApiError) as exc_info:
            await trading.get_orders()

        assert exc_info.value.code == -1102

    @pytest.mark.asyncio
    async def test_open_orders(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        mock_transport.add_order("BTCUSDT", OrderStatus.NEW.value, time=1)
        mock_transport.add_order("ETHUSDT", OrderStatus.PARTIALLY_FILLED.value, time=2)
        mock_transport.add_order("BTCUSDT", OrderStatus.FILLED.value, time=3)

        all_open = await trading.get_open_orders()
        btc_open = await trading.get_open_orders("BTCUSDT")

        assert len(all_open) == 2
        assert all(o.is_open for o in all_open)
        assert [o.symbol for o in btc_open] == ["BTCUSDT"]

    @pytest.mark.asyncio
    async def test_get_order(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        created = mock_transport.add_order("BTCUSDT", OrderStatus.FILLED.value, time=7, quantity="2")

        order = await trading.get_order("BTCUSDT", created["orderId"])

        assert order.original_qty == Decimal("2")
        assert order.is_filled is True

    @pytest.mark.asyncio
    async def test_get_order_not_found(self, trading: BinanceTrading) -> None:
        with pytest.raises(BinanceApiError) as exc_info:
            await trading.get_order("BTCUSDT", 999)

        assert exc_info.value.code == -2013


class TestBalances:
    """계좌/잔고 테스트"""

    @pytest.fixture
    def with_balances(self, mock_transport: MockRestTransport) -> MockRestTransport:
        mock_transport.set_balance("BTC", "0.005")
        mock_transport.set_balance("LTC", "0", locked="1.5")
        mock_transport.set_balance("ETH", "0.00000000", locked="0.00000000")
        return mock_transport

    @pytest.mark.asyncio
    async def test_account(self, trading: BinanceTrading, with_balances: MockRestTransport) -> None:
        account = await trading.get_account()

        assert account.can_trade is True
        assert account.maker_commission == 10
        assert len(account.balances) == 3

    @pytest.mark.asyncio
    async def test_balances_excludes_empty(
        self,
        trading: BinanceTrading,
        with_balances: MockRestTransport,
    ) -> None:
        """free > 0 또는 locked > 0인 자산만"""
        balances = await trading.get_balances()

        assert [b.asset for b in balances] == ["BTC", "LTC"]
        assert all(b.free > 0 or b.locked > 0 for b in balances)
        assert balances[1].locked == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_balance_not_held(
        self,
        trading: BinanceTrading,
        with_balances: MockRestTransport,
    ) -> None:
        """보유하지 않은 자산은 0 잔고"""
        balance = await trading.get_balance("ETH")

        assert balance == Balance(asset="ETH")
        assert balance.total == Decimal("0")

    @pytest.mark.asyncio
    async def test_balance_from_given_list(
        self,
        trading: BinanceTrading,
        mock_transport: MockRestTransport,
    ) -> None:
        """이미 조회한 목록이 있으면 요청 없이 검색"""
        balances = [Balance(asset="USDT", free=Decimal("25"))]

        balance = await trading.get_balance("USDT", balances=balances)

        assert balance.free == Decimal("25")
        assert mock_transport.requests == []
