"""
어댑터 공통 모델 테스트

Balance, Order, OrderRequest 등 표준 모델 테스트.
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from adapters.models import (
    Balance,
    LotSizeFilter,
    Order,
    OrderRequest,
    PriceFilter,
    decimal_to_str,
)
from core.types import OrderSide, OrderStatus, OrderType


class TestDecimalToStr:
    """Decimal 문자열 변환 테스트"""

    def test_no_exponent(self) -> None:
        assert decimal_to_str(Decimal("1E-7")) == "0.0000001"
        assert decimal_to_str(Decimal("5E+3")) == "5000"

    def test_keeps_given_precision(self) -> None:
        assert decimal_to_str(Decimal("0.000204")) == "0.000204"


class TestBalance:
    """Balance 모델 테스트"""

    def test_total(self) -> None:
        balance = Balance(asset="BTC", free=Decimal("1.5"), locked=Decimal("0.5"))

        assert balance.total == Decimal("2.0")
        assert balance.is_empty is False

    def test_zero_value(self) -> None:
        balance = Balance(asset="ETH")

        assert balance.free == Decimal("0")
        assert balance.locked == Decimal("0")
        assert balance.is_empty is True

    def test_locked_only_is_not_empty(self) -> None:
        assert Balance(asset="LTC", locked=Decimal("1")).is_empty is False

    def test_frozen(self) -> None:
        balance = Balance(asset="BTC")

        with pytest.raises(FrozenInstanceError):
            balance.free = Decimal("1")  # type: ignore[misc]


class TestOrder:
    """Order 모델 테스트"""

    def _order(self, status: str, created_at: datetime | None = None) -> Order:
        return Order(
            order_id="1",
            client_order_id="c1",
            symbol="BTCUSDT",
            side=OrderSide.BUY.value,
            order_type=OrderType.LIMIT.value,
            status=status,
            original_qty=Decimal("2"),
            executed_qty=Decimal("0.5"),
            created_at=created_at,
        )

    def test_remaining_qty(self) -> None:
        assert self._order(OrderStatus.PARTIALLY_FILLED.value).remaining_qty == Decimal("1.5")

    @pytest.mark.parametrize(
        "status, is_open",
        [
            (OrderStatus.NEW.value, True),
            (OrderStatus.PARTIALLY_FILLED.value, True),
            (OrderStatus.FILLED.value, False),
            (OrderStatus.CANCELED.value, False),
        ],
    )
    def test_is_open(self, status: str, is_open: bool) -> None:
        assert self._order(status).is_open is is_open

    def test_timestamp_ms(self) -> None:
        created_at = datetime(2017, 7, 12, 2, 41, 59, 559000, tzinfo=timezone.utc)

        assert self._order(OrderStatus.FILLED.value, created_at).timestamp_ms == 1499827319559
        assert self._order(OrderStatus.FILLED.value).timestamp_ms == 0


class TestOrderRequest:
    """OrderRequest 검증 테스트"""

    def test_limit(self) -> None:
        request = OrderRequest.limit("BTCUSDT", "SELL", Decimal("0.000204"), Decimal("51700"))

        assert request.to_dict() == {
            "symbol": "BTCUSDT",
            "side": "SELL",
            "type": "LIMIT",
            "timeInForce": "GTC",
            "quantity": "0.000204",
            "price": "51700",
        }

    def test_market_quote(self) -> None:
        request = OrderRequest.market_quote("BTCUSDT", "BUY", Decimal("100"), client_order_id="my-1")

        assert request.to_dict() == {
            "symbol": "BTCUSDT",
            "side": "BUY",
            "type": "MARKET",
            "quoteOrderQty": "100",
            "newClientOrderId": "my-1",
        }

    def test_enum_inputs_normalized(self) -> None:
        request = OrderRequest(
            symbol="BTCUSDT",
            side=OrderSide.BUY,
            order_type=OrderType.MARKET,
            quantity=Decimal("1"),
        )

        assert request.side == "BUY"
        assert request.order_type == "MARKET"
        assert request.to_dict()["type"] == "MARKET"

    def test_small_quantity_not_exponent(self) -> None:
        request = OrderRequest.market("BTCUSDT", "BUY", Decimal("1E-7"))

        assert request.to_dict()["quantity"] == "0.0000001"

    def test_requires_exactly_one_amount(self) -> None:
        with pytest.raises(ValueError):
            OrderRequest(symbol="BTCUSDT", side="BUY", order_type="MARKET")

        with pytest.raises(ValueError):
            OrderRequest(
                symbol="BTCUSDT",
                side="BUY",
                order_type="MARKET",
                quantity=Decimal("1"),
                quote_order_qty=Decimal("100"),
            )

    def test_limit_requires_price(self) -> None:
        with pytest.raises(ValueError):
            OrderRequest(symbol="BTCUSDT", side="BUY", order_type="LIMIT", quantity=Decimal("1"))

    def test_limit_rejects_quote_amount(self) -> None:
        with pytest.raises(ValueError):
            OrderRequest(
                symbol="BTCUSDT",
                side="BUY",
                order_type="LIMIT",
                quote_order_qty=Decimal("100"),
                price=Decimal("1"),
            )

    def test_market_rejects_price(self) -> None:
        with pytest.raises(ValueError):
            OrderRequest(
                symbol="BTCUSDT",
                side="BUY",
                order_type="MARKET",
                quantity=Decimal("1"),
                price=Decimal("1"),
            )

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_amount_must_be_positive(self, quantity: Decimal) -> None:
        with pytest.raises(ValueError):
            OrderRequest.market("BTCUSDT", "BUY", quantity)

    def test_invalid_side(self) -> None:
        with pytest.raises(ValueError):
            OrderRequest.market("BTCUSDT", "HOLD", Decimal("1"))

    def test_unsupported_type(self) -> None:
        with pytest.raises(ValueError):
            OrderRequest(symbol="BTCUSDT", side="BUY", order_type="STOP_LOSS", quantity=Decimal("1"))


class TestSymbolFilters:
    """LotSizeFilter / PriceFilter zero value 테스트"""

    def test_zero_values(self) -> None:
        assert LotSizeFilter().is_zero is True
        assert PriceFilter().is_zero is True

    def test_non_zero(self) -> None:
        assert LotSizeFilter(step_size=Decimal("0.001")).is_zero is False
        assert PriceFilter(tick_size=Decimal("0.01")).is_zero is False
