"""
어댑터 공통 데이터 모델

거래소 API 응답을 표준화한 도메인 모델.
모든 금액/수량은 Decimal 타입 사용 (float 변환 금지).
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from core.types import OrderSide, OrderType, OrderStatus, TimeInForce
from core.utils.timezone import to_timestamp_ms


ZERO = Decimal("0")


def decimal_to_str(value: Decimal) -> str:
    """Decimal을 지수 표기 없는 문자열로 변환 (예: 1E-7 -> "0.0000001")"""
    return format(value, "f")


@dataclass(frozen=True)
class Balance:
    """자산별 잔고 정보

    Attributes:
        asset: 자산 코드 (예: USDT, BTC)
        free: 사용 가능 수량
        locked: 주문에 묶인 수량
    """

    asset: str
    free: Decimal = ZERO
    locked: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        """총 보유 수량 (free + locked)"""
        return self.free + self.locked

    @property
    def is_empty(self) -> bool:
        """free, locked 모두 0인지 여부"""
        return self.free <= ZERO and self.locked <= ZERO


@dataclass(frozen=True)
class Account:
    """Spot 계좌 정보

    Attributes:
        balances: 전체 자산 잔고 (0 잔고 포함, 거래소 응답 그대로)
        maker_commission: 메이커 수수료 (bps)
        taker_commission: 테이커 수수료 (bps)
        can_trade: 거래 가능 여부
        can_withdraw: 출금 가능 여부
        can_deposit: 입금 가능 여부
        account_type: 계좌 유형 (SPOT 등)
        update_time: 마지막 업데이트 시간
    """

    balances: list[Balance] = field(default_factory=list)
    maker_commission: int = 0
    taker_commission: int = 0
    can_trade: bool = False
    can_withdraw: bool = False
    can_deposit: bool = False
    account_type: str = "SPOT"
    update_time: datetime | None = None


@dataclass(frozen=True)
class Order:
    """주문 정보

    Attributes:
        order_id: 거래소 주문 ID
        client_order_id: 클라이언트 주문 ID
        symbol: 거래 심볼
        side: 주문 방향 (BUY/SELL)
        order_type: 주문 유형 (MARKET/LIMIT)
        status: 주문 상태
        original_qty: 원래 주문 수량
        executed_qty: 체결된 수량
        cummulative_quote_qty: 누적 체결 금액 (Binance 철자 그대로)
        price: 지정가 (LIMIT 주문)
        stop_price: 트리거 가격
        time_in_force: 주문 유효 기간
        created_at: 주문 생성 시간
        updated_at: 주문 업데이트 시간
    """

    order_id: str
    client_order_id: str
    symbol: str
    side: str
    order_type: str
    status: str
    original_qty: Decimal
    executed_qty: Decimal = ZERO
    cummulative_quote_qty: Decimal = ZERO
    price: Decimal | None = None
    stop_price: Decimal | None = None
    time_in_force: str = TimeInForce.GTC.value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def remaining_qty(self) -> Decimal:
        """잔여 수량"""
        return self.original_qty - self.executed_qty

    @property
    def is_filled(self) -> bool:
        """완전 체결 여부"""
        return self.status == OrderStatus.FILLED.value

    @property
    def is_open(self) -> bool:
        """오픈 주문 여부 (NEW 또는 PARTIALLY_FILLED)"""
        return self.status in (
            OrderStatus.NEW.value,
            OrderStatus.PARTIALLY_FILLED.value,
        )

    @property
    def timestamp_ms(self) -> int:
        """주문 생성 시간 (밀리초, 없으면 0)"""
        if self.created_at is None:
            return 0
        return to_timestamp_ms(self.created_at)


@dataclass(frozen=True)
class Kline:
    """캔들스틱 (OHLCV)

    시간 필드는 거래소 원본 밀리초 타임스탬프 유지.
    """

    open_time: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    close_time: int
    quote_volume: Decimal = ZERO
    trades: int = 0
    taker_buy_base_volume: Decimal = ZERO
    taker_buy_quote_volume: Decimal = ZERO


@dataclass(frozen=True)
class SymbolPrice:
    """심볼 현재가"""

    symbol: str
    price: Decimal


@dataclass(frozen=True)
class LotSizeFilter:
    """수량 단위 제약 (LOT_SIZE 필터)

    심볼/필터가 없으면 모든 값이 0인 zero value 사용.
    """

    min_qty: Decimal = ZERO
    max_qty: Decimal = ZERO
    step_size: Decimal = ZERO

    @property
    def is_zero(self) -> bool:
        return self == LotSizeFilter()


@dataclass(frozen=True)
class PriceFilter:
    """가격 단위 제약 (PRICE_FILTER 필터)"""

    min_price: Decimal = ZERO
    max_price: Decimal = ZERO
    tick_size: Decimal = ZERO

    @property
    def is_zero(self) -> bool:
        return self == PriceFilter()


@dataclass(frozen=True)
class TradeEvent:
    """집계 체결 (aggTrade)

    REST aggTrades 응답과 WebSocket aggTrade 스트림 모두 이 모델로 변환.

    Attributes:
        symbol: 거래 심볼
        agg_trade_id: 집계 체결 ID
        price: 체결 가격
        quantity: 체결 수량
        first_trade_id: 첫 체결 ID
        last_trade_id: 마지막 체결 ID
        trade_time: 체결 시간 (밀리초)
        is_buyer_maker: 매수자가 메이커인지 여부
        event_time: 스트림 이벤트 시간 (밀리초, REST 응답은 None)
    """

    symbol: str
    agg_trade_id: int
    price: Decimal
    quantity: Decimal
    first_trade_id: int
    last_trade_id: int
    trade_time: int
    is_buyer_maker: bool = False
    event_time: int | None = None


@dataclass
class OrderRequest:
    """주문 요청

    place_order 메서드에 전달되는 주문 요청 정보.
    시장가 주문은 기준 자산 수량(quantity) 또는 호가 자산 금액(quote_order_qty)
    중 정확히 하나를 지정.

    Attributes:
        symbol: 거래 심볼
        side: 주문 방향
        order_type: 주문 유형
        quantity: 주문 수량 (기준 자산)
        quote_order_qty: 주문 금액 (호가 자산, MARKET 전용)
        price: 지정가 (LIMIT 주문 필수)
        client_order_id: 클라이언트 주문 ID (선택)
        time_in_force: 주문 유효 기간 (LIMIT 전용)
    """

    symbol: str
    side: str  # BUY / SELL
    order_type: str  # MARKET / LIMIT
    quantity: Decimal | None = None
    quote_order_qty: Decimal | None = None
    price: Decimal | None = None
    client_order_id: str | None = None
    time_in_force: str = TimeInForce.GTC.value

    def __post_init__(self) -> None:
        """유효성 검증"""
        # Enum 입력 허용 (문자열 값으로 정규화)
        for name in ("side", "order_type", "time_in_force"):
            value = getattr(self, name)
            if isinstance(value, Enum):
                setattr(self, name, value.value)

        if self.side not in (OrderSide.BUY.value, OrderSide.SELL.value):
            raise ValueError(f"invalid side: {self.side}")

        if (self.quantity is None) == (self.quote_order_qty is None):
            raise ValueError("exactly one of quantity or quote_order_qty is required")

        amount = self.quantity if self.quantity is not None else self.quote_order_qty
        if amount is not None and amount <= ZERO:
            raise ValueError("order amount must be positive")

        if self.order_type == OrderType.LIMIT.value:
            # LIMIT 주문은 가격과 기준 자산 수량 필수
            if self.price is None:
                raise ValueError("price is required for LIMIT orders")
            if self.quantity is None:
                raise ValueError("quantity is required for LIMIT orders")
        elif self.order_type == OrderType.MARKET.value:
            if self.price is not None:
                raise ValueError("price is not allowed for MARKET orders")
        else:
            raise ValueError(f"unsupported order type: {self.order_type}")

        if self.price is not None and self.price <= ZERO:
            raise ValueError("price must be positive")

    @classmethod
    def limit(
        cls,
        symbol: str,
        side: str,
        quantity: Decimal,
        price: Decimal,
        client_order_id: str | None = None,
    ) -> "OrderRequest":
        """지정가 주문 생성 (GTC)"""
        return cls(
            symbol=symbol,
            side=side,
            order_type=OrderType.LIMIT.value,
            quantity=quantity,
            price=price,
            client_order_id=client_order_id,
        )

    @classmethod
    def market(
        cls,
        symbol: str,
        side: str,
        quantity: Decimal,
        client_order_id: str | None = None,
    ) -> "OrderRequest":
        """시장가 주문 생성 (기준 자산 수량)"""
        return cls(
            symbol=symbol,
            side=side,
            order_type=OrderType.MARKET.value,
            quantity=quantity,
            client_order_id=client_order_id,
        )

    @classmethod
    def market_quote(
        cls,
        symbol: str,
        side: str,
        quote_order_qty: Decimal,
        client_order_id: str | None = None,
    ) -> "OrderRequest":
        """시장가 주문 생성 (호가 자산 금액, 예: 100 USDT 만큼 매수)"""
        return cls(
            symbol=symbol,
            side=side,
            order_type=OrderType.MARKET.value,
            quote_order_qty=quote_order_qty,
            client_order_id=client_order_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (API 요청용, 수치는 문자열)"""
        result: dict[str, Any] = {
            "symbol": self.symbol,
            "side": self.side,
            "type": self.order_type,
        }

        if self.order_type == OrderType.LIMIT.value:
            result["timeInForce"] = self.time_in_force

        if self.quantity is not None:
            result["quantity"] = decimal_to_str(self.quantity)

        if self.quote_order_qty is not None:
            result["quoteOrderQty"] = decimal_to_str(self.quote_order_qty)

        if self.price is not None:
            result["price"] = decimal_to_str(self.price)

        if self.client_order_id is not None:
            result["newClientOrderId"] = self.client_order_id

        return result
