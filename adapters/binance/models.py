"""
Binance API 응답 -> 공통 모델 변환

Binance Spot API 응답을 adapters.models의 표준 모델로 변환.
모든 금액/수량은 문자열에서 Decimal로 변환 (float 경유 금지).
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from adapters.binance.errors import ParseError
from adapters.models import (
    ZERO,
    Account,
    Balance,
    Kline,
    LotSizeFilter,
    Order,
    PriceFilter,
    SymbolPrice,
    TradeEvent,
)
from core.utils.timezone import utc_from_timestamp_ms


def to_decimal(value: Any, field: str) -> Decimal:
    """거래소 숫자 문자열 -> Decimal

    Raises:
        ParseError: 숫자가 아닌 문자열 / float 값 등
    """
    # float는 이미 정밀도를 잃은 값이므로 허용하지 않음
    if isinstance(value, float) or isinstance(value, bool):
        raise ParseError(field, value)
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ParseError(field, value) from e
    if not result.is_finite():
        raise ParseError(field, value)
    return result


def _optional_decimal(data: dict[str, Any], key: str) -> Decimal | None:
    """0 또는 누락 값은 None"""
    raw = data.get(key)
    if raw is None:
        return None
    value = to_decimal(raw, key)
    return value if value != ZERO else None


def parse_balance(data: dict[str, Any]) -> Balance:
    """Binance 잔고 항목 -> Balance 모델

    GET /api/v3/account 응답의 balances 항목:
    {"asset": "BTC", "free": "4723846.89208129", "locked": "0.00000000"}
    """
    return Balance(
        asset=data["asset"],
        free=to_decimal(data.get("free", "0"), "free"),
        locked=to_decimal(data.get("locked", "0"), "locked"),
    )


def parse_account(data: dict[str, Any]) -> Account:
    """Binance 계좌 응답 -> Account 모델

    GET /api/v3/account 응답 예시:
    {
        "makerCommission": 15,
        "takerCommission": 15,
        "canTrade": true,
        "canWithdraw": true,
        "canDeposit": true,
        "updateTime": 123456789,
        "accountType": "SPOT",
        "balances": [
            {"asset": "BTC", "free": "4723846.89208129", "locked": "0.00000000"},
            {"asset": "LTC", "free": "4763368.68006011", "locked": "0.00000000"}
        ],
        "permissions": ["SPOT"]
    }
    """
    update_time = None
    if data.get("updateTime"):
        update_time = utc_from_timestamp_ms(data["updateTime"])

    return Account(
        balances=[parse_balance(item) for item in data.get("balances", [])],
        maker_commission=int(data.get("makerCommission", 0)),
        taker_commission=int(data.get("takerCommission", 0)),
        can_trade=bool(data.get("canTrade", False)),
        can_withdraw=bool(data.get("canWithdraw", False)),
        can_deposit=bool(data.get("canDeposit", False)),
        account_type=data.get("accountType", "SPOT"),
        update_time=update_time,
    )


def parse_order(data: dict[str, Any]) -> Order:
    """Binance 주문 응답 -> Order 모델

    GET /api/v3/allOrders, /api/v3/openOrders, /api/v3/order 응답 예시:
    {
        "symbol": "LTCBTC",
        "orderId": 1,
        "orderListId": -1,
        "clientOrderId": "myOrder1",
        "price": "0.1",
        "origQty": "1.0",
        "executedQty": "0.0",
        "cummulativeQuoteQty": "0.0",
        "status": "NEW",
        "timeInForce": "GTC",
        "type": "LIMIT",
        "side": "BUY",
        "stopPrice": "0.0",
        "time": 1499827319559,
        "updateTime": 1499827319559,
        "isWorking": true
    }

    POST /api/v3/order 응답은 time 대신 transactTime 포함.
    """
    if not isinstance(data, dict):
        raise ParseError("order", data)

    try:
        return _build_order(data)
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise ParseError("order", data) from e


def _build_order(data: dict[str, Any]) -> Order:
    # 시간 변환 (주문 생성 응답은 transactTime만 존재)
    created_ms = data.get("time", data.get("transactTime"))
    created_at = utc_from_timestamp_ms(created_ms) if created_ms else None

    updated_ms = data.get("updateTime", created_ms)
    updated_at = utc_from_timestamp_ms(updated_ms) if updated_ms else None

    return Order(
        order_id=str(data["orderId"]),
        client_order_id=data.get("clientOrderId", ""),
        symbol=data["symbol"],
        side=data["side"],
        order_type=data.get("type", "UNKNOWN"),
        status=data["status"],
        original_qty=to_decimal(data["origQty"], "origQty"),
        executed_qty=to_decimal(data.get("executedQty", "0"), "executedQty"),
        cummulative_quote_qty=to_decimal(
            data.get("cummulativeQuoteQty", "0"), "cummulativeQuoteQty"
        ),
        price=_optional_decimal(data, "price"),
        stop_price=_optional_decimal(data, "stopPrice"),
        time_in_force=data.get("timeInForce", "GTC"),
        created_at=created_at,
        updated_at=updated_at,
    )


def parse_kline(item: list[Any]) -> Kline:
    """Binance kline 행 -> Kline 모델

    GET /api/v3/klines 응답 행 포맷:
    [open_time, open, high, low, close, volume, close_time,
     quote_volume, trades, taker_buy_base_volume, taker_buy_quote_volume, ignore]
    """
    if not isinstance(item, list) or len(item) < 7:
        raise ParseError("kline", item)

    try:
        return _build_kline(item)
    except (TypeError, ValueError) as e:
        raise ParseError("kline", item) from e


def _build_kline(item: list[Any]) -> Kline:
    return Kline(
        open_time=int(item[0]),
        open=to_decimal(item[1], "open"),
        high=to_decimal(item[2], "high"),
        low=to_decimal(item[3], "low"),
        close=to_decimal(item[4], "close"),
        volume=to_decimal(item[5], "volume"),
        close_time=int(item[6]),
        quote_volume=to_decimal(item[7], "quote_volume") if len(item) > 7 else ZERO,
        trades=int(item[8]) if len(item) > 8 else 0,
        taker_buy_base_volume=(
            to_decimal(item[9], "taker_buy_base_volume") if len(item) > 9 else ZERO
        ),
        taker_buy_quote_volume=(
            to_decimal(item[10], "taker_buy_quote_volume") if len(item) > 10 else ZERO
        ),
    )


def parse_symbol_price(data: dict[str, Any]) -> SymbolPrice:
    """GET /api/v3/ticker/price 항목 -> SymbolPrice

    {"symbol": "LTCBTC", "price": "4.00000200"}
    """
    return SymbolPrice(
        symbol=data["symbol"],
        price=to_decimal(data["price"], "price"),
    )


def parse_agg_trade(data: dict[str, Any], symbol: str | None = None) -> TradeEvent:
    """Binance 집계 체결 -> TradeEvent 모델

    REST GET /api/v3/aggTrades 항목 (symbol 필드 없음):
    {
        "a": 26129,         # agg_trade_id
        "p": "0.01633102",  # price
        "q": "4.70443515",  # quantity
        "f": 27781,         # first_trade_id
        "l": 27781,         # last_trade_id
        "T": 1498793709153, # trade_time
        "m": true,          # is_buyer_maker
        "M": true
    }

    WebSocket <symbol>@aggTrade 이벤트는 위 필드에 더해
    "e": "aggTrade", "E": event_time, "s": symbol 포함.
    """
    if not isinstance(data, dict):
        raise ParseError("aggTrade", data)

    event_symbol = data.get("s") or symbol
    if not event_symbol:
        raise ParseError("symbol", data)

    try:
        return TradeEvent(
            symbol=event_symbol,
            agg_trade_id=int(data["a"]),
            price=to_decimal(data["p"], "price"),
            quantity=to_decimal(data["q"], "quantity"),
            first_trade_id=int(data.get("f", data["a"])),
            last_trade_id=int(data.get("l", data["a"])),
            trade_time=int(data["T"]),
            is_buyer_maker=bool(data.get("m", False)),
            event_time=int(data["E"]) if "E" in data else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError("aggTrade", data) from e


def find_symbol_info(exchange_info: dict[str, Any], symbol: str) -> dict[str, Any] | None:
    """exchangeInfo에서 심볼 정보 선형 검색"""
    for item in exchange_info.get("symbols", []):
        if item.get("symbol") == symbol:
            return item
    return None


def find_filter(symbol_info: dict[str, Any], filter_type: str) -> dict[str, Any] | None:
    """심볼 정보에서 필터 선형 검색 (LOT_SIZE, PRICE_FILTER 등)"""
    for item in symbol_info.get("filters", []):
        if item.get("filterType") == filter_type:
            return item
    return None


def parse_lot_size(data: dict[str, Any]) -> LotSizeFilter:
    """LOT_SIZE 필터 -> LotSizeFilter

    {"filterType": "LOT_SIZE", "minQty": "0.00100000",
     "maxQty": "100000.00000000", "stepSize": "0.00100000"}
    """
    return LotSizeFilter(
        min_qty=to_decimal(data.get("minQty", "0"), "minQty"),
        max_qty=to_decimal(data.get("maxQty", "0"), "maxQty"),
        step_size=to_decimal(data.get("stepSize", "0"), "stepSize"),
    )


def parse_price_filter(data: dict[str, Any]) -> PriceFilter:
    """PRICE_FILTER 필터 -> PriceFilter

    {"filterType": "PRICE_FILTER", "minPrice": "0.00000100",
     "maxPrice": "100000.00000000", "tickSize": "0.00000100"}
    """
    return PriceFilter(
        min_price=to_decimal(data.get("minPrice", "0"), "minPrice"),
        max_price=to_decimal(data.get("maxPrice", "0"), "maxPrice"),
        tick_size=to_decimal(data.get("tickSize", "0"), "tickSize"),
    )

