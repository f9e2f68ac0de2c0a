"""
Mock 거래소 전송 계층

테스트용 in-memory Spot 거래소.
IRestTransport, IStreamTransport Protocol 준수하여
BinanceRestClient / BinanceAggTradeStream에 그대로 주입 가능.
"""

import asyncio
import hashlib
import hmac
import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from adapters.binance.errors import TransportError
from adapters.binance.transport import RestResponse
from core.constants import ApiPaths
from core.types import OrderStatus, OrderType
from core.utils.timezone import now_ms


@dataclass
class MockRequest:
    """기록된 요청"""

    method: str
    path: str
    params: dict[str, str]
    headers: dict[str, str]
    query_string: str = ""


@dataclass
class MockState:
    """Mock 상태 (메모리 내 저장)

    가격/잔고/주문은 거래소 응답 JSON 형식 그대로 보관.
    """

    # 현재가 (symbol -> 가격 문자열, 삽입 순서 = 응답 순서)
    prices: dict[str, str] = field(default_factory=dict)

    # 캔들스틱 행 (symbol -> 거래소 행 목록, 저장 순서 그대로 응답)
    klines: dict[str, list[list[Any]]] = field(default_factory=dict)

    # 집계 체결 (symbol -> aggTrades 항목 목록)
    agg_trades: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    # exchangeInfo 심볼 항목
    symbols: list[dict[str, Any]] = field(default_factory=list)

    # 잔고 (asset -> {"asset", "free", "locked"})
    balances: dict[str, dict[str, str]] = field(default_factory=dict)

    # 주문 (orderId -> 주문 JSON)
    orders: dict[int, dict[str, Any]] = field(default_factory=dict)

    # 서버 시간 (None이면 현재 시간)
    server_time: int | None = None

    # 서명 검증용 시크릿 (None이면 서명 존재 여부만 확인)
    api_secret: str | None = None

    # 응답 헤더에 실리는 요청 가중치
    used_weight: int = 0

    # 시뮬레이션 옵션
    fail_next: RestResponse | None = None
    transport_error_next: bool = False

    # 주문 카운터
    order_counter: int = 0


class MockRestTransport:
    """Mock REST 전송 계층

    IRestTransport Protocol 구현.
    URL 경로 기준으로 Spot 엔드포인트를 흉내 냄.

    사용 예시:
    ```python
    transport = MockRestTransport()
    transport.set_price("BTCUSDT", "43000.00")
    transport.set_balance("USDT", "1000")

    client = BinanceRestClient("https://mock", "key", "secret", transport=transport)
    ```
    """

    SIGNED_PATHS = {
        ApiPaths.ORDER,
        ApiPaths.ORDER_TEST,
        ApiPaths.OPEN_ORDERS,
        ApiPaths.ALL_ORDERS,
        ApiPaths.ACCOUNT,
    }

    def __init__(self, state: MockState | None = None):
        self.state = state or MockState()
        self.requests: list[MockRequest] = []
        self.closed = False

    # -------------------------------------------------------------------------
    # 상태 조작 메서드 (테스트용)
    # -------------------------------------------------------------------------

    def set_price(self, symbol: str, price: str) -> None:
        """현재가 설정"""
        self.state.prices[symbol] = price

    def set_balance(self, asset: str, free: str, locked: str = "0") -> None:
        """잔고 설정"""
        self.state.balances[asset] = {"asset": asset, "free": free, "locked": locked}

    def add_kline(
        self,
        symbol: str,
        open_time: int,
        open_price: str = "1",
        high: str = "1",
        low: str = "1",
        close: str = "1",
        volume: str = "0",
    ) -> None:
        """캔들스틱 행 추가 (추가 순서 그대로 응답)"""
        self.state.klines.setdefault(symbol, []).append(
            [
                open_time,
                open_price,
                high,
                low,
                close,
                volume,
                open_time + 59_999,
                "0",
                0,
                "0",
                "0",
                "0",
            ]
        )

    def add_agg_trade(
        self,
        symbol: str,
        trade_time: int,
        price: str,
        quantity: str = "1",
        is_buyer_maker: bool = False,
    ) -> None:
        """집계 체결 추가"""
        trades = self.state.agg_trades.setdefault(symbol, [])
        trade_id = len(trades) + 1
        trades.append(
            {
                "a": trade_id,
                "p": price,
                "q": quantity,
                "f": trade_id,
                "l": trade_id,
                "T": trade_time,
                "m": is_buyer_maker,
                "M": True,
            }
        )

    def add_symbol(self, symbol: str, filters: list[dict[str, Any]] | None = None) -> None:
        """exchangeInfo 심볼 추가"""
        self.state.symbols.append(
            {"symbol": symbol, "status": "TRADING", "filters": filters or []}
        )

    def add_order(
        self,
        symbol: str,
        status: str,
        time: int,
        side: str = "BUY",
        order_type: str = "LIMIT",
        quantity: str = "1",
        price: str = "0",
    ) -> dict[str, Any]:
        """기존 주문 추가 (주문 내역 시나리오 구성용)"""
        self.state.order_counter += 1
        order_id = self.state.order_counter
        executed = quantity if status == OrderStatus.FILLED.value else "0"
        order = {
            "symbol": symbol,
            "orderId": order_id,
            "orderListId": -1,
            "clientOrderId": f"mock_client_{order_id}",
            "price": price,
            "origQty": quantity,
            "executedQty": executed,
            "cummulativeQuoteQty": "0",
            "status": status,
            "timeInForce": "GTC",
            "type": order_type,
            "side": side,
            "stopPrice": "0",
            "time": time,
            "updateTime": time,
            "isWorking": True,
        }
        self.state.orders[order_id] = order
        return order

    def set_fail_next(
        self,
        status_code: int = 400,
        code: int = -1013,
        message: str = "Mock error",
        headers: dict[str, str] | None = None,
    ) -> None:
        """다음 요청을 {code, msg} 에러 응답으로 실패시킴"""
        self.state.fail_next = RestResponse(
            status_code=status_code,
            text=json.dumps({"code": code, "msg": message}),
            headers=headers or {},
        )

    def set_raw_next(self, status_code: int, text: str, headers: dict[str, str] | None = None) -> None:
        """다음 요청의 응답 본문을 그대로 지정"""
        self.state.fail_next = RestResponse(
            status_code=status_code,
            text=text,
            headers=headers or {},
        )

    def set_transport_error_next(self) -> None:
        """다음 요청을 전송 실패로 처리"""
        self.state.transport_error_next = True

    def requests_to(self, path: str) -> list[MockRequest]:
        """특정 경로로 보낸 요청 목록"""
        return [r for r in self.requests if r.path == path]

    # -------------------------------------------------------------------------
    # IRestTransport
    # -------------------------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> RestResponse:
        parts = urlsplit(url)
        params = dict(parse_qsl(parts.query, keep_blank_values=True))
        self.requests.append(
            MockRequest(
                method=method,
                path=parts.path,
                params=params,
                headers=dict(headers or {}),
                query_string=parts.query,
            )
        )

        if self.state.transport_error_next:
            self.state.transport_error_next = False
            raise TransportError(f"mock transport failure: {method} {url}")

        if self.state.fail_next is not None:
            response, self.state.fail_next = self.state.fail_next, None
            return response

        if parts.path in self.SIGNED_PATHS:
            auth_error = self._check_auth(parts.query, params, headers or {})
            if auth_error is not None:
                return auth_error

        handler = self._routes().get((method.upper(), parts.path))
        if handler is None:
            return RestResponse(status_code=404, text="<html>Not Found</html>")

        status_code, body = handler(params)
        return RestResponse(
            status_code=status_code,
            text=json.dumps(body),
            headers={"X-MBX-USED-WEIGHT-1m": str(self.state.used_weight)},
        )

    async def close(self) -> None:
        self.closed = True

    # -------------------------------------------------------------------------
    # 엔드포인트 구현
    # -------------------------------------------------------------------------

    def _routes(self) -> dict[tuple[str, str], Any]:
        return {
            ("GET", ApiPaths.PING): lambda p: (200, {}),
            ("GET", ApiPaths.TIME): self._time,
            ("GET", ApiPaths.TICKER_PRICE): self._ticker_price,
            ("GET", ApiPaths.KLINES): self._klines,
            ("GET", ApiPaths.AGG_TRADES): self._agg_trades,
            ("GET", ApiPaths.EXCHANGE_INFO): self._exchange_info,
            ("POST", ApiPaths.ORDER): self._new_order,
            ("POST", ApiPaths.ORDER_TEST): self._test_order,
            ("GET", ApiPaths.ORDER): self._query_order,
            ("GET", ApiPaths.OPEN_ORDERS): self._open_orders,
            ("GET", ApiPaths.ALL_ORDERS): self._all_orders,
            ("GET", ApiPaths.ACCOUNT): self._account,
        }

    def _check_auth(
        self,
        query: str,
        params: dict[str, str],
        headers: dict[str, str],
    ) -> RestResponse | None:
        """API 키 헤더와 서명 확인"""
        if not headers.get("X-MBX-APIKEY"):
            return self._error(401, -2014, "API-key format invalid.")

        signature = params.get("signature")
        if not signature or "timestamp" not in params:
            return self._error(400, -1102, "Mandatory parameter 'signature' was not sent.")

        if self.state.api_secret is not None:
            payload = query.rsplit("&signature=", 1)[0]
            expected = hmac.new(
                self.state.api_secret.encode("utf-8"),
                payload.encode("utf-8"),
                hashlib.sha256,
            ).hexdigest()
            if signature != expected:
                return self._error(400, -1022, "Signature for this request is not valid.")

        return None

    @staticmethod
    def _error(status_code: int, code: int, message: str) -> RestResponse:
        return RestResponse(
            status_code=status_code,
            text=json.dumps({"code": code, "msg": message}),
        )

    def _time(self, params: dict[str, str]) -> tuple[int, Any]:
        server_time = self.state.server_time if self.state.server_time is not None else now_ms()
        return 200, {"serverTime": server_time}

    def _ticker_price(self, params: dict[str, str]) -> tuple[int, Any]:
        return 200, [
            {"symbol": symbol, "price": price}
            for symbol, price in self.state.prices.items()
        ]

    def _klines(self, params: dict[str, str]) -> tuple[int, Any]:
        rows = list(self.state.klines.get(params.get("symbol", ""), []))

        if "startTime" in params:
            rows = [r for r in rows if r[0] >= int(params["startTime"])]
        if "endTime" in params:
            rows = [r for r in rows if r[0] <= int(params["endTime"])]
        if "limit" in params:
            rows = rows[: int(params["limit"])]

        return 200, rows

    def _agg_trades(self, params: dict[str, str]) -> tuple[int, Any]:
        trades = list(self.state.agg_trades.get(params.get("symbol", ""), []))

        if "startTime" in params:
            trades = [t for t in trades if t["T"] >= int(params["startTime"])]
        if "endTime" in params:
            trades = [t for t in trades if t["T"] <= int(params["endTime"])]
        if "limit" in params:
            trades = trades[: int(params["limit"])]

        return 200, trades

    def _exchange_info(self, params: dict[str, str]) -> tuple[int, Any]:
        symbols = self.state.symbols
        if "symbol" in params:
            symbols = [s for s in symbols if s["symbol"] == params["symbol"]]
        return 200, {"timezone": "UTC", "serverTime": now_ms(), "symbols": symbols}

    def _validate_order(self, params: dict[str, str]) -> tuple[int, Any] | None:
        """주문 파라미터 검증 (실패 시 에러 응답)"""
        for name in ("symbol", "side", "type"):
            if name not in params:
                return 400, {"code": -1102, "msg": f"Mandatory parameter '{name}' was not sent."}

        if self.state.prices and params["symbol"] not in self.state.prices:
            return 400, {"code": -1121, "msg": "Invalid symbol."}

        if params["type"] == OrderType.LIMIT.value and "price" not in params:
            return 400, {"code": -1102, "msg": "Mandatory parameter 'price' was not sent."}

        if "quantity" not in params and "quoteOrderQty" not in params:
            return 400, {"code": -1102, "msg": "Mandatory parameter 'quantity' was not sent."}

        return None

    def _test_order(self, params: dict[str, str]) -> tuple[int, Any]:
        error = self._validate_order(params)
        if error is not None:
            return error
        return 200, {}

    def _new_order(self, params: dict[str, str]) -> tuple[int, Any]:
        error = self._validate_order(params)
        if error is not None:
            return error

        self.state.order_counter += 1
        order_id = self.state.order_counter
        transact_time = now_ms()

        # 시장가는 즉시 전량 체결, 지정가는 오픈 상태
        is_market = params["type"] == OrderType.MARKET.value
        market_price = Decimal(self.state.prices.get(params["symbol"], "0"))

        if "quoteOrderQty" in params:
            quote_qty = Decimal(params["quoteOrderQty"])
            quantity = quote_qty / market_price if market_price > 0 else Decimal("0")
        else:
            quantity = Decimal(params["quantity"])
            quote_qty = quantity * market_price

        status = OrderStatus.FILLED.value if is_market else OrderStatus.NEW.value
        executed = quantity if is_market else Decimal("0")

        order = {
            "symbol": params["symbol"],
            "orderId": order_id,
            "orderListId": -1,
            "clientOrderId": params.get("newClientOrderId", f"mock_client_{order_id}"),
            "price": params.get("price", "0"),
            "origQty": str(quantity),
            "executedQty": str(executed),
            "cummulativeQuoteQty": str(quote_qty if is_market else Decimal("0")),
            "status": status,
            "timeInForce": params.get("timeInForce", "GTC"),
            "type": params["type"],
            "side": params["side"],
            "stopPrice": "0",
            "time": transact_time,
            "updateTime": transact_time,
            "isWorking": True,
        }
        self.state.orders[order_id] = order

        response = {k: v for k, v in order.items() if k not in ("time", "updateTime", "stopPrice", "isWorking")}
        response["transactTime"] = transact_time
        return 200, response

    def _query_order(self, params: dict[str, str]) -> tuple[int, Any]:
        order = self.state.orders.get(int(params.get("orderId", "0")))
        if order is None or order["symbol"] != params.get("symbol"):
            return 400, {"code": -2013, "msg": "Order does not exist."}
        return 200, order

    def _open_orders(self, params: dict[str, str]) -> tuple[int, Any]:
        open_statuses = (OrderStatus.NEW.value, OrderStatus.PARTIALLY_FILLED.value)
        orders = [o for o in self.state.orders.values() if o["status"] in open_statuses]
        if "symbol" in params:
            orders = [o for o in orders if o["symbol"] == params["symbol"]]
        return 200, orders

    def _all_orders(self, params: dict[str, str]) -> tuple[int, Any]:
        if "symbol" not in params:
            return 400, {"code": -1102, "msg": "Mandatory parameter 'symbol' was not sent."}

        orders = [o for o in self.state.orders.values() if o["symbol"] == params["symbol"]]
        if "startTime" in params:
            orders = [o for o in orders if o["time"] >= int(params["startTime"])]
        if "endTime" in params:
            orders = [o for o in orders if o["time"] <= int(params["endTime"])]
        if "limit" in params:
            orders = orders[-int(params["limit"]):]
        return 200, orders

    def _account(self, params: dict[str, str]) -> tuple[int, Any]:
        return 200, {
            "makerCommission": 10,
            "takerCommission": 10,
            "buyerCommission": 0,
            "sellerCommission": 0,
            "canTrade": True,
            "canWithdraw": True,
            "canDeposit": True,
            "updateTime": now_ms(),
            "accountType": "SPOT",
            "balances": list(self.state.balances.values()),
            "permissions": ["SPOT"],
        }


# 스트림 종료 표식
_END = object()


class MockStreamConnection:
    """Mock WebSocket 연결

    IStreamConnection Protocol 구현.
    미리 넣어둔 프레임을 순서대로 내보내고, 이후 정상 종료 또는 에러 발생.
    """

    def __init__(self, url: str):
        self.url = url
        self.closed = False
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, frame: str | dict[str, Any]) -> None:
        """프레임 주입 (dict는 JSON 문자열로 변환)"""
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._queue.put_nowait(frame)

    def push_error(self, error: BaseException) -> None:
        """수신 중 에러 주입"""
        self._queue.put_nowait(error)

    def end(self) -> None:
        """서버 측 정상 종료"""
        self._queue.put_nowait(_END)

    def __aiter__(self) -> "MockStreamConnection":
        return self

    async def __anext__(self) -> str:
        if self.closed:
            raise StopAsyncIteration

        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_END)


class MockStreamTransport:
    """Mock WebSocket 전송 계층

    IStreamTransport Protocol 구현.

    사용 예시:
    ```python
    transport = MockStreamTransport(frames=[{"e": "aggTrade", ...}], hold_open=True)
    stream = await subscribe_agg_trades("wss://mock", "BTCUSDT", on_event, on_error, transport)
    ```

    Args:
        frames: 연결 직후 내보낼 프레임
        error: 프레임 이후 발생시킬 에러 (None이면 정상 종료)
        hold_open: True면 프레임 이후에도 연결 유지 (close()까지)
        fail_connect: True면 연결 시 TransportError
    """

    def __init__(
        self,
        frames: list[str | dict[str, Any]] | None = None,
        error: BaseException | None = None,
        hold_open: bool = False,
        fail_connect: bool = False,
    ):
        self.frames = frames or []
        self.error = error
        self.hold_open = hold_open
        self.fail_connect = fail_connect
        self.connections: list[MockStreamConnection] = []

    @property
    def last_connection(self) -> MockStreamConnection | None:
        return self.connections[-1] if self.connections else None

    async def connect(self, url: str) -> MockStreamConnection:
        if self.fail_connect:
            raise TransportError(f"mock connect failure: {url}")

        connection = MockStreamConnection(url)
        for frame in self.frames:
            connection.push(frame)

        if self.error is not None:
            connection.push_error(self.error)
        elif not self.hold_open:
            connection.end()

        self.connections.append(connection)
        return connection
