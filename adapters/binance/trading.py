"""
Binance Spot 주문/계좌

서명 엔드포인트(인증 필요): 주문 생성(실거래/테스트), 주문 조회, 계좌 잔고.
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.binance.errors import BinanceApiError, OrderError, RateLimitError
from adapters.binance.models import parse_account, parse_order
from adapters.binance.rest_client import BinanceRestClient
from adapters.models import Account, Balance, Order, OrderRequest
from core.constants import ApiPaths
from core.types import OrderMode, OrderStatus

logger = logging.getLogger(__name__)


class BinanceTrading:
    """주문 및 계좌 조회

    Args:
        rest_client: Binance REST 클라이언트 (API 키 필요)

    사용 예시:
    ```python
    trading = BinanceTrading(rest_client)

    # 테스트 주문 (거래소 검증만, 체결 없음)
    await trading.place_order(
        OrderRequest.limit("BTCUSDT", "SELL", Decimal("0.000204"), Decimal("51700")),
        mode=OrderMode.TEST,
    )

    balances = await trading.get_balances()
    ```
    """

    MAX_ORDER_LIMIT = 1000

    def __init__(self, rest_client: BinanceRestClient):
        self.rest_client = rest_client

    # -------------------------------------------------------------------------
    # 주문 실행
    # -------------------------------------------------------------------------

    async def place_order(
        self,
        request: OrderRequest,
        mode: OrderMode | str = OrderMode.REAL,
    ) -> Order | None:
        """주문 생성

        Args:
            request: 주문 요청 정보
            mode: REAL이면 실제 주문, TEST면 검증 엔드포인트만 호출

        Returns:
            REAL: 생성된 주문 정보
            TEST: None (검증 성공, 주문 없음)

        Raises:
            OrderError: 주문 생성/검증 실패 시
            ValueError: 알 수 없는 mode
        """
        mode = OrderMode(mode)
        params = request.to_dict()
        path = ApiPaths.ORDER_TEST if mode == OrderMode.TEST else ApiPaths.ORDER

        try:
            data = await self.rest_client.send("POST", path, params=params, signed=True)
        except RateLimitError:
            raise
        except BinanceApiError as e:
            logger.error(
                "주문 생성 실패",
                extra={
                    "mode": mode.value,
                    "error_code": e.code,
                    "error_message": e.message,
                    "request": params,
                },
            )
            raise OrderError(code=e.code, message=e.message) from e

        if mode == OrderMode.TEST:
            logger.info(
                "테스트 주문 검증 완료",
                extra={"symbol": request.symbol, "side": request.side, "type": request.order_type},
            )
            return None

        order = parse_order(data)
        logger.info(
            "주문 생성 완료",
            extra={
                "order_id": order.order_id,
                "symbol": order.symbol,
                "side": order.side,
                "type": order.order_type,
                "status": order.status,
                "qty": str(order.original_qty),
            },
        )
        return order

    async def place_limit_order(
        self,
        side: str,
        symbol: str,
        quantity: Decimal,
        price: Decimal,
        mode: OrderMode | str = OrderMode.REAL,
    ) -> Order | None:
        """지정가 주문 (GTC)"""
        request = OrderRequest.limit(symbol=symbol, side=side, quantity=quantity, price=price)
        return await self.place_order(request, mode=mode)

    async def place_market_order(
        self,
        side: str,
        symbol: str,
        quantity: Decimal,
        mode: OrderMode | str = OrderMode.REAL,
    ) -> Order | None:
        """시장가 주문 (기준 자산 수량)"""
        request = OrderRequest.market(symbol=symbol, side=side, quantity=quantity)
        return await self.place_order(request, mode=mode)

    async def place_market_quote_order(
        self,
        side: str,
        symbol: str,
        quote_order_qty: Decimal,
        mode: OrderMode | str = OrderMode.REAL,
    ) -> Order | None:
        """시장가 주문 (호가 자산 금액)"""
        request = OrderRequest.market_quote(
            symbol=symbol, side=side, quote_order_qty=quote_order_qty
        )
        return await self.place_order(request, mode=mode)

    # -------------------------------------------------------------------------
    # 주문 조회
    # -------------------------------------------------------------------------

    async def get_orders(
        self,
        symbol: str | None = None,
        start_time: int = 0,
        end_time: int = 0,
        limit: int = 0,
    ) -> list[Order]:
        """전체 주문 내역 조회 (체결/취소 포함)

        Args:
            symbol: 거래 심볼 (None이면 심볼 파라미터 생략)
            start_time: 시작 시간 (밀리초, 0 이하면 미지정)
            end_time: 종료 시간 (밀리초, 0 이하면 미지정)
            limit: 조회 개수 (0 이하면 거래소 기본값 500, 최대 1000)
        """
        params: dict[str, Any] = {"symbol": symbol}

        if start_time > 0:
            params["startTime"] = start_time
        if end_time > 0:
            params["endTime"] = end_time
        if limit > 0:
            params["limit"] = min(limit, self.MAX_ORDER_LIMIT)

        data = await self.rest_client.send("GET", ApiPaths.ALL_ORDERS, params=params, signed=True)
        return [parse_order(item) for item in data]

    async def get_open_orders(self, symbol: str | None = None) -> list[Order]:
        """오픈 주문 목록 조회

        Args:
            symbol: 거래 심볼 (None이면 전체)
        """
        data = await self.rest_client.send(
            "GET",
            ApiPaths.OPEN_ORDERS,
            params={"symbol": symbol},
            signed=True,
        )
        return [parse_order(item) for item in data]

    async def get_order(self, symbol: str, order_id: str | int) -> Order:
        """특정 주문 조회"""
        data = await self.rest_client.send(
            "GET",
            ApiPaths.ORDER,
            params={"symbol": symbol, "orderId": order_id},
            signed=True,
        )
        return parse_order(data)

    async def get_last_filled_order(self, symbol: str) -> Order | None:
        """가장 최근에 완전 체결된 주문 조회

        전체 주문 중 FILLED 상태이면서 생성 시간이 가장 늦은 주문.

        Returns:
            Order 또는 None (체결된 주문 없음)
        """
        orders = await self.get_orders(symbol)

        last: Order | None = None
        for order in orders:
            if order.status != OrderStatus.FILLED.value:
                continue
            if last is None or order.timestamp_ms > last.timestamp_ms:
                last = order

        return last

    # -------------------------------------------------------------------------
    # 계좌 조회
    # -------------------------------------------------------------------------

    async def get_account(self) -> Account:
        """계좌 정보 조회 (0 잔고 포함)"""
        data = await self.rest_client.send("GET", ApiPaths.ACCOUNT, signed=True)
        return parse_account(data)

    async def get_balances(self) -> list[Balance]:
        """잔고 목록 조회 (free > 0 또는 locked > 0인 자산만)"""
        account = await self.get_account()
        return [balance for balance in account.balances if not balance.is_empty]

    async def get_balance(
        self,
        asset: str,
        balances: list[Balance] | None = None,
    ) -> Balance:
        """특정 자산 잔고 조회

        Args:
            asset: 자산 코드 (예: BTC)
            balances: 이미 조회한 잔고 목록 (None이면 새로 조회)

        Returns:
            Balance (보유하지 않으면 0 잔고)
        """
        if balances is None:
            balances = await self.get_balances()

        for balance in balances:
            if balance.asset == asset:
                return balance

        logger.info("Balance not found", extra={"asset": asset})
        return Balance(asset=asset)
