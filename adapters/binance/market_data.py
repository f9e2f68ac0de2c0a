"""
Binance 시장 데이터 조회

공개 엔드포인트(인증 불필요): 현재가, 캔들스틱, 집계 체결, 거래 규칙 필터.
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.binance.errors import NoTradesError
from adapters.binance.models import (
    find_filter,
    find_symbol_info,
    parse_agg_trade,
    parse_kline,
    parse_lot_size,
    parse_price_filter,
    parse_symbol_price,
)
from adapters.binance.rest_client import BinanceRestClient
from adapters.models import (
    Kline,
    LotSizeFilter,
    PriceFilter,
    SymbolPrice,
    TradeEvent,
    decimal_to_str,
)
from core.constants import ApiPaths, Defaults

logger = logging.getLogger(__name__)


class BinanceMarketData:
    """시장 데이터 조회

    Args:
        rest_client: Binance REST 클라이언트

    사용 예시:
    ```python
    market = BinanceMarketData(rest_client)

    price = await market.get_ticker_price("BTCUSDT")
    klines = await market.get_klines("BTCUSDT", "1h", limit=100)
    ```
    """

    # 유효한 interval 목록
    VALID_INTERVALS = {
        "1s", "1m", "3m", "5m", "15m", "30m",
        "1h", "2h", "4h", "6h", "8h", "12h",
        "1d", "3d", "1w", "1M",
    }

    MAX_KLINE_LIMIT = 1000
    MAX_AGG_TRADE_LIMIT = 1000

    def __init__(self, rest_client: BinanceRestClient):
        self.rest_client = rest_client

    # -------------------------------------------------------------------------
    # 현재가
    # -------------------------------------------------------------------------

    async def get_ticker_prices(self) -> list[SymbolPrice]:
        """전체 심볼 현재가 조회 (거래소 응답 순서 유지)"""
        data = await self.rest_client.send("GET", ApiPaths.TICKER_PRICE)
        return [parse_symbol_price(item) for item in data]

    async def get_current_price(self, symbol: str) -> SymbolPrice | None:
        """특정 심볼 현재가 조회

        Returns:
            SymbolPrice 또는 None (상장되지 않은 심볼)
        """
        prices = await self.get_ticker_prices()

        for item in prices:
            if item.symbol == symbol:
                return item

        logger.info("symbol not found", extra={"symbol": symbol})
        return None

    async def get_ticker_price(self, symbol: str) -> str:
        """특정 심볼 현재가 문자열 조회

        심볼이 없으면 에러 없이 빈 문자열 반환.
        """
        item = await self.get_current_price(symbol)
        if item is None:
            return ""
        return decimal_to_str(item.price)

    # -------------------------------------------------------------------------
    # 캔들스틱
    # -------------------------------------------------------------------------

    async def get_klines(
        self,
        symbol: str,
        interval: str,
        start_time: int = 0,
        limit: int = 0,
        end_time: int = 0,
    ) -> list[Kline]:
        """캔들스틱(Kline) 데이터 조회

        Args:
            symbol: 거래 심볼 (예: BTCUSDT)
            interval: 시간 간격 (1m, 5m, 1h, 1d 등)
            start_time: 시작 시간 (밀리초, 0 이하면 미지정)
            limit: 조회 개수 (0 이하면 거래소 기본값, 최대 1000)
            end_time: 종료 시간 (밀리초, 0 이하면 미지정)

        Returns:
            오래된 것부터 최신 순으로 정렬된 Kline 목록

        Raises:
            ValueError: 지원하지 않는 interval
        """
        if interval not in self.VALID_INTERVALS:
            raise ValueError(f"invalid kline interval: {interval}")

        params: dict[str, Any] = {"symbol": symbol, "interval": interval}

        if start_time > 0:
            params["startTime"] = start_time
        if end_time > 0:
            params["endTime"] = end_time
        if limit > 0:
            params["limit"] = min(limit, self.MAX_KLINE_LIMIT)

        data = await self.rest_client.send("GET", ApiPaths.KLINES, params=params)

        klines = [parse_kline(item) for item in data]
        klines.sort(key=lambda k: k.open_time)
        return klines

    # -------------------------------------------------------------------------
    # 집계 체결
    # -------------------------------------------------------------------------

    async def get_agg_trades(
        self,
        symbol: str,
        start_time: int = 0,
        end_time: int = 0,
        limit: int = 0,
    ) -> list[TradeEvent]:
        """집계 체결(aggTrades) 조회

        Args:
            symbol: 거래 심볼
            start_time: 시작 시간 (밀리초, 포함)
            end_time: 종료 시간 (밀리초, 포함)
            limit: 조회 개수 (0 이하면 거래소 기본값 500, 최대 1000)
        """
        params: dict[str, Any] = {"symbol": symbol}

        if start_time > 0:
            params["startTime"] = start_time
        if end_time > 0:
            params["endTime"] = end_time
        if limit > 0:
            params["limit"] = min(limit, self.MAX_AGG_TRADE_LIMIT)

        data = await self.rest_client.send("GET", ApiPaths.AGG_TRADES, params=params)
        return [parse_agg_trade(item, symbol=symbol) for item in data]

    async def get_average_price_at_time(self, symbol: str, time_ms: int) -> str:
        """특정 시점의 평균 체결가 조회

        start_time = end_time = time_ms 구간의 체결 가격 산술 평균.

        Returns:
            소수점 8자리 문자열 (예: "43125.50000000")

        Raises:
            NoTradesError: 해당 시점에 체결이 없는 경우
        """
        trades = await self.get_agg_trades(symbol, start_time=time_ms, end_time=time_ms)

        if not trades:
            logger.info(
                "no trades in window",
                extra={"symbol": symbol, "time_ms": time_ms},
            )
            raise NoTradesError(symbol, time_ms, time_ms)

        total = sum((t.price for t in trades), Decimal("0"))
        average = total / Decimal(len(trades))
        return f"{average:.{Defaults.PRICE_DECIMALS}f}"

    # -------------------------------------------------------------------------
    # 거래 규칙
    # -------------------------------------------------------------------------

    async def get_exchange_info(self, symbol: str | None = None) -> dict[str, Any]:
        """거래소 정보 조회 (심볼별 거래 규칙 포함)

        Args:
            symbol: 특정 심볼 (None이면 전체)
        """
        params = {"symbol": symbol} if symbol else None
        return await self.rest_client.send("GET", ApiPaths.EXCHANGE_INFO, params=params)

    async def _get_symbol_filter(self, symbol: str, filter_type: str) -> dict[str, Any] | None:
        """전체 exchangeInfo에서 심볼 -> 필터 순으로 선형 검색"""
        exchange_info = await self.get_exchange_info()

        symbol_info = find_symbol_info(exchange_info, symbol)
        if symbol_info is None:
            logger.info("symbol not found", extra={"symbol": symbol})
            return None

        symbol_filter = find_filter(symbol_info, filter_type)
        if symbol_filter is None:
            logger.info(
                "filter not found",
                extra={"symbol": symbol, "filter_type": filter_type},
            )
        return symbol_filter

    async def get_lot_size(self, symbol: str) -> LotSizeFilter:
        """LOT_SIZE 필터 조회

        심볼 또는 필터가 없으면 zero value 반환 (에러 아님).
        """
        data = await self._get_symbol_filter(symbol, "LOT_SIZE")
        if data is None:
            return LotSizeFilter()
        return parse_lot_size(data)

    async def get_price_filter(self, symbol: str) -> PriceFilter:
        """PRICE_FILTER 필터 조회

        심볼 또는 필터가 없으면 zero value 반환 (에러 아님).
        """
        data = await self._get_symbol_filter(symbol, "PRICE_FILTER")
        if data is None:
            return PriceFilter()
        return parse_price_filter(data)
