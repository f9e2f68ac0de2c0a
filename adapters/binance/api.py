"""
Binance Spot API 진입점

REST 클라이언트, 시장 데이터/주문 접근자, 스트림 구독을 하나로 묶은 Facade.
"""

import logging
from typing import Any

from adapters.binance.market_data import BinanceMarketData
from adapters.binance.rest_client import BinanceRestClient
from adapters.binance.trading import BinanceTrading
from adapters.binance.ws_client import BinanceAggTradeStream, subscribe_agg_trades
from adapters.interfaces import (
    ErrorCallback,
    EventCallback,
    IRestTransport,
    IStreamTransport,
)
from core.config.loader import ExchangeConfig, get_settings

logger = logging.getLogger(__name__)


class BinanceApi:
    """Binance Spot API Facade

    Args:
        rest_client: Binance REST 클라이언트
        ws_url: WebSocket 베이스 URL
        stream_transport: WebSocket 전송 계층 (None이면 websockets 사용)

    사용 예시:
    ```python
    async with await BinanceApi.from_settings() as api:
        price = await api.market.get_ticker_price("BTCUSDT")
        balances = await api.trading.get_balances()
    ```
    """

    def __init__(
        self,
        rest_client: BinanceRestClient,
        ws_url: str,
        stream_transport: IStreamTransport | None = None,
    ):
        self.rest_client = rest_client
        self.market = BinanceMarketData(rest_client)
        self.trading = BinanceTrading(rest_client)
        self.ws_url = ws_url
        self.stream_transport = stream_transport

    @classmethod
    async def create(
        cls,
        config: ExchangeConfig,
        rest_transport: IRestTransport | None = None,
        stream_transport: IStreamTransport | None = None,
        sync_time: bool = True,
    ) -> "BinanceApi":
        """설정으로 API 생성

        인증 정보가 있으면 서버 시간 동기화까지 수행.

        Args:
            config: 거래소 연결 설정
            rest_transport: HTTP 전송 계층 (None이면 httpx 사용)
            stream_transport: WebSocket 전송 계층 (None이면 websockets 사용)
            sync_time: 생성 시 서버 시간 동기화 여부

        Raises:
            TransportError, BinanceApiError: 시간 동기화 실패 시
        """
        rest_client = BinanceRestClient(
            base_url=config.rest_url,
            api_key=config.credentials.api_key,
            api_secret=config.credentials.api_secret,
            transport=rest_transport,
        )

        if sync_time and not config.credentials.is_empty:
            try:
                await rest_client.sync_time()
            except Exception:
                await rest_client.close()
                raise

        logger.info(
            "Binance API 생성",
            extra={
                "rest_url": config.rest_url,
                "authenticated": not config.credentials.is_empty,
            },
        )

        return cls(rest_client, ws_url=config.ws_url, stream_transport=stream_transport)

    @classmethod
    async def from_settings(cls, sync_time: bool = True) -> "BinanceApi":
        """환경 변수 / secrets.yaml 설정으로 API 생성"""
        settings = get_settings()
        return await cls.create(settings.exchange_config, sync_time=sync_time)

    async def subscribe_agg_trades(
        self,
        symbol: str,
        on_event: EventCallback,
        on_error: ErrorCallback,
    ) -> BinanceAggTradeStream:
        """aggTrade 스트림 구독 (반환된 스트림의 stop()으로 종료)"""
        return await subscribe_agg_trades(
            self.ws_url,
            symbol,
            on_event=on_event,
            on_error=on_error,
            transport=self.stream_transport,
        )

    async def close(self) -> None:
        """REST 전송 계층 종료"""
        await self.rest_client.close()

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "BinanceApi":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
