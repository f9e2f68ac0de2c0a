"""
Binance Spot WebSocket 스트림 클라이언트

심볼별 aggTrade 스트림을 구독하여 실시간 집계 체결 수신.
IStreamSubscription Protocol 준수.
"""

import asyncio
import json
import logging
from typing import Any

from websockets.exceptions import ConnectionClosed

from adapters.binance.errors import ParseError, TransportError
from adapters.binance.models import parse_agg_trade
from adapters.binance.transport import WebsocketsStreamTransport
from adapters.interfaces import (
    ErrorCallback,
    EventCallback,
    IStreamConnection,
    IStreamTransport,
)
from core.types import WebSocketState

logger = logging.getLogger(__name__)


class BinanceAggTradeStream:
    """Binance aggTrade 스트림 구독

    구독 하나당 WebSocket 연결 하나 (`{symbol}@aggTrade`).
    이벤트 콜백은 수신 태스크에서 순서대로 호출됨.
    연결이 끊기면 on_error를 한 번 호출하고 구독 종료 (재연결 없음).

    Args:
        ws_base_url: WebSocket 베이스 URL (예: wss://stream.binance.com:9443)
        symbol: 거래 심볼 (대소문자 무관)
        on_event: 체결 이벤트 콜백
        on_error: 연결 에러 콜백
        transport: WebSocket 전송 계층 (None이면 websockets 사용)
    """

    def __init__(
        self,
        ws_base_url: str,
        symbol: str,
        on_event: EventCallback,
        on_error: ErrorCallback,
        transport: IStreamTransport | None = None,
    ):
        self.ws_base_url = ws_base_url.rstrip("/")
        self.symbol = symbol.upper()
        self.on_event = on_event
        self.on_error = on_error
        self.transport: IStreamTransport = transport or WebsocketsStreamTransport()

        self._state = WebSocketState.DISCONNECTED
        self._ws: IStreamConnection | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._stopping = False

    @property
    def state(self) -> WebSocketState:
        """현재 연결 상태"""
        return self._state

    @property
    def url(self) -> str:
        """구독 스트림 URL"""
        return f"{self.ws_base_url}/ws/{self.symbol.lower()}@aggTrade"

    async def start(self) -> None:
        """스트림 연결 및 수신 태스크 시작

        Raises:
            TransportError: 연결 실패 시
        """
        if self._state == WebSocketState.CONNECTED:
            return

        self._stopping = False
        self._set_state(WebSocketState.CONNECTING)

        try:
            self._ws = await self.transport.connect(self.url)
        except TransportError:
            self._set_state(WebSocketState.FAILED)
            raise

        self._set_state(WebSocketState.CONNECTED)
        logger.info("WebSocket 연결 성공", extra={"url": self.url})

        self._receive_task = asyncio.create_task(self._receive_loop())

    async def stop(self) -> None:
        """구독 종료 (수신 태스크 취소 후 소켓 닫기)

        on_event 콜백 안에서 호출해도 됨 (수신 루프는 현재 프레임 처리 후 종료).
        """
        self._stopping = True

        task, self._receive_task = self._receive_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._close_socket()

        if self._state != WebSocketState.FAILED:
            self._set_state(WebSocketState.DISCONNECTED)
        logger.info("WebSocket 구독 종료", extra={"symbol": self.symbol})

    async def _close_socket(self) -> None:
        if self._ws is None:
            return
        ws, self._ws = self._ws, None
        try:
            await ws.close()
        except (OSError, ConnectionClosed) as e:
            logger.debug("WebSocket close 에러", extra={"error": str(e)})

    async def _receive_loop(self) -> None:
        """메시지 수신 루프"""
        if self._ws is None:
            return

        try:
            async for message in self._ws:
                await self._handle_message(message)
                if self._stopping:
                    return
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            if self._stopping:
                return
            logger.warning(
                "WebSocket 연결 끊김",
                extra={"symbol": self.symbol, "error": str(e)},
            )
            await self._fail(e)
            return
        except Exception as e:
            if self._stopping:
                return
            logger.error(
                "수신 루프 에러",
                extra={"symbol": self.symbol, "error": str(e)},
                exc_info=True,
            )
            await self._fail(e)
            return

        # stop() 없이 끝난 경우는 서버 종료로 처리
        if not self._stopping:
            await self._fail(TransportError(f"stream closed by server: {self.url}"))

    async def _handle_message(self, message: str | bytes) -> None:
        """프레임 하나 처리 (파싱 실패/콜백 에러는 로그 후 무시)"""
        try:
            data = json.loads(message)
            event = parse_agg_trade(self._unwrap(data), symbol=self.symbol)
        except (json.JSONDecodeError, UnicodeDecodeError, ParseError) as e:
            text = message if isinstance(message, str) else repr(message)
            logger.warning(
                "메시지 파싱 실패",
                extra={"error": str(e), "message": text[:100]},
            )
            return

        try:
            await self.on_event(event)
        except Exception:
            logger.exception(
                "이벤트 콜백 에러",
                extra={"symbol": self.symbol, "agg_trade_id": event.agg_trade_id},
            )

    @staticmethod
    def _unwrap(data: Any) -> Any:
        """combined stream 형식 {"stream": ..., "data": {...}} 해제"""
        if isinstance(data, dict) and "stream" in data and "data" in data:
            return data["data"]
        return data

    async def _fail(self, error: Exception) -> None:
        """구독 실패 처리 (on_error 한 번 호출)"""
        # TODO: 재연결 (지수 백오프) 지원 시 여기서 재시도
        self._set_state(WebSocketState.FAILED)
        await self._close_socket()

        try:
            await self.on_error(error)
        except Exception as e:
            logger.error("에러 콜백 에러", extra={"error": str(e)})

    def _set_state(self, new_state: WebSocketState) -> None:
        old_state = self._state
        self._state = new_state

        if old_state != new_state:
            logger.info(
                "WebSocket 상태 변경",
                extra={"old_state": old_state.value, "new_state": new_state.value},
            )

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "BinanceAggTradeStream":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()


async def subscribe_agg_trades(
    ws_base_url: str,
    symbol: str,
    on_event: EventCallback,
    on_error: ErrorCallback,
    transport: IStreamTransport | None = None,
) -> BinanceAggTradeStream:
    """aggTrade 스트림 구독 시작

    Returns:
        시작된 스트림 (stop()으로 구독 종료)

    Raises:
        TransportError: 연결 실패 시
    """
    stream = BinanceAggTradeStream(
        ws_base_url=ws_base_url,
        symbol=symbol,
        on_event=on_event,
        on_error=on_error,
        transport=transport,
    )
    await stream.start()
    return stream
