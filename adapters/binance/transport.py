"""
Binance 전송 계층 구현

- HttpxRestTransport: httpx.AsyncClient 기반 REST 전송
- WebsocketsStreamTransport: websockets 기반 스트림 연결

IRestTransport / IStreamTransport Protocol 준수.
네트워크 예외는 TransportError로 변환.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
import websockets
from websockets.exceptions import WebSocketException

from adapters.binance.errors import ParseError, TransportError
from adapters.interfaces import IStreamConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RestResponse:
    """HTTP 응답 (전송 계층 독립)

    Attributes:
        status_code: HTTP 상태 코드
        text: 응답 본문
        headers: 응답 헤더
    """

    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """2xx 응답 여부"""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """본문 JSON 디코딩

        Raises:
            ParseError: JSON 형식이 아닌 경우
        """
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            raise ParseError("body", self.text[:100]) from e


class HttpxRestTransport:
    """httpx 기반 REST 전송

    Args:
        timeout: 요청 타임아웃 (초)
        client: 외부에서 생성한 AsyncClient (None이면 lazy 생성)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> RestResponse:
        client = await self._get_client()

        try:
            response = await client.request(method, url, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("Request timeout", extra={"method": method, "url": url})
            raise TransportError(f"timeout: {method} {url}") from e
        except httpx.RequestError as e:
            logger.error(
                "Request error",
                extra={"method": method, "url": url, "error": str(e)},
            )
            raise TransportError(f"request failed: {method} {url}: {e}") from e

        return RestResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


class WebsocketsStreamTransport:
    """websockets 기반 스트림 전송

    Binance는 20초마다 ping을 보내므로 websockets 기본 pong 응답으로 충분.
    """

    PING_INTERVAL = 30  # ping 간격 (초)
    PING_TIMEOUT = 10  # ping 타임아웃 (초)

    async def connect(self, url: str) -> IStreamConnection:
        try:
            return await websockets.connect(
                url,
                ping_interval=self.PING_INTERVAL,
                ping_timeout=self.PING_TIMEOUT,
            )
        except (OSError, WebSocketException) as e:
            logger.error("WebSocket 연결 실패", extra={"url": url, "error": str(e)})
            raise TransportError(f"websocket connect failed: {url}: {e}") from e
