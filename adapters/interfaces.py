"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
REST 클라이언트와 스트리밍 피드는 이 전송 계층 Protocol에만 의존.
"""

from typing import Protocol, Callable, Awaitable, AsyncIterator, runtime_checkable

from core.types import WebSocketState


@runtime_checkable
class IRestTransport(Protocol):
    """HTTP 전송 계층 인터페이스

    서명/인코딩이 끝난 요청을 그대로 전송하고 원본 응답을 반환.
    네트워크 실패는 TransportError로 변환해야 함.
    """

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> "RestResponse":
        """HTTP 요청 실행

        Args:
            method: HTTP 메서드 (GET, POST, ...)
            url: 쿼리 문자열이 포함된 전체 URL
            headers: 요청 헤더

        Returns:
            상태 코드/헤더/본문을 담은 응답

        Raises:
            TransportError: 연결/타임아웃 등 전송 실패 시
        """
        ...

    async def close(self) -> None:
        """연결 자원 해제"""
        ...


@runtime_checkable
class IStreamConnection(Protocol):
    """WebSocket 연결 인터페이스

    async for로 텍스트 프레임을 순회. 연결이 끊기면 예외 발생.
    """

    def __aiter__(self) -> AsyncIterator[str | bytes]:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class IStreamTransport(Protocol):
    """WebSocket 전송 계층 인터페이스"""

    async def connect(self, url: str) -> IStreamConnection:
        """WebSocket 연결

        Raises:
            TransportError: 연결 실패 시
        """
        ...


@runtime_checkable
class IStreamSubscription(Protocol):
    """스트림 구독 핸들

    stop()으로 명시적 구독 종료.
    """

    @property
    def state(self) -> WebSocketState:
        """현재 연결 상태"""
        ...

    async def stop(self) -> None:
        """구독 종료 (소켓 닫기)"""
        ...


# 스트림 콜백 타입 정의
EventCallback = Callable[["TradeEvent"], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


# 순환 참조 방지를 위한 타입 힌트 (런타임에는 문자열로 유지)
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.binance.transport import RestResponse
    from adapters.models import TradeEvent
