"""
Binance Spot REST API 클라이언트

HMAC-SHA256 서명, 서버 시간 오프셋, Rate Limit 추적.
{code, msg} 에러 응답을 BinanceApiError로 변환.
재시도/백오프 없음 (에러는 호출자에게 그대로 전달).
"""

import hashlib
import hmac
import logging
from typing import Any
from urllib.parse import urlencode

from adapters.binance.errors import (
    AuthenticationError,
    BinanceApiError,
    ParseError,
    RateLimitError,
)
from adapters.binance.rate_limiter import RateLimitTracker
from adapters.binance.transport import HttpxRestTransport, RestResponse
from adapters.interfaces import IRestTransport
from core.constants import ApiPaths, Defaults
from core.utils.timezone import now_ms

logger = logging.getLogger(__name__)


class BinanceRestClient:
    """Binance Spot REST API 클라이언트

    모든 요청은 send()를 통해 전송.
    서명 요청은 첫 호출 전에 서버 시간 동기화를 한 번 수행하고,
    이후 오프셋은 변경하지 않음.

    Args:
        base_url: REST API 베이스 URL
        api_key: API 키 (없으면 공개 엔드포인트만 사용 가능)
        api_secret: API 시크릿
        timeout: 요청 타임아웃 (초)
        recv_window: 서명 요청 유효 시간 (밀리초)
        transport: HTTP 전송 계층 (None이면 httpx 사용)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        api_secret: str = "",
        timeout: float = Defaults.HTTP_TIMEOUT_SEC,
        recv_window: int = Defaults.RECV_WINDOW_MS,
        transport: IRestTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.recv_window = recv_window
        self.transport: IRestTransport = transport or HttpxRestTransport(timeout=timeout)

        self.rate_tracker = RateLimitTracker()

        # 서버 시간 동기화용 오프셋 (밀리초)
        self._time_offset: int = 0
        self._time_synced: bool = False

    @property
    def has_credentials(self) -> bool:
        """서명 요청 가능 여부"""
        return bool(self.api_key) and bool(self.api_secret)

    @property
    def time_offset(self) -> int:
        """서버 시간 - 로컬 시간 (밀리초)"""
        return self._time_offset

    async def close(self) -> None:
        """전송 계층 종료"""
        await self.transport.close()

    def generate_signature(self, query_string: str) -> str:
        """HMAC-SHA256 서명 생성

        Args:
            query_string: URL 인코딩된 파라미터 문자열

        Returns:
            16진수 서명 문자열
        """
        return hmac.new(
            self.api_secret.encode("utf-8"),
            query_string.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _get_timestamp(self) -> int:
        """서버 시간 오프셋이 적용된 타임스탬프 반환 (밀리초)"""
        return now_ms() + self._time_offset

    async def sync_time(self) -> int:
        """서버 시간과 동기화

        로컬 시간과 서버 시간의 차이를 계산하여 오프셋 저장.

        Returns:
            계산된 시간 오프셋 (밀리초)
        """
        local_time = now_ms()
        server_time = await self.get_server_time()
        self._time_offset = server_time - local_time
        self._time_synced = True

        logger.info(
            "서버 시간 동기화 완료",
            extra={"offset_ms": self._time_offset},
        )

        return self._time_offset

    def build_query(
        self,
        params: dict[str, Any] | None = None,
        signed: bool = False,
    ) -> str:
        """쿼리 문자열 생성

        파라미터 삽입 순서를 유지하고 None 값은 제외.
        서명 요청이면 recvWindow, timestamp, signature를 순서대로 추가.
        """
        request_params = {k: v for k, v in (params or {}).items() if v is not None}

        if not signed:
            return urlencode(request_params)

        request_params["recvWindow"] = self.recv_window
        request_params["timestamp"] = self._get_timestamp()
        query_string = urlencode(request_params)
        signature = self.generate_signature(query_string)
        return f"{query_string}&signature={signature}"

    async def send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        signed: bool = False,
    ) -> Any:
        """API 요청 실행

        Args:
            method: HTTP 메서드 (GET, POST, DELETE)
            path: API 경로 (예: /api/v3/order)
            params: 요청 파라미터
            signed: 서명 필요 여부

        Returns:
            JSON 응답

        Raises:
            AuthenticationError: 인증 정보 없이 서명 요청 시
            RateLimitError: 429/418 응답 또는 임계값 초과 시
            BinanceApiError: API 에러 응답 시
            TransportError: 네트워크 실패 시
            ParseError: 응답이 JSON이 아닌 경우
        """
        # 차단 중이거나 중단 임계값 도달 시 요청하지 않음
        self.rate_tracker.check()

        if signed:
            if not self.has_credentials:
                raise AuthenticationError(
                    f"API key/secret required for signed endpoint {path}"
                )
            # 시간 동기화 확인 (최초 1회)
            if not self._time_synced:
                await self.sync_time()

        headers = {"X-MBX-APIKEY": self.api_key} if self.api_key else {}
        query_string = self.build_query(params, signed=signed)
        url = f"{self.base_url}{path}"
        if query_string:
            url = f"{url}?{query_string}"

        response = await self.transport.request(method, url, headers=headers)

        # 429: Rate limit, 418: IP 차단
        retry_after = self.rate_tracker.observe(response.status_code, response.headers)
        if retry_after is not None:
            logger.warning(
                "Rate limited by Binance",
                extra={"path": path, "status": response.status_code, "retry_after": retry_after},
            )
            raise RateLimitError(retry_after=retry_after)

        if self.rate_tracker.should_warn:
            logger.warning(
                "Request weight warning",
                extra={"used_weight_1m": self.rate_tracker.used_weight_1m},
            )

        return self._handle_response(path, response)

    def _handle_response(self, path: str, response: RestResponse) -> Any:
        """응답 상태 코드 처리 및 JSON 디코딩 (2xx 외에는 에러)"""
        if not response.is_success:
            code, message = self._decode_error(response)
            logger.error(
                "Binance API error",
                extra={"path": path, "status": response.status_code, "code": code, "error_message": message},
            )
            raise BinanceApiError(code=code, message=message)

        return response.json()

    @staticmethod
    def _decode_error(response: RestResponse) -> tuple[int, str]:
        """{code, msg} 에러 응답 디코딩 (형식이 다르면 HTTP 상태 사용)"""
        try:
            error_data = response.json()
        except ParseError:
            return response.status_code, response.text

        if not isinstance(error_data, dict) or "code" not in error_data:
            return response.status_code, response.text

        try:
            code = int(error_data["code"])
        except (TypeError, ValueError):
            code = response.status_code
        message = error_data.get("msg", response.text)
        return code, str(message)

    # -------------------------------------------------------------------------
    # 일반 엔드포인트
    # -------------------------------------------------------------------------

    async def ping(self) -> None:
        """연결 확인"""
        await self.send("GET", ApiPaths.PING)

    async def get_server_time(self) -> int:
        """서버 시간 조회 (밀리초 타임스탬프)"""
        data = await self.send("GET", ApiPaths.TIME)
        return int(data["serverTime"])

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "BinanceRestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
