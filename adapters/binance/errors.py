"""
Binance 클라이언트 에러 정의

- TransportError: 네트워크/DNS/타임아웃 등 전송 계층 실패
- BinanceApiError: 거래소 {code, msg} 에러 응답
- RateLimitError: 429/418 응답 또는 로컬 임계값 초과
- OrderError: 주문 생성 실패
- AuthenticationError: 인증 정보 없이 서명 요청 시도
- ParseError: 응답의 숫자 문자열/JSON 형식 오류
- NoTradesError: 조회 구간에 체결이 없음 (평균가 계산 불가)
"""

from typing import Any


class BinanceError(Exception):
    """Binance 클라이언트 에러 베이스"""

    pass


class TransportError(BinanceError):
    """전송 계층 에러

    HTTP/WebSocket 요청 자체가 실패했을 때 발생 (응답 없음).
    """

    pass


class BinanceApiError(BinanceError):
    """Binance API 에러

    API 응답에서 에러 코드를 받았을 때 발생.
    """

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"Binance API Error [{code}]: {message}")


class RateLimitError(BinanceApiError):
    """Rate Limit 초과 에러

    429/418 응답 수신 또는 로컬 가중치 임계값 도달 시 발생.
    retry_after 초 후 재시도 필요 (자동 재시도 없음).
    """

    CODE = -1003  # TOO_MANY_REQUESTS

    def __init__(self, retry_after: int, message: str = "Rate limit exceeded"):
        self.retry_after = retry_after
        super().__init__(code=self.CODE, message=f"{message}. Retry after {retry_after} seconds.")


class OrderError(BinanceApiError):
    """주문 관련 에러

    주문 생성/검증 실패 시 발생.
    """

    pass


class AuthenticationError(BinanceError):
    """인증 정보 없음

    API 키/시크릿 없이 서명이 필요한 엔드포인트를 호출한 경우.
    """

    pass


class ParseError(BinanceError):
    """응답 파싱 에러

    숫자 문자열이 잘못되었거나 JSON 형식이 아닌 경우.
    """

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Failed to parse {field}: {value!r}")


class NoTradesError(BinanceError):
    """조회 구간에 체결 없음"""

    def __init__(self, symbol: str, start_time: int, end_time: int):
        self.symbol = symbol
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            f"No trades for {symbol} between {start_time} and {end_time}"
        )
