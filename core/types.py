"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class TradingMode(str, Enum):
    """거래 모드 (실거래 / 테스트넷)"""

    PRODUCTION = "production"
    TESTNET = "testnet"


class OrderSide(str, Enum):
    """주문 방향"""

    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """주문 유형 (Spot에서 사용하는 유형만)"""

    MARKET = "MARKET"
    LIMIT = "LIMIT"


class OrderStatus(str, Enum):
    """주문 상태"""

    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"  # Binance API 사용 (미국식 철자)
    PENDING_CANCEL = "PENDING_CANCEL"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    EXPIRED_IN_MATCH = "EXPIRED_IN_MATCH"


class TimeInForce(str, Enum):
    """주문 유효 기간"""

    GTC = "GTC"  # Good Till Cancel
    IOC = "IOC"  # Immediate Or Cancel
    FOK = "FOK"  # Fill Or Kill


class OrderMode(str, Enum):
    """주문 실행 모드

    TEST는 거래소 검증 엔드포인트만 호출 (체결/저장 없음)
    """

    REAL = "real"
    TEST = "test"


class WebSocketState(str, Enum):
    """WebSocket 연결 상태"""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    FAILED = "FAILED"
