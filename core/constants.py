"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class BinanceEndpoints:
    """Binance Spot API 엔드포인트 (고정값)

    공식 문서: https://developers.binance.com/docs/binance-spot-api-docs/rest-api
    """

    # Production (Spot)
    PROD_REST_URL: str = "https://api.binance.com"
    PROD_WS_URL: str = "wss://stream.binance.com:9443"

    # Testnet (Spot)
    TEST_REST_URL: str = "https://testnet.binance.vision"
    TEST_WS_URL: str = "wss://stream.testnet.binance.vision"


class ApiPaths:
    """Spot REST API 경로"""

    PING: str = "/api/v3/ping"
    TIME: str = "/api/v3/time"
    EXCHANGE_INFO: str = "/api/v3/exchangeInfo"
    TICKER_PRICE: str = "/api/v3/ticker/price"
    KLINES: str = "/api/v3/klines"
    AGG_TRADES: str = "/api/v3/aggTrades"
    ORDER: str = "/api/v3/order"
    ORDER_TEST: str = "/api/v3/order/test"
    OPEN_ORDERS: str = "/api/v3/openOrders"
    ALL_ORDERS: str = "/api/v3/allOrders"
    ACCOUNT: str = "/api/v3/account"


class EnvVars:
    """환경 변수 이름"""

    API_KEY: str = "EXCHANGE_API_KEY"
    SECRET_KEY: str = "EXCHANGE_SECRET_KEY"
    MODE: str = "EXCHANGE_MODE"

    # 이전 버전 호환 이름
    LEGACY_API_KEY: str = "BINANCE_API_KEY"
    LEGACY_SECRET_KEY: str = "BINANCE_SECRET_KEY"


class Defaults:
    """기본값 상수"""

    MODE: str = "production"
    RECV_WINDOW_MS: int = 5000
    HTTP_TIMEOUT_SEC: float = 30.0
    PRICE_DECIMALS: int = 8


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SECRETS_FILE: Path = CONFIG_DIR / "secrets.yaml"


class RateLimitThresholds:
    """Rate Limit 임계값 (Spot REQUEST_WEIGHT 6000/분 기준)"""

    WEIGHT_WARN: int = 4800  # 경고
    WEIGHT_STOP: int = 5800  # 요청 중단
