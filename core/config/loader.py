"""
설정 로더

환경 변수 / secrets.yaml 로드 및 거래소 설정 생성

우선순위: 환경 변수 > secrets.yaml > 기본값
API 키가 없으면 빈 Credentials (공개 엔드포인트만 사용 가능)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.constants import BinanceEndpoints, Defaults, EnvVars, Paths
from core.types import TradingMode


@dataclass(frozen=True)
class Credentials:
    """API 인증 정보

    불변 데이터 구조로 프로세스 전체에서 공유
    """

    api_key: str = ""
    api_secret: str = field(default="", repr=False)

    @property
    def is_empty(self) -> bool:
        """키 또는 시크릿이 없는지 여부 (서명 요청 불가)"""
        return not self.api_key or not self.api_secret


@dataclass(frozen=True)
class Secrets:
    """보안 설정 (환경 변수 / secrets.yaml에서 로드)"""

    mode: TradingMode
    credentials: Credentials


@dataclass(frozen=True)
class ExchangeConfig:
    """거래소 연결 설정

    API 키와 엔드포인트 정보를 포함
    """

    rest_url: str
    ws_url: str
    credentials: Credentials


class SecretsLoadError(Exception):
    """Secrets 로드 실패 예외"""

    pass


def _read_secrets_file(path: Path) -> dict[str, Any]:
    """secrets.yaml 읽기 (파일이 없으면 빈 딕셔너리)"""
    if not path.exists():
        return {}

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise SecretsLoadError("secrets.yaml 최상위는 매핑이어야 합니다")

    return data


def _parse_mode(mode_str: str) -> TradingMode:
    try:
        return TradingMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in TradingMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e


def load_secrets(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Secrets:
    """환경 변수와 secrets.yaml에서 인증 정보 로드

    secrets.yaml 형식:
        mode: testnet
        production:
          api_key: "..."
          api_secret: "..."
        testnet:
          api_key: "..."
          api_secret: "..."

    Args:
        path: secrets.yaml 경로 (None이면 기본 경로 사용, 없어도 됨)
        environ: 환경 변수 매핑 (None이면 os.environ)

    Returns:
        Secrets 인스턴스

    Raises:
        SecretsLoadError: 파일 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SECRETS_FILE
    if environ is None:
        environ = os.environ

    data = _read_secrets_file(path)

    mode_str = environ.get(EnvVars.MODE) or data.get("mode") or Defaults.MODE
    mode = _parse_mode(str(mode_str))

    mode_config = data.get(mode.value) or {}
    if not isinstance(mode_config, dict):
        raise SecretsLoadError(
            f"secrets.yaml의 '{mode.value}' 섹션은 매핑이어야 합니다"
        )

    api_key = (
        environ.get(EnvVars.API_KEY)
        or environ.get(EnvVars.LEGACY_API_KEY)
        or mode_config.get("api_key")
        or ""
    )
    api_secret = (
        environ.get(EnvVars.SECRET_KEY)
        or environ.get(EnvVars.LEGACY_SECRET_KEY)
        or mode_config.get("api_secret")
        or ""
    )

    return Secrets(
        mode=mode,
        credentials=Credentials(api_key=str(api_key), api_secret=str(api_secret)),
    )


def get_exchange_config(secrets: Secrets) -> ExchangeConfig:
    """모드에 따른 거래소 설정 반환

    Args:
        secrets: Secrets 인스턴스

    Returns:
        ExchangeConfig 인스턴스 (Production 또는 Testnet)
    """
    if secrets.mode == TradingMode.PRODUCTION:
        return ExchangeConfig(
            rest_url=BinanceEndpoints.PROD_REST_URL,
            ws_url=BinanceEndpoints.PROD_WS_URL,
            credentials=secrets.credentials,
        )
    else:
        return ExchangeConfig(
            rest_url=BinanceEndpoints.TEST_REST_URL,
            ws_url=BinanceEndpoints.TEST_WS_URL,
            credentials=secrets.credentials,
        )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    프로세스 시작 시 한 번 로드하고 이후 재사용
    """

    _instance: "Settings | None" = None
    _secrets: Secrets | None = None

    def __new__(cls, secrets_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, secrets_path: Path | None = None) -> None:
        if self._secrets is None:
            self._secrets = load_secrets(secrets_path)

    @property
    def mode(self) -> TradingMode:
        """현재 거래 모드"""
        assert self._secrets is not None
        return self._secrets.mode

    @property
    def credentials(self) -> Credentials:
        """API 인증 정보"""
        assert self._secrets is not None
        return self._secrets.credentials

    @property
    def exchange_config(self) -> ExchangeConfig:
        """현재 모드의 거래소 설정"""
        assert self._secrets is not None
        return get_exchange_config(self._secrets)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._secrets = None


def get_settings(secrets_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        secrets_path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(secrets_path)
