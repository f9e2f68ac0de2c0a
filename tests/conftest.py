"""
pytest 공통 fixture 정의

설정 로더 / 로깅 테스트용 임시 파일 fixture
"""

import tempfile
from pathlib import Path
from typing import Iterator

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_secrets_file(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성"""
    secrets_content = """# 테스트용 secrets.yaml
mode: testnet

production:
  api_key: "prod_api_key_12345"
  api_secret: "prod_api_secret_67890"

testnet:
  api_key: "test_api_key_abcde"
  api_secret: "test_api_secret_fghij"
"""
    secrets_path = temp_dir / "secrets.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_production(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성 (production 모드)"""
    secrets_content = """mode: production

production:
  api_key: "prod_api_key_12345"
  api_secret: "prod_api_secret_67890"

testnet:
  api_key: "test_api_key_abcde"
  api_secret: "test_api_secret_fghij"
"""
    secrets_path = temp_dir / "secrets_prod.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 secrets.yaml 파일 생성"""
    secrets_content = """mode: invalid_mode

production:
  api_key: "prod_api_key"
  api_secret: "prod_api_secret"
"""
    secrets_path = temp_dir / "secrets_invalid.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture(autouse=True)
def reset_settings() -> Iterator[None]:
    """Settings 싱글턴 초기화 (테스트 간 격리)"""
    Settings.reset()
    yield
    Settings.reset()
