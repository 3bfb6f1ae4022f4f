"""
Pytest fixtures for the catalog tests.

구성:
- 경로/설정: 임시 data_dir, upload_dir
- 코어: RecordStore, UploadService, CatalogService, 제어 가능한 시계
- API: 앱 팩토리 + 로그인된 admin/user TestClient
"""

import base64
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.app.main import create_app
from src.app.services.catalog import CatalogService
from src.app.services.uploads import UploadService
from src.core.sessions import MemorySessionStore
from src.core.store import RecordStore
from src.domain.schemas import Role, SessionUser

ADMIN_CREDENTIALS = {"username": "admin", "password": "admin123"}
USER_CREDENTIALS = {"username": "user", "password": "user123"}


class FakeClock:
    """수동으로 진행시키는 시계 (epoch seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_data_url(content: bytes, media_type: str = "application/zip") -> str:
    """테스트용 base64 data URL."""
    return f"data:{media_type};base64,{base64.b64encode(content).decode('ascii')}"


# =============================================================================
# Path / Config Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config(project_root: Path) -> dict:
    """default.yaml 로드."""
    with open(project_root / "default.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def test_config(tmp_path: Path) -> dict:
    """테스트용 설정 (임시 디렉터리)."""
    return {
        "paths": {
            "data_dir": str(tmp_path / "data"),
            "db_filename": "db.json",
            "upload_dir": str(tmp_path / "uploads"),
        },
        "limits": {
            "max_body_bytes": 200_000,
        },
        "store": {
            "lock_timeout": 2.0,
        },
        "logging": {
            "level": "DEBUG",
        },
    }


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """제어 가능한 시계."""
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path) -> RecordStore:
    """임시 Record Store (첫 load 시 seed)."""
    return RecordStore(tmp_path / "data" / "db.json", lock_timeout=2.0)


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """임시 업로드 디렉터리."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def uploads(upload_dir: Path) -> UploadService:
    """UploadService."""
    return UploadService(upload_dir)


@pytest.fixture
def catalog(store: RecordStore, uploads: UploadService) -> CatalogService:
    """CatalogService."""
    return CatalogService(store, uploads)


@pytest.fixture
def file_payload():
    """인라인 파일 payload 생성 함수."""

    def _make(
        name: str = "app.zip",
        content: bytes = b"PK\x03\x04fake zip",
        media_type: str = "application/zip",
    ) -> dict:
        return {"name": name, "base64": make_data_url(content, media_type)}

    return _make


@pytest.fixture
def admin_user() -> SessionUser:
    """admin 세션 사용자."""
    return SessionUser(id="u-admin", username="admin", role=Role.ADMIN)


@pytest.fixture
def regular_user() -> SessionUser:
    """일반 세션 사용자."""
    return SessionUser(id="u-user", username="user", role=Role.USER)


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def app(test_config: dict, clock: FakeClock) -> FastAPI:
    """테스트용 FastAPI 앱 (세션 시계 주입)."""
    return create_app(test_config, sessions=MemorySessionStore(clock=clock))


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """로그인하지 않은 TestClient."""
    with TestClient(app) as client:
        yield client


def _logged_in_client(app: FastAPI, credentials: dict) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        response = client.post("/api/auth/login", json=credentials)
        assert response.status_code == 200, response.text
        yield client


@pytest.fixture
def admin_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """admin으로 로그인된 TestClient."""
    yield from _logged_in_client(app, ADMIN_CREDENTIALS)


@pytest.fixture
def user_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """user로 로그인된 TestClient."""
    yield from _logged_in_client(app, USER_CREDENTIALS)
