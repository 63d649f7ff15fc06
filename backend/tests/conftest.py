"""Pytest configuration and fixtures for the file drop backend.

Store tests use a FileStorageService rooted in tmp_path. HTTP tests build the
app with create_app() and explicit Settings, enter its lifespan, and talk to it
through httpx's ASGI transport.
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

import filedrop.services.file_storage as storage_module
from filedrop.config import Settings
from filedrop.main import create_app
from filedrop.services.file_storage import FileStorageService


class FakeClock:
    """Stands in for the store's clock so expiry can be tested without waiting."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(storage_module, "_utcnow", fake)
    return fake


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def storage(storage_dir) -> FileStorageService:
    return FileStorageService(storage_dir)


@pytest.fixture
def app_settings(tmp_path, storage_dir) -> Settings:
    return Settings(
        FILE_STORAGE_PATH=str(storage_dir),
        STATIC_DIR=str(tmp_path / "static"),
        API_PORT=8080,
        CLEANUP_INTERVAL_SECONDS=3600,
        UPLOAD_CHUNK_SIZE=4,
    )


@pytest.fixture
async def app(app_settings):
    """App with its lifespan running (store open, sweeper started)."""
    application = create_app(app_settings)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
