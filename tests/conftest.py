"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from faceunlock.core.preferences import JsonPreferenceStore
from faceunlock.db.gateway import PersistenceGateway
from faceunlock.db.session import create_schema, create_session_factory
from faceunlock.services.assets import FileAssetStore
from faceunlock.services.auth_service import SessionAuthController
from faceunlock.services.credentials import BcryptCredentialVerifier
from faceunlock.services.face_service import FaceCache
from faceunlock.services.options_service import OptionsCache


class FakeClock:
    """Controllable replacement for the session controller's clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 15, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory SQLite database per test.

    StaticPool keeps the single connection alive so every session sees the
    same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest.fixture
def gateway(session_factory: async_sessionmaker[AsyncSession]) -> PersistenceGateway:
    return PersistenceGateway(session_factory)


@pytest.fixture
def faces_dir(tmp_path: Path) -> Path:
    path = tmp_path / "faces"
    path.mkdir()
    return path


@pytest.fixture
def asset_store(faces_dir: Path) -> FileAssetStore:
    return FileAssetStore(faces_dir)


@pytest.fixture
def face_cache(gateway: PersistenceGateway, asset_store: FileAssetStore) -> FaceCache:
    return FaceCache(gateway, asset_store)


@pytest.fixture
def options_cache(gateway: PersistenceGateway) -> OptionsCache:
    return OptionsCache(gateway)


@pytest.fixture
def preferences(tmp_path: Path) -> JsonPreferenceStore:
    return JsonPreferenceStore(tmp_path / "preferences.json")


@pytest.fixture
def verifier() -> BcryptCredentialVerifier:
    """bcrypt verifier at the minimum work factor to keep tests fast."""
    return BcryptCredentialVerifier(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def auth(
    preferences: JsonPreferenceStore,
    verifier: BcryptCredentialVerifier,
    clock: FakeClock,
) -> SessionAuthController:
    return SessionAuthController(preferences, verifier, clock=clock)
