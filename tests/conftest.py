"""Shared test fixtures."""

from collections.abc import AsyncIterator

import httpx
import pytest
from cryptography.fernet import Fernet
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.core.security import TokenEncryption
from bitrix24_placement_server.models.base import Base
from bitrix24_placement_server.schemas.settings import InstallationSettings
from bitrix24_placement_server.services.settings_store import (
    DatabaseSettingsStore,
    MemorySettingsStore,
)
from tests.fixtures.bitrix24 import REST_ENDPOINT, FakeBitrix24


@pytest.fixture
def app_config() -> Settings:
    """Isolated settings - ignores .env and uses the memory store."""
    return Settings(
        _env_file=None,
        deployment_mode="development",
        settings_backend="memory",
        bitrix24_client_id="app.5f2b1c",
        bitrix24_client_secret="client-secret",
        http_timeout_seconds=5.0,
        show_debug_context=True,
    )


@pytest.fixture
def local_app_config(app_config: Settings) -> Settings:
    """Settings for a Bitrix24 local application."""
    return app_config.model_copy(update={"bitrix24_client_id": "local.64a1b2c3d4e5f6.12345678"})


@pytest.fixture
def fake_bitrix() -> FakeBitrix24:
    """Scripted Bitrix24 endpoints."""
    return FakeBitrix24()


@pytest.fixture
async def http_client(fake_bitrix: FakeBitrix24) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client wired to the fake Bitrix24."""
    async with httpx.AsyncClient(transport=fake_bitrix.transport()) as client:
        yield client


@pytest.fixture
def memory_store() -> MemorySettingsStore:
    """Empty in-memory settings store."""
    return MemorySettingsStore()


@pytest.fixture
def installed_settings() -> InstallationSettings:
    """Settings record of an OAuth installation on foo.example."""
    return InstallationSettings(
        domain="foo.example",
        access_token="T1",
        refresh_token="R1",
        expires_in=3600,
        client_endpoint=REST_ENDPOINT,
        client_id="app.5f2b1c",
        client_secret="client-secret",
        member_id="a1b2c3",
    )


@pytest.fixture
async def installed_store(
    memory_store: MemorySettingsStore, installed_settings: InstallationSettings
) -> MemorySettingsStore:
    """Memory store holding an OAuth installation."""
    await memory_store.put(installed_settings)
    return memory_store


@pytest.fixture
async def async_engine():
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def token_encryption() -> TokenEncryption:
    """Encryption with a throwaway key."""
    return TokenEncryption(Fernet.generate_key())


@pytest.fixture
def database_store(session_maker, token_encryption: TokenEncryption) -> DatabaseSettingsStore:
    """Database-backed settings store."""
    return DatabaseSettingsStore(session_maker, token_encryption)
