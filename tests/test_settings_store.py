"""Tests for the settings stores and store selection."""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy import select

from bitrix24_placement_server.core.exceptions import ConfigurationError
from bitrix24_placement_server.core.security import TokenEncryption
from bitrix24_placement_server.models.settings import SettingsEntry
from bitrix24_placement_server.services.settings_store import (
    SETTINGS_KEY,
    DatabaseSettingsStore,
    MemorySettingsStore,
    create_settings_store,
)


class TestMemorySettingsStore:
    """Process-local store."""

    async def test_get_before_put_returns_none(self, memory_store):
        assert await memory_store.get() is None

    async def test_put_then_get_round_trips(self, memory_store, installed_settings):
        assert await memory_store.put(installed_settings) is True

        assert await memory_store.get() == installed_settings

    async def test_put_replaces_whole_record(self, memory_store, installed_settings):
        await memory_store.put(installed_settings)
        replacement = installed_settings.model_copy(update={"member_id": None, "domain": "bar.example"})

        await memory_store.put(replacement)

        stored = await memory_store.get()
        assert stored.domain == "bar.example"
        assert stored.member_id is None

    async def test_stores_are_independent(self, installed_settings):
        first = MemorySettingsStore()
        await first.put(installed_settings)

        assert await MemorySettingsStore().get() is None


class TestDatabaseSettingsStore:
    """Durable store backed by SQLAlchemy."""

    async def test_get_before_put_returns_none(self, database_store):
        assert await database_store.get() is None

    async def test_put_then_get_round_trips(self, database_store, installed_settings):
        assert await database_store.put(installed_settings) is True

        assert await database_store.get() == installed_settings

    async def test_value_encrypted_at_rest(self, database_store, session_maker, installed_settings):
        await database_store.put(installed_settings)

        async with session_maker() as session:
            entry = (await session.execute(select(SettingsEntry))).scalar_one()

        assert entry.key == SETTINGS_KEY
        assert "T1" not in entry.value_encrypted
        assert "client-secret" not in entry.value_encrypted

    async def test_second_put_updates_single_row(self, database_store, session_maker, installed_settings):
        await database_store.put(installed_settings)
        await database_store.put(installed_settings.with_tokens("T2", 3600, None))

        async with session_maker() as session:
            entries = (await session.execute(select(SettingsEntry))).scalars().all()

        assert len(entries) == 1
        stored = await database_store.get()
        assert stored.access_token == "T2"
        assert stored.refresh_token == "R1"

    async def test_survives_new_store_instance(
        self, database_store, session_maker, token_encryption, installed_settings
    ):
        await database_store.put(installed_settings)

        reopened = DatabaseSettingsStore(session_maker, token_encryption)

        assert await reopened.get() == installed_settings


class TestCreateSettingsStore:
    """Backend selection from configuration."""

    def test_memory_backend_in_development(self, app_config):
        store = create_settings_store(app_config)

        assert isinstance(store, MemorySettingsStore)

    def test_memory_backend_refused_in_production(self, app_config):
        config = app_config.model_copy(update={"deployment_mode": "production"})

        with pytest.raises(ConfigurationError):
            create_settings_store(config)

    def test_database_backend(self, app_config, session_maker):
        config = app_config.model_copy(
            update={"settings_backend": "database", "encryption_key": Fernet.generate_key().decode()}
        )

        store = create_settings_store(config, session_maker)

        assert isinstance(store, DatabaseSettingsStore)
        assert store.session_maker is session_maker

    async def test_database_backend_uses_configured_key(
        self, app_config, session_maker, installed_settings
    ):
        key = Fernet.generate_key()
        config = app_config.model_copy(
            update={"settings_backend": "database", "encryption_key": key.decode()}
        )

        await create_settings_store(config, session_maker).put(installed_settings)

        assert await DatabaseSettingsStore(session_maker, TokenEncryption(key)).get() == installed_settings

    def test_database_backend_needs_session_maker(self, app_config):
        config = app_config.model_copy(update={"settings_backend": "database"})

        with pytest.raises(ConfigurationError):
            create_settings_store(config)
