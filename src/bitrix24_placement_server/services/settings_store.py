"""Settings store for the installation record.

Two implementations share one contract:

    DatabaseSettingsStore  - durable key-value row, value encrypted at rest
    MemorySettingsStore    - process-local map, lost on restart (development only)

Both replace the whole record on ``put`` and hand out a freshly parsed record
on ``get``, so a reader never observes a partially written value.
"""

from abc import ABC, abstractmethod

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bitrix24_placement_server.core.config import Settings, SettingsBackend
from bitrix24_placement_server.core.config import settings as default_config
from bitrix24_placement_server.core.exceptions import ConfigurationError
from bitrix24_placement_server.core.security import TokenEncryption
from bitrix24_placement_server.models.settings import SettingsEntry
from bitrix24_placement_server.schemas.settings import InstallationSettings

logger = structlog.get_logger()

SETTINGS_KEY = "bitrix24_app_settings"


class SettingsStore(ABC):
    """Persists the single installation settings record."""

    backend_name: str = "abstract"

    @abstractmethod
    async def get(self) -> InstallationSettings | None:
        """Return the current record, or None if it was never stored."""
        ...

    @abstractmethod
    async def put(self, record: InstallationSettings) -> bool:
        """Replace the stored record. Returns True on success."""
        ...


class MemorySettingsStore(SettingsStore):
    """In-process store for local development.

    Not durable across restarts and not shared between worker processes.
    No locking: concurrent requests in one process may race.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    async def get(self) -> InstallationSettings | None:
        raw = self._values.get(SETTINGS_KEY)
        logger.debug("Settings loaded", backend=self.backend_name, found=raw is not None)
        return InstallationSettings.model_validate_json(raw) if raw else None

    async def put(self, record: InstallationSettings) -> bool:
        self._values[SETTINGS_KEY] = record.model_dump_json()
        logger.info("Settings stored", backend=self.backend_name)
        return True


class DatabaseSettingsStore(SettingsStore):
    """Durable store backed by the ``settings_entries`` table."""

    backend_name = "database"

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        encryption: TokenEncryption,
    ) -> None:
        """Initialize store.

        Args:
            session_maker: Factory for database sessions; the caller owns its engine
            encryption: Cipher for the stored value
        """
        self.session_maker = session_maker
        self.encryption = encryption

    async def get(self) -> InstallationSettings | None:
        async with self.session_maker() as session:
            entry = await session.get(SettingsEntry, SETTINGS_KEY)
            logger.debug("Settings loaded", backend=self.backend_name, found=entry is not None)
            if entry is None:
                return None
            raw = self.encryption.decrypt(entry.value_encrypted)
        return InstallationSettings.model_validate_json(raw)

    async def put(self, record: InstallationSettings) -> bool:
        encrypted = self.encryption.encrypt(record.model_dump_json())

        async with self.session_maker() as session:
            try:
                entry = await session.get(SettingsEntry, SETTINGS_KEY)
                if entry:
                    entry.value_encrypted = encrypted
                else:
                    session.add(SettingsEntry(key=SETTINGS_KEY, value_encrypted=encrypted))
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Settings stored", backend=self.backend_name)
        return True


def create_settings_store(
    config: Settings = default_config,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> SettingsStore:
    """Build the settings store selected by configuration.

    Args:
        config: Application settings (backend, deployment mode, encryption key)
        session_maker: Sessions for the database backend, bound to an engine
            built from `config.database_url` by the caller

    Raises:
        ConfigurationError: Memory store requested in production mode, or
            database store requested without a session maker
    """
    if config.settings_backend == SettingsBackend.MEMORY:
        if config.is_production():
            raise ConfigurationError(
                "SETTINGS_BACKEND=memory is not durable and cannot be used in production"
            )
        logger.warning(
            "Using in-memory settings store - installation is lost on restart "
            "and not shared between processes"
        )
        return MemorySettingsStore()

    if session_maker is None:
        raise ConfigurationError("The database settings store needs a session maker")
    return DatabaseSettingsStore(session_maker, TokenEncryption(config.get_encryption_key()))
