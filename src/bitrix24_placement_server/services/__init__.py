"""Application services."""

from bitrix24_placement_server.services.bitrix24_client import Bitrix24Client
from bitrix24_placement_server.services.install import InstallService
from bitrix24_placement_server.services.placement import PlacementService
from bitrix24_placement_server.services.settings_store import (
    DatabaseSettingsStore,
    MemorySettingsStore,
    SettingsStore,
    create_settings_store,
)
from bitrix24_placement_server.services.token_refresher import TokenRefresher

__all__ = [
    "Bitrix24Client",
    "DatabaseSettingsStore",
    "InstallService",
    "MemorySettingsStore",
    "PlacementService",
    "SettingsStore",
    "TokenRefresher",
    "create_settings_store",
]
