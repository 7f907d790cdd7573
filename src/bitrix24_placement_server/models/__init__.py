"""Database models."""

from bitrix24_placement_server.models.base import Base
from bitrix24_placement_server.models.settings import SettingsEntry

__all__ = [
    "Base",
    "SettingsEntry",
]
