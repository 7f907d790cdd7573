"""Key-value settings storage model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bitrix24_placement_server.models.base import Base, TimestampMixin


class SettingsEntry(Base, TimestampMixin):
    """A single persisted settings value.

    The installation settings record lives in one row under a fixed key.
    The value is the record's JSON, encrypted at rest.
    """

    __tablename__ = "settings_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value_encrypted: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<SettingsEntry(key={self.key})>"
