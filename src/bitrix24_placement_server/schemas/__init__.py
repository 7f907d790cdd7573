"""Pydantic schemas."""

from bitrix24_placement_server.schemas.settings import InstallationSettings, endpoint_for_domain

__all__ = [
    "InstallationSettings",
    "endpoint_for_domain",
]
