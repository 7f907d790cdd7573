"""Bitrix24 placement server - OAuth install, token refresh and contact placement."""

__version__ = "0.1.0"
