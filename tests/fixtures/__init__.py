"""Test fixtures for bitrix24-placement-server."""

from tests.fixtures.bitrix24 import OAUTH_URL, REST_ENDPOINT, FakeBitrix24

__all__ = [
    "OAUTH_URL",
    "REST_ENDPOINT",
    "FakeBitrix24",
]
