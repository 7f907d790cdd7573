"""Application install flow.

Two modes:

    OAuth app  - Bitrix24 sends an authorization ``code``; it is exchanged for
                 tokens at the OAuth endpoint.
    Local app  - client ID starts with the local-app prefix and no ``code`` is
                 sent; credentials are trusted directly and calls later use the
                 per-request session ID.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.core.config import settings as default_config
from bitrix24_placement_server.core.security import mask_secret
from bitrix24_placement_server.schemas.settings import InstallationSettings, endpoint_for_domain
from bitrix24_placement_server.services.bitrix24_client import Bitrix24Client
from bitrix24_placement_server.services.settings_store import SettingsStore

logger = structlog.get_logger()


@dataclass
class InstallRequest:
    """Parameters Bitrix24 sends to the install handler."""

    code: str | None = None
    domain: str | None = None
    member_id: str | None = None


class InstallParametersError(ValueError):
    """Install request lacks what either install mode needs."""

    def __init__(self, requirements: dict[str, Any]) -> None:
        self.requirements = requirements
        super().__init__("Missing installation parameters")


class InstallService:
    """Creates the installation settings record."""

    def __init__(
        self,
        store: SettingsStore,
        client: Bitrix24Client,
        config: Settings = default_config,
    ) -> None:
        self.store = store
        self.client = client
        self.config = config
        self.logger = logger.bind(service="install")

    def requirements(self, request: InstallRequest) -> dict[str, Any]:
        """Describe which install mode the request satisfies (no secrets)."""
        client_id = self.config.bitrix24_client_id
        client_secret = self.config.bitrix24_client_secret
        has_credentials = bool(client_id and client_secret)
        has_oauth = bool(request.code and request.domain and has_credentials)
        has_local = bool(request.domain and has_credentials)

        return {
            "is_local_app": self.config.is_local_app_client(client_id),
            "has_oauth_params": has_oauth,
            "has_local_params": has_local,
            "received": {
                "code": bool(request.code),
                "domain": bool(request.domain),
                "member_id": bool(request.member_id),
            },
            "config": {
                "has_client_id": bool(client_id),
                "has_client_secret": bool(client_secret),
                "client_id": mask_secret(client_id),
            },
        }

    async def install(self, request: InstallRequest) -> InstallationSettings:
        """Run the install flow and persist the settings record.

        Raises:
            InstallParametersError: Neither OAuth nor local-app requirements are met
            Bitrix24Error: Code exchange failed
        """
        requirements = self.requirements(request)
        is_local_app = requirements["is_local_app"]
        if not requirements["has_oauth_params"] and not (
            is_local_app and requirements["has_local_params"]
        ):
            raise InstallParametersError(requirements)

        client_id = self.config.bitrix24_client_id
        client_secret = self.config.bitrix24_client_secret
        base = {
            "domain": request.domain,
            "member_id": request.member_id,
            "client_endpoint": endpoint_for_domain(request.domain),
            "client_id": client_id,
            "client_secret": client_secret,
        }

        if is_local_app and not request.code:
            record = InstallationSettings(**base, is_local_app=True)
            self.logger.info("Installing local app", domain=request.domain)
        else:
            token_data = await self.client.exchange_authorization_code(
                request.code, client_id, client_secret
            )
            record = InstallationSettings(
                **base,
                access_token=token_data.get("access_token"),
                expires_in=token_data.get("expires_in"),
                refresh_token=token_data.get("refresh_token"),
            )
            self.logger.info("Installed via OAuth", domain=request.domain)

        await self.store.put(record)
        return record
