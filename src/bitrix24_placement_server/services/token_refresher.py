"""Bitrix24 access token refresh."""

import httpx
import structlog

from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.core.config import settings as default_config
from bitrix24_placement_server.core.exceptions import RefreshError
from bitrix24_placement_server.schemas.settings import InstallationSettings
from bitrix24_placement_server.services.settings_store import SettingsStore
from bitrix24_placement_server.services.transport import post_form

logger = structlog.get_logger()


class TokenRefresher:
    """Exchanges a refresh token for a new access token and persists it."""

    def __init__(
        self,
        store: SettingsStore,
        http_client: httpx.AsyncClient,
        config: Settings = default_config,
    ) -> None:
        """Initialize refresher.

        Args:
            store: Settings store the refreshed record is written to
            http_client: Shared HTTP client
            config: Application settings (client credentials, OAuth URL)
        """
        self.store = store
        self.http_client = http_client
        self.config = config
        self.logger = logger.bind(service="token_refresher")

    def _credentials(self, current: InstallationSettings) -> tuple[str, str]:
        # Deployment config first, the stored record is the local-dev fallback
        client_id = self.config.bitrix24_client_id or current.client_id
        client_secret = self.config.bitrix24_client_secret or current.client_secret
        if not client_id or not client_secret:
            raise RefreshError(
                "missing_credentials",
                "Client ID or Client Secret not found in environment variables or settings.",
            )
        return client_id, client_secret

    async def refresh(self, current: InstallationSettings) -> InstallationSettings:
        """Refresh the access token for ``current``.

        Args:
            current: Stored settings, must carry a refresh token

        Returns:
            The updated record, already persisted

        Raises:
            RefreshError: Missing refresh token or credentials, or provider rejected the exchange
            TransportError: Token endpoint unreachable or returned garbage
        """
        if not current.refresh_token:
            raise RefreshError("missing_refresh_token", "No refresh token stored for this installation.")

        client_id, client_secret = self._credentials(current)

        data = await post_form(
            self.http_client,
            self.config.bitrix24_oauth_url,
            {
                "client_id": client_id,
                "grant_type": "refresh_token",
                "client_secret": client_secret,
                "refresh_token": current.refresh_token,
            },
        )

        if data.get("error"):
            self.logger.error(
                "Token refresh rejected",
                error=data.get("error"),
                error_description=data.get("error_description"),
            )
            raise RefreshError(data.get("error"), data.get("error_description"))

        if not data.get("access_token"):
            raise RefreshError("invalid_response", "Token response did not include an access token.")

        refreshed = current.with_tokens(
            access_token=data["access_token"],
            expires_in=data.get("expires_in"),
            refresh_token=data.get("refresh_token"),
        )
        await self.store.put(refreshed)

        self.logger.info(
            "Access token refreshed",
            expires_in=refreshed.expires_in,
            refresh_token_rotated=bool(data.get("refresh_token")),
        )
        return refreshed
