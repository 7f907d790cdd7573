"""Bitrix24 REST API caller with one-shot token refresh.

Call lifecycle:

    PREPARING -> SENT -> SUCCESS
                      -> FAILED
                      -> EXPIRED -> REFRESHING -> RETRYING -> SUCCESS
                                                           -> FAILED

At most one refresh-and-retry per call. The retry response gets no expiry
handling of its own: a second ``expired_token`` is reported as a
``ProviderError`` like any other provider error.

The stored access token is only sent to the stored endpoint. Calls to an
override domain need a caller-supplied ``auth`` and are never refreshed.
"""

from enum import Enum
from typing import Any

import httpx
import structlog

from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.core.config import settings as default_config
from bitrix24_placement_server.core.exceptions import (
    MissingTokenError,
    NotInstalledError,
    ProviderError,
)
from bitrix24_placement_server.schemas.settings import InstallationSettings
from bitrix24_placement_server.services.settings_store import SettingsStore
from bitrix24_placement_server.services.token_refresher import TokenRefresher
from bitrix24_placement_server.services.transport import post_form

logger = structlog.get_logger()

AUTH_PARAM = "auth"
EXPIRED_TOKEN_ERROR = "expired_token"


class CallState(str, Enum):
    """Per-call state, emitted with debug logging."""

    PREPARING = "preparing"
    SENT = "sent"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


class Bitrix24Client:
    """Authenticated calls to the Bitrix24 REST API.

    Usage:
        client = Bitrix24Client(store, http_client)
        contact = await client.call("crm.contact.get", {"ID": 42})
    """

    def __init__(
        self,
        store: SettingsStore,
        http_client: httpx.AsyncClient,
        config: Settings = default_config,
        refresher: TokenRefresher | None = None,
    ) -> None:
        """Initialize client.

        Args:
            store: Settings store holding the installation record
            http_client: Shared HTTP client (carries the request timeout)
            config: Application settings
            refresher: Token refresher (built from the same store/client by default)
        """
        self.store = store
        self.http_client = http_client
        self.config = config
        self.refresher = refresher or TokenRefresher(store, http_client, config)
        self.logger = logger.bind(service="bitrix24_client")

    def _transition(self, method: str, state: CallState) -> None:
        self.logger.debug("Bitrix24 call state", method=method or "oauth", state=state.value)

    @staticmethod
    def _validate(
        record: InstallationSettings | None,
        params: dict[str, Any],
        override_domain: str | None,
    ) -> str:
        """Pre-flight checks for a REST call. Returns the base endpoint.

        Raises:
            NotInstalledError: No record, or no endpoint can be resolved
            MissingTokenError: No credential and the caller supplied no ``auth``
        """
        endpoint = record.rest_endpoint(override_domain) if record else None
        if endpoint is None:
            raise NotInstalledError()
        if AUTH_PARAM not in params and not record.is_installed():
            raise MissingTokenError()
        return endpoint

    @staticmethod
    def _with_auth(
        params: dict[str, Any],
        record: InstallationSettings,
        to_stored_endpoint: bool,
    ) -> dict[str, Any]:
        """Return the outgoing parameters, injecting ``auth`` where needed."""
        outgoing = dict(params)
        if AUTH_PARAM in outgoing or record.has_webhook_endpoint:
            # Caller-supplied session identifier wins
            return outgoing
        if not to_stored_endpoint:
            # The stored token only ever goes to the installed portal
            if record.is_local_app:
                return outgoing
            raise MissingTokenError(
                "Access token is only sent to the installed portal; "
                "pass a session ID for other domains."
            )
        if record.access_token:
            outgoing[AUTH_PARAM] = record.access_token
        return outgoing

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        is_auth_call: bool = False,
        override_domain: str | None = None,
    ) -> dict[str, Any]:
        """Call a Bitrix24 REST method.

        Args:
            method: REST method name, e.g. ``crm.contact.get`` (ignored for auth calls)
            params: Method parameters; never modified
            is_auth_call: Send to the OAuth endpoint (no installation required)
            override_domain: Portal domain, used only when no endpoint is stored

        Returns:
            Parsed JSON body, unchanged

        Raises:
            NotInstalledError: No usable settings and this is not an auth call
            MissingTokenError: No access token or session identifier available,
                or the stored token would leave the installed portal
            RefreshError: Token expired and refresh failed
            ProviderError: Bitrix24 reported an error (including expiry after refresh)
            TransportError: Network failure, timeout or invalid JSON
        """
        self._transition(method, CallState.PREPARING)

        params = params or {}
        record: InstallationSettings | None = None
        to_stored_endpoint = False
        if is_auth_call:
            url = self.config.bitrix24_oauth_url
            outgoing = dict(params)
        else:
            record = await self.store.get()
            endpoint = self._validate(record, params, override_domain)
            to_stored_endpoint = endpoint == record.rest_endpoint()
            url = f"{endpoint}{method}{self.config.bitrix24_rest_suffix}"
            outgoing = self._with_auth(params, record, to_stored_endpoint)

        self._transition(method, CallState.SENT)
        self.logger.debug("Bitrix24 API call", url=url, param_keys=sorted(outgoing))
        data = await post_form(self.http_client, url, outgoing)

        if to_stored_endpoint and data.get("error") == EXPIRED_TOKEN_ERROR:
            self._transition(method, CallState.EXPIRED)
            self.logger.info("Access token expired, refreshing", method=method)

            self._transition(method, CallState.REFRESHING)
            try:
                refreshed = await self.refresher.refresh(record)
            except Exception:
                self._transition(method, CallState.FAILED)
                raise

            self._transition(method, CallState.RETRYING)
            retry_params = {**outgoing, AUTH_PARAM: refreshed.access_token}
            data = await post_form(self.http_client, url, retry_params)

        if data.get("error"):
            self._transition(method, CallState.FAILED)
            self.logger.error(
                "Bitrix24 API error",
                method=method or "oauth",
                error=data.get("error"),
                error_description=data.get("error_description"),
            )
            raise ProviderError(data.get("error"), data.get("error_description"))

        self._transition(method, CallState.SUCCESS)
        return data

    async def exchange_authorization_code(
        self, code: str, client_id: str, client_secret: str
    ) -> dict[str, Any]:
        """Exchange an OAuth authorization code for tokens.

        Returns:
            Token response: access_token, expires_in, refresh_token, ...
        """
        return await self.call(
            "",
            {
                "grant_type": "authorization_code",
                "client_id": client_id,
                "client_secret": client_secret,
                "code": code,
                "scope": self.config.bitrix24_oauth_scope,
            },
            is_auth_call=True,
        )
