"""Installation settings record."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstallationSettings(BaseModel):
    """Persisted installation state for one Bitrix24 account.

    Created by the install flow, updated only by token refresh.
    """

    model_config = ConfigDict(frozen=True)

    domain: str | None = Field(default=None, description="Bitrix24 account hostname")
    access_token: str | None = Field(default=None, description="Short-lived OAuth access token")
    refresh_token: str | None = Field(default=None, description="OAuth refresh token")
    expires_in: int | None = Field(default=None, description="Access token lifetime (seconds)")
    client_endpoint: str | None = Field(
        default=None, description="Base REST URL, derived from domain when absent"
    )
    client_id: str | None = Field(default=None, description="Application client ID")
    client_secret: str | None = Field(default=None, description="Application client secret")
    is_web_hook: bool = Field(
        default=False, description="client_endpoint is pre-authorized (inbound webhook)"
    )
    is_local_app: bool = Field(
        default=False, description="Per-request session ID substitutes for an access token"
    )
    member_id: str | None = Field(default=None, description="Opaque installation identifier")

    @field_validator("is_web_hook", "is_local_app", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> Any:
        # Bitrix24 reports flags as "Y" / "N"
        if isinstance(value, str):
            return value.strip().upper() in {"Y", "YES", "TRUE", "1"}
        if value is None:
            return False
        return value

    @property
    def has_webhook_endpoint(self) -> bool:
        """Webhook mode with an endpoint that already carries authorization."""
        return self.is_web_hook and bool(self.client_endpoint)

    def rest_endpoint(self, override_domain: str | None = None) -> str | None:
        """Resolve the base REST URL for a call.

        A stored endpoint is always used as-is. ``override_domain`` only
        applies when none is stored, and wins over the stored domain.
        """
        if self.client_endpoint:
            return self.client_endpoint
        if override_domain:
            return endpoint_for_domain(override_domain)
        if self.domain:
            return endpoint_for_domain(self.domain)
        return None

    def is_installed(self) -> bool:
        """Whether the record is complete enough to make authenticated calls."""
        if self.rest_endpoint() is None:
            return False
        return bool(self.access_token) or self.is_local_app or self.has_webhook_endpoint

    def with_tokens(
        self, access_token: str, expires_in: int | None, refresh_token: str | None
    ) -> "InstallationSettings":
        """Copy of this record with refreshed tokens.

        Refresh tokens are not guaranteed to rotate, so a missing one keeps the
        current value.
        """
        return self.model_copy(
            update={
                "access_token": access_token,
                "expires_in": expires_in,
                "refresh_token": refresh_token or self.refresh_token,
            }
        )


def endpoint_for_domain(domain: str) -> str:
    """Default REST base URL for a portal domain."""
    return f"https://{domain}/rest/"
