"""Error taxonomy for Bitrix24 calls.

    Bitrix24Error
    ├── ConfigurationError   - deployment is misconfigured (e.g. memory store in production)
    ├── NotInstalledError    - no usable settings record when one is required
    ├── MissingTokenError    - no credential available for an authenticated call
    ├── RefreshError         - token exchange rejected, or impossible to attempt
    ├── ProviderError        - any other error reported by Bitrix24
    └── TransportError       - network failure or unparseable response
        └── ApiTimeoutError  - request exceeded the configured timeout

None of these are recovered internally, except that an ``expired_token``
response triggers a single refresh-and-retry in ``Bitrix24Client.call``.
"""


class Bitrix24Error(Exception):
    """Base class for all integration errors."""


class ConfigurationError(Bitrix24Error):
    """Deployment configuration does not allow the requested operation."""


class NotInstalledError(Bitrix24Error):
    """Application not installed or settings not found."""

    def __init__(self, message: str = "Application not installed or settings not found.") -> None:
        super().__init__(message)


class MissingTokenError(Bitrix24Error):
    """No access token or session identifier available for the call."""

    def __init__(
        self, message: str = "Access token not found. Please install the application."
    ) -> None:
        super().__init__(message)


class _ProviderReportedError(Bitrix24Error):
    """Error carrying the provider's ``error`` / ``error_description`` pair."""

    prefix = "Bitrix24 error"

    def __init__(self, code: str | None, description: str | None = None) -> None:
        self.code = code
        self.description = description
        super().__init__(f"{self.prefix}: {description or code}")


class RefreshError(_ProviderReportedError):
    """Refreshing the access token failed."""

    prefix = "Failed to refresh token"


class ProviderError(_ProviderReportedError):
    """Bitrix24 API returned an error response."""

    prefix = "Bitrix24 API Error"


class TransportError(Bitrix24Error):
    """Request could not be completed or the response was not valid JSON."""


class ApiTimeoutError(TransportError):
    """Request to Bitrix24 timed out."""
