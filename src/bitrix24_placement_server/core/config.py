"""Application configuration."""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeploymentMode(str, Enum):
    """Deployment mode for the application."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class SettingsBackend(str, Enum):
    """Where the installation settings record is persisted."""

    DATABASE = "database"
    MEMORY = "memory"  # Process-local, lost on restart


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra env vars without error
    )

    # Deployment
    deployment_mode: DeploymentMode = Field(
        default=DeploymentMode.DEVELOPMENT,
        description="Deployment mode: development or production",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Settings persistence
    settings_backend: SettingsBackend = Field(
        default=SettingsBackend.DATABASE,
        description="Settings store backend: database or memory (development only)",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./bitrix24_placement.db",
        description="Database URL for the settings store",
    )
    encryption_key: str | None = Field(
        default=None,
        description="Fernet key for settings encryption at rest (base64 encoded)",
    )

    # Bitrix24 application credentials (from the Bitrix24 developer console)
    bitrix24_client_id: str | None = Field(
        default=None,
        description="Bitrix24 application client ID",
    )
    bitrix24_client_secret: str | None = Field(
        default=None,
        description="Bitrix24 application client secret",
    )

    # Bitrix24 endpoints
    bitrix24_oauth_url: str = Field(
        default="https://oauth.bitrix.info/oauth/token/",
        description="OAuth token endpoint (code exchange and refresh)",
    )
    bitrix24_rest_suffix: str = Field(
        default=".json",
        description="Suffix appended to REST method names",
    )
    bitrix24_oauth_scope: str = Field(
        default="crm,user,placement",
        description="Scopes requested during authorization code exchange",
    )
    local_app_prefix: str = Field(
        default="local.",
        description="Client ID prefix identifying a Bitrix24 local application",
    )

    # Outbound HTTP
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for calls to Bitrix24 (seconds)",
    )

    # Error pages
    show_debug_context: bool = Field(
        default=True,
        description="Render redacted debug context on error pages (never in production)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.deployment_mode == DeploymentMode.PRODUCTION

    def debug_context_enabled(self) -> bool:
        """Whether error pages may include (redacted) debug context."""
        return self.show_debug_context and not self.is_production()

    def is_local_app_client(self, client_id: str | None) -> bool:
        """Check whether a client ID belongs to a Bitrix24 local application."""
        return bool(client_id and client_id.startswith(self.local_app_prefix))

    def get_encryption_key(self) -> bytes:
        """Get encryption key for the settings record.

        In development mode, generates and persists key to
        ~/.bitrix24-placement/encryption.key so stored tokens survive restarts.

        Raises:
            ValueError: If encryption key not set in production mode
        """
        if self.encryption_key:
            return self.encryption_key.encode()

        if self.is_production():
            raise ValueError("ENCRYPTION_KEY must be set in production mode")

        from cryptography.fernet import Fernet

        key_file = Path.home() / ".bitrix24-placement" / "encryption.key"
        key_file.parent.mkdir(parents=True, exist_ok=True)

        if key_file.exists():
            return key_file.read_bytes().strip()

        # Generate new key and persist
        key = Fernet.generate_key()
        key_file.write_bytes(key)
        key_file.chmod(0o600)  # Owner read/write only
        return key


# Global settings instance
settings = Settings()
