"""Security utilities for settings encryption and debug redaction."""

from typing import Any

from cryptography.fernet import Fernet

# Keys whose values must never reach logs or rendered pages
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "client_secret",
        "auth",
        "auth_id",
        "app_sid",
        "code",
        "refresh_id",
    }
)


class TokenEncryption:
    """Encrypt and decrypt the stored settings record."""

    def __init__(self, key: bytes) -> None:
        """Initialize encryption with a Fernet key, see `Settings.get_encryption_key`."""
        self.cipher = Fernet(key)

    def encrypt(self, token: str) -> str:
        """Encrypt a value for database storage.

        Args:
            token: Plain text value

        Returns:
            Encrypted value (base64 encoded)
        """
        return self.cipher.encrypt(token.encode()).decode()

    def decrypt(self, encrypted_token: str) -> str:
        """Decrypt a value from database.

        Args:
            encrypted_token: Encrypted value (base64 encoded)

        Returns:
            Plain text value
        """
        return self.cipher.decrypt(encrypted_token.encode()).decode()


def mask_secret(value: Any) -> str | None:
    """Show only the first few characters of a secret value."""
    if value in (None, ""):
        return None
    text = str(value)
    return f"{text[:4]}..." if len(text) > 4 else "***"


def redact(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with sensitive values masked (recursively)."""
    redacted: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_KEYS:
            redacted[key] = mask_secret(value)
        elif isinstance(value, dict):
            redacted[key] = redact(value)
        else:
            redacted[key] = value
    return redacted
