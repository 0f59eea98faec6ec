"""Fernet-based encryption for secrets at rest.

Access and refresh tokens are encrypted before they are written to the
local secret database, so a copied database file is useless without the
key.
"""

from __future__ import annotations

import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class SecretEncryptor:
    """Encrypts and decrypts secret strings using Fernet symmetric encryption.

    Usage::

        encryptor = SecretEncryptor(key="...")
        token = encryptor.encrypt("eyJhbGciOi...")
        encryptor.decrypt(token)  # "eyJhbGciOi..."
    """

    def __init__(self, key: str) -> None:
        """Initialize with a Fernet key.

        Args:
            key: A valid Fernet key string. Generate with
                 :meth:`generate_key`.

        Raises:
            EncryptionError: If the key is empty or invalid.
        """
        if not key or not key.strip():
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.encode())
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    def encrypt(self, secret: str) -> str:
        """Encrypt a secret to a Fernet token string.

        Raises:
            EncryptionError: If ``secret`` is not a string.
        """
        if not isinstance(secret, str):
            raise EncryptionError(f"Secrets must be strings, got {type(secret).__name__}")
        return self._fernet.encrypt(secret.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str:
        """Decrypt a Fernet token string back to the secret.

        Raises:
            EncryptionError: If the token is invalid or was made with another key.
        """
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        except (AttributeError, UnicodeError) as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new URL-safe base64-encoded 32-byte Fernet key."""
        return Fernet.generate_key().decode("utf-8")
