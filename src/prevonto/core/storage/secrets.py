"""Secret stores — the opaque key/value backend behind CredentialStore.

CredentialStore only needs ``get``/``set``/``delete`` by key. Two backends
implement that:

* :class:`EncryptedSecretStore` — SQLite rows holding Fernet tokens; survives
  process restarts.
* :class:`MemorySecretStore` — a dict; for tests and runs without an
  encryption key.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol, runtime_checkable

from prevonto.core.storage.database import SecretDatabase
from prevonto.core.storage.encryption import EncryptionError, SecretEncryptor

logger = logging.getLogger(__name__)


class SecretStoreError(Exception):
    """Raised when the secret backend cannot read or write a value."""


@runtime_checkable
class SecretStore(Protocol):
    """Key/value store for secrets."""

    def get(self, key: str) -> str | None:
        """Return the secret stored under ``key``, or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``. Deleting a missing key is not an error."""
        ...


class MemorySecretStore:
    """In-process secret store. Nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def __len__(self) -> int:
        return len(self._values)


class EncryptedSecretStore:
    """Secret store backed by the ``secrets`` table, values encrypted with Fernet.

    Usage::

        db = SecretDatabase("~/.prevonto/secrets.db")
        db.initialize()
        store = EncryptedSecretStore(db, SecretEncryptor(key))
        store.set("com.prevonto.accessToken", "...")
    """

    def __init__(self, database: SecretDatabase, encryptor: SecretEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    def get(self, key: str) -> str | None:
        with self._db.lock:
            try:
                row = self._db.connection.execute(
                    "SELECT value_enc FROM secrets WHERE key = ?", (key,)
                ).fetchone()
            except sqlite3.Error as exc:
                raise SecretStoreError(f"Failed to read secret {key!r}: {exc}") from exc
        if row is None:
            return None
        try:
            return self._enc.decrypt(row["value_enc"])
        except EncryptionError:
            # A secret written under a different key reads as absent
            logger.warning("Secret %s could not be decrypted; treating as missing", key)
            return None

    def set(self, key: str, value: str) -> None:
        token = self._enc.encrypt(value)
        with self._db.lock:
            conn = self._db.connection
            try:
                conn.execute(
                    """INSERT INTO secrets (key, value_enc, updated_at)
                       VALUES (?, ?, datetime('now'))
                       ON CONFLICT(key) DO UPDATE SET
                           value_enc = excluded.value_enc,
                           updated_at = excluded.updated_at""",
                    (key, token),
                )
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise SecretStoreError(f"Failed to write secret {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        with self._db.lock:
            conn = self._db.connection
            try:
                conn.execute("DELETE FROM secrets WHERE key = ?", (key,))
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise SecretStoreError(f"Failed to delete secret {key!r}: {exc}") from exc
