"""Token lifecycle — the single writer of access and refresh tokens.

The request layer reads the current access token from here on every call,
and the auth client writes here after register/login/refresh and clears
on logout. Both tokens live in a :class:`SecretStore` so a session survives
a process restart; :meth:`CredentialStore.load` rehydrates it at start-up.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from prevonto.core.storage.secrets import SecretStore

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "com.prevonto.accessToken"
REFRESH_TOKEN_KEY = "com.prevonto.refreshToken"


@dataclass(frozen=True)
class Credentials:
    """An access/refresh token pair."""

    access_token: str
    refresh_token: str | None = None

    def __repr__(self) -> str:
        return "Credentials(access_token=***, refresh_token=***)"


class CredentialStore:
    """Holds the current tokens in memory and mirrors them to a secret store.

    ``save`` and ``clear`` write the secret store and the in-memory state
    under one lock, so a reader of :attr:`is_authenticated` never sees a
    flag that disagrees with the stored tokens.

    Usage::

        store = CredentialStore(EncryptedSecretStore(db, encryptor))
        store.load()
        if store.is_authenticated:
            ...
    """

    def __init__(self, secrets: SecretStore) -> None:
        self._secrets = secrets
        self._lock = threading.RLock()
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._listeners: list[Callable[[bool], None]] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._access_token is not None

    @property
    def access_token(self) -> str | None:
        with self._lock:
            return self._access_token

    @property
    def refresh_token(self) -> str | None:
        with self._lock:
            return self._refresh_token

    def current(self) -> Credentials | None:
        with self._lock:
            if self._access_token is None:
                return None
            return Credentials(self._access_token, self._refresh_token)

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def load(self) -> Credentials | None:
        """Rehydrate in-memory state from the secret store."""
        with self._lock:
            was_authenticated = self._access_token is not None
            self._access_token = self._secrets.get(ACCESS_TOKEN_KEY)
            self._refresh_token = self._secrets.get(REFRESH_TOKEN_KEY)
            credentials = self.current()
        logger.info("Loaded stored credentials (authenticated=%s)", credentials is not None)
        self._notify(was_authenticated, credentials is not None)
        return credentials

    def save(self, access_token: str, refresh_token: str) -> None:
        """Store a new token pair, overwriting whatever was held before.

        If the secret store fails part way, the stored pair is put back to
        what it was so the store never mixes tokens from two sessions.
        """
        if not access_token:
            raise ValueError("access_token must not be empty")
        with self._lock:
            was_authenticated = self._access_token is not None
            try:
                self._secrets.set(ACCESS_TOKEN_KEY, access_token)
                self._secrets.set(REFRESH_TOKEN_KEY, refresh_token)
            except Exception:
                self._restore_stored_pair()
                raise
            self._access_token = access_token
            self._refresh_token = refresh_token
        logger.debug("Credentials saved")
        self._notify(was_authenticated, True)

    def clear(self) -> None:
        """Forget both tokens, locally and in the secret store."""
        with self._lock:
            was_authenticated = self._access_token is not None
            # In-memory tokens are gone even if the backend delete fails
            self._access_token = None
            self._refresh_token = None
            try:
                self._secrets.delete(ACCESS_TOKEN_KEY)
            finally:
                self._secrets.delete(REFRESH_TOKEN_KEY)
        logger.info("Credentials cleared")
        self._notify(was_authenticated, False)

    def _restore_stored_pair(self) -> None:
        for key, value in (
            (ACCESS_TOKEN_KEY, self._access_token),
            (REFRESH_TOKEN_KEY, self._refresh_token),
        ):
            try:
                if value is None:
                    self._secrets.delete(key)
                else:
                    self._secrets.set(key, value)
            except Exception:
                logger.exception("Could not restore stored %s after a failed save", key)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        """Call ``listener(is_authenticated)`` whenever the flag changes.

        Returns a function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, before: bool, after: bool) -> None:
        if before == after:
            return
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(after)
