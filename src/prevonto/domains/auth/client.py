"""Auth client — session lifecycle on top of the request executor.

Successful register/login/refresh calls push the new token pair into the
CredentialStore; logout always clears it, whatever the server says.
:meth:`AuthClient.refresh` doubles as the executor's refresh handler.
"""

from __future__ import annotations

import logging

from prevonto.core.auth.credentials import CredentialStore
from prevonto.core.http.errors import (
    APIClientError,
    HTTPStatusError,
    InvalidCredentialsError,
    UnauthorizedError,
    ValidationError,
)
from prevonto.core.http.executor import (
    LOGIN_ENDPOINT,
    REFRESH_ENDPOINT,
    REGISTER_ENDPOINT,
    HTTPMethod,
    RequestExecutor,
)
from prevonto.domains.auth.models import (
    ConsentAcceptanceRequest,
    RefreshTokenRequest,
    TokenResponse,
    User,
    UserLoginRequest,
    UserRegisterRequest,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

LOGOUT_ENDPOINT = "/api/auth/logout"
ME_ENDPOINT = "/api/auth/me"
CONSENT_ENDPOINT = "/api/auth/consent"
PROFILE_ENDPOINT = "/api/settings/profile"

# Status codes the API uses for a rejected payload
_VALIDATION_STATUSES = frozenset({400, 409, 422})


class AuthClient:
    """Register, log in, refresh and log out.

    Usage::

        auth = AuthClient(executor, credentials)
        executor.set_refresh_handler(auth.refresh)
        await auth.login("a@b.com", "Passw0rd1")
    """

    def __init__(self, executor: RequestExecutor, credentials: CredentialStore) -> None:
        self._executor = executor
        self._credentials = credentials

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> TokenResponse:
        """Create an account and start a session for it.

        Raises:
            ValidationError: The server rejected the payload (duplicate email,
                password policy, ...).
        """
        try:
            tokens: TokenResponse = await self._executor.execute(
                REGISTER_ENDPOINT,
                HTTPMethod.POST,
                body=UserRegisterRequest(email=email, password=password, name=name),
                response_type=TokenResponse,
            )
        except HTTPStatusError as exc:
            if exc.status_code in _VALIDATION_STATUSES:
                raise ValidationError(exc.status_code, exc.detail) from exc
            raise

        self._credentials.save(tokens.access_token, tokens.refresh_token)
        logger.info("Registered new account")
        return tokens

    async def login(self, email: str, password: str) -> TokenResponse:
        """Start a session with email and password.

        Raises:
            InvalidCredentialsError: The server refused the credentials.
        """
        try:
            tokens: TokenResponse = await self._executor.execute(
                LOGIN_ENDPOINT,
                HTTPMethod.POST,
                body=UserLoginRequest(email=email, password=password),
                response_type=TokenResponse,
            )
        except UnauthorizedError as exc:
            raise InvalidCredentialsError() from exc
        except HTTPStatusError as exc:
            if exc.status_code in (400, 403):
                raise InvalidCredentialsError(exc.detail or "Invalid email or password") from exc
            raise

        self._credentials.save(tokens.access_token, tokens.refresh_token)
        logger.info("Logged in")
        return tokens

    async def refresh(self) -> TokenResponse:
        """Trade the stored refresh token for a new token pair.

        A refresh token the server rejects is dropped together with the
        access token, which ends the local session.

        Raises:
            UnauthorizedError: No refresh token is held, or the server
                rejected it.
        """
        refresh_token = self._credentials.refresh_token
        if not refresh_token:
            raise UnauthorizedError()

        try:
            tokens: TokenResponse = await self._executor.execute(
                REFRESH_ENDPOINT,
                HTTPMethod.POST,
                body=RefreshTokenRequest(refresh_token=refresh_token),
                response_type=TokenResponse,
            )
        except UnauthorizedError:
            logger.info("Refresh token rejected; ending session")
            self._credentials.clear()
            raise

        self._credentials.save(tokens.access_token, tokens.refresh_token)
        logger.info("Access token refreshed")
        return tokens

    async def logout(self) -> None:
        """End the session.

        The server is asked to revoke the refresh token, but local
        credentials are cleared even when that call fails.
        """
        refresh_token = self._credentials.refresh_token
        try:
            if refresh_token:
                await self._executor.execute(
                    LOGOUT_ENDPOINT,
                    HTTPMethod.POST,
                    body=RefreshTokenRequest(refresh_token=refresh_token),
                )
        except APIClientError as exc:
            logger.warning(
                "Server-side logout failed (%s); clearing local session anyway",
                type(exc).__name__,
            )
        finally:
            self._credentials.clear()

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def accept_consent(
        self, consent_type: str = "hipaa_consent", version: str = "1.0"
    ) -> None:
        await self._executor.execute(
            CONSENT_ENDPOINT,
            HTTPMethod.POST,
            body=ConsentAcceptanceRequest(consent_type=consent_type, version=version),
        )

    async def get_current_user(self) -> User:
        return await self._executor.execute(ME_ENDPOINT, response_type=User)

    async def update_profile(self, name: str | None = None, email: str | None = None) -> User:
        """Change the display name and/or email of the signed-in account."""
        try:
            return await self._executor.execute(
                PROFILE_ENDPOINT,
                HTTPMethod.PUT,
                body=UserUpdateRequest(name=name, email=email),
                response_type=User,
            )
        except HTTPStatusError as exc:
            if exc.status_code in _VALIDATION_STATUSES:
                raise ValidationError(exc.status_code, exc.detail) from exc
            raise
