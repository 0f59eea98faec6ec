"""Tests for AuthClient — register, login, refresh, logout and account calls."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import token_body, user_body
from prevonto.core.http.errors import (
    HTTPStatusError,
    InvalidCredentialsError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestLogin:
    def test_login_stores_tokens_and_authorizes_next_call(self, fake_api, auth, credentials):
        fake_api.add("POST", "/api/auth/login", json_body=token_body("A1", "R1"))
        fake_api.add("GET", "/api/auth/me", json_body=user_body())

        tokens = _run(auth.login("a@b.com", "Passw0rd1"))
        assert tokens.access_token == "A1"
        assert credentials.is_authenticated
        assert credentials.refresh_token == "R1"

        login_request = fake_api.calls("POST", "/api/auth/login")[0]
        assert fake_api.body(login_request) == {"email": "a@b.com", "password": "Passw0rd1"}
        assert "Authorization" not in login_request.headers

        user = _run(auth.get_current_user())
        assert user.email == "a@b.com"
        me_request = fake_api.calls("GET", "/api/auth/me")[0]
        assert me_request.headers["Authorization"] == "Bearer A1"

    def test_wrong_password(self, fake_api, auth, credentials):
        fake_api.add("POST", "/api/auth/login", status=401, json_body={"detail": "Bad creds"})
        with pytest.raises(InvalidCredentialsError):
            _run(auth.login("a@b.com", "nope"))
        assert not credentials.is_authenticated
        assert len(fake_api.requests) == 1

    @pytest.mark.parametrize("status", [400, 403])
    def test_rejected_login_statuses(self, fake_api, auth, status):
        fake_api.add("POST", "/api/auth/login", status=status, json_body={"detail": "Inactive user"})
        with pytest.raises(InvalidCredentialsError, match="Inactive user"):
            _run(auth.login("a@b.com", "x"))

    def test_server_error_passes_through(self, fake_api, auth):
        fake_api.add("POST", "/api/auth/login", status=500)
        with pytest.raises(HTTPStatusError) as exc_info:
            _run(auth.login("a@b.com", "x"))
        assert not isinstance(exc_info.value, ValidationError)

    def test_token_response_repr_hides_tokens(self, fake_api, auth):
        fake_api.add("POST", "/api/auth/login", json_body=token_body("secret-A", "secret-R"))
        tokens = _run(auth.login("a@b.com", "x"))
        assert "secret" not in repr(tokens)


class TestRegister:
    def test_register_sends_optional_name(self, fake_api, auth, credentials):
        fake_api.add("POST", "/api/auth/register", status=201, json_body=token_body())
        _run(auth.register("a@b.com", "Passw0rd1", name="Ada"))
        body = fake_api.body(fake_api.requests[0])
        assert body == {"email": "a@b.com", "password": "Passw0rd1", "name": "Ada"}
        assert credentials.is_authenticated

    def test_register_omits_missing_name(self, fake_api, auth):
        fake_api.add("POST", "/api/auth/register", status=201, json_body=token_body())
        _run(auth.register("a@b.com", "Passw0rd1"))
        assert "name" not in fake_api.body(fake_api.requests[0])

    @pytest.mark.parametrize("status", [400, 409, 422])
    def test_rejected_payload_is_validation_error(self, fake_api, auth, credentials, status):
        fake_api.add(
            "POST", "/api/auth/register", status=status, json_body={"detail": "Email already registered"}
        )
        with pytest.raises(ValidationError) as exc_info:
            _run(auth.register("a@b.com", "Passw0rd1"))
        assert exc_info.value.status_code == status
        assert exc_info.value.message == "Email already registered"
        assert not credentials.is_authenticated

    def test_register_401_is_final(self, fake_api, auth):
        fake_api.add("POST", "/api/auth/register", status=401)
        with pytest.raises(UnauthorizedError):
            _run(auth.register("a@b.com", "Passw0rd1"))
        assert len(fake_api.requests) == 1


class TestRefresh:
    def test_expired_token_refreshed_transparently(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("GET", "/api/auth/me", status=401)
        fake_api.add("GET", "/api/auth/me", json_body=user_body())
        fake_api.add("POST", "/api/auth/refresh", json_body=token_body("A2", "R2"))

        user = _run(auth.get_current_user())
        assert user.id == 7

        refresh_request = fake_api.calls("POST", "/api/auth/refresh")[0]
        assert fake_api.body(refresh_request) == {"refresh_token": "R1"}
        me_calls = fake_api.calls("GET", "/api/auth/me")
        assert [c.headers["Authorization"] for c in me_calls] == ["Bearer A1", "Bearer A2"]
        assert credentials.refresh_token == "R2"

    def test_persistent_401_refreshes_once(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("GET", "/api/auth/me", status=401)
        fake_api.add("POST", "/api/auth/refresh", json_body=token_body("A2", "R2"))

        with pytest.raises(UnauthorizedError):
            _run(auth.get_current_user())
        assert len(fake_api.calls("POST", "/api/auth/refresh")) == 1
        assert len(fake_api.calls("GET", "/api/auth/me")) == 2

    def test_rejected_refresh_token_ends_session(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("GET", "/api/auth/me", status=401)
        fake_api.add("POST", "/api/auth/refresh", status=401)

        with pytest.raises(UnauthorizedError):
            _run(auth.get_current_user())
        assert not credentials.is_authenticated
        assert len(fake_api.calls("POST", "/api/auth/refresh")) == 1

    def test_refresh_without_token(self, fake_api, auth):
        with pytest.raises(UnauthorizedError):
            _run(auth.refresh())
        assert fake_api.requests == []

    def test_network_failure_keeps_session(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.fail("POST", "/api/auth/refresh", httpx.ConnectError("down"))
        with pytest.raises(TransportError):
            _run(auth.refresh())
        assert credentials.access_token == "A1"


class TestLogout:
    def test_logout_revokes_and_clears(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("POST", "/api/auth/logout", json_body={"message": "Logged out"})
        _run(auth.logout())
        assert fake_api.body(fake_api.requests[0]) == {"refresh_token": "R1"}
        assert not credentials.is_authenticated

    def test_logout_clears_on_network_failure(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.fail("POST", "/api/auth/logout", httpx.ConnectError("offline"))
        _run(auth.logout())
        assert not credentials.is_authenticated

    def test_logout_clears_on_server_error(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("POST", "/api/auth/logout", status=500)
        _run(auth.logout())
        assert not credentials.is_authenticated

    def test_logout_without_session_sends_nothing(self, fake_api, auth):
        _run(auth.logout())
        assert fake_api.requests == []


class TestAccount:
    def test_accept_consent(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("POST", "/api/auth/consent", json_body={"message": "ok"})
        _run(auth.accept_consent())
        assert fake_api.body(fake_api.requests[0]) == {
            "consent_type": "hipaa_consent",
            "version": "1.0",
            "accepted": True,
        }

    def test_current_user_fields(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("GET", "/api/auth/me", json_body=user_body(last_login="2025-11-01T08:00:00"))
        user = _run(auth.get_current_user())
        assert user.name == "Ada"
        assert user.consent_accepted is True
        assert user.last_login.year == 2025

    def test_update_profile_sends_only_given_fields(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("PUT", "/api/settings/profile", json_body=user_body(name="Grace"))
        user = _run(auth.update_profile(name="Grace"))
        assert user.name == "Grace"
        assert fake_api.body(fake_api.requests[0]) == {"name": "Grace"}

    def test_update_profile_conflict(self, fake_api, auth, credentials):
        credentials.save("A1", "R1")
        fake_api.add("PUT", "/api/settings/profile", status=409, json_body={"detail": "Email taken"})
        with pytest.raises(ValidationError, match="Email taken"):
            _run(auth.update_profile(email="taken@b.com"))
