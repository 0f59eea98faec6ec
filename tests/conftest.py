"""Shared test fixtures for Prevonto client tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from prevonto.core.auth.credentials import CredentialStore  # noqa: E402
from prevonto.core.http.executor import RequestExecutor  # noqa: E402
from prevonto.core.storage.secrets import MemorySecretStore  # noqa: E402
from prevonto.domains.auth.client import AuthClient  # noqa: E402

BASE_URL = "http://api.test"


# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("PREVONTO_API_BASE_URL", BASE_URL)


# ---------------------------------------------------------------------------
# Fake API server
# ---------------------------------------------------------------------------

class FakeAPI:
    """Canned responses keyed by (method, path), served through httpx.MockTransport.

    Responses queued for a route are served in order; the last one repeats.
    Unknown routes answer 404 the way the real API does.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        content: bytes | None = None,
    ) -> FakeAPI:
        self._routes.setdefault((method, path), []).append((status, json_body, content))
        return self

    def fail(self, method: str, path: str, exc: Exception) -> FakeAPI:
        """Make ``method path`` raise ``exc`` instead of answering."""
        self._routes.setdefault((method, path), []).append(exc)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"detail": "Not Found"})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(entry, Exception):
            raise entry
        status, json_body, content = entry
        if content is not None:
            return httpx.Response(status, content=content)
        if json_body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def token_body(access: str = "A1", refresh: str = "R1") -> dict[str, Any]:
    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "expires_in": 1800,
    }


def user_body(**overrides: Any) -> dict[str, Any]:
    body = {
        "id": 7,
        "email": "a@b.com",
        "name": "Ada",
        "auth_provider": "email",
        "is_active": True,
        "is_verified": False,
        "email_verified": False,
        "consent_accepted": True,
        "consent_version": "1.0",
        "consent_date": "2025-10-01T09:00:00.000Z",
        "created_at": "2025-10-01T09:00:00Z",
        "last_login": None,
    }
    body.update(overrides)
    return body


def metric_body(**overrides: Any) -> dict[str, Any]:
    body = {
        "id": 1,
        "user_id": 7,
        "metric_type": "weight",
        "source": "manual",
        "measured_at": "2025-10-30T12:00:00.000Z",
        "value": {"weight": 70.5},
        "unit": "kg",
        "notes": None,
        "created_at": "2025-10-30T12:00:01.123456",
        "updated_at": "2025-10-30T12:00:01.123456",
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def secrets() -> MemorySecretStore:
    return MemorySecretStore()


@pytest.fixture
def credentials(secrets: MemorySecretStore) -> CredentialStore:
    return CredentialStore(secrets)


@pytest.fixture
def executor(fake_api: FakeAPI, credentials: CredentialStore) -> RequestExecutor:
    return RequestExecutor(BASE_URL, credentials, transport=fake_api.transport)


@pytest.fixture
def auth(executor: RequestExecutor, credentials: CredentialStore) -> AuthClient:
    """AuthClient wired as the executor's refresh handler."""
    client = AuthClient(executor, credentials)
    executor.set_refresh_handler(client.refresh)
    return client
