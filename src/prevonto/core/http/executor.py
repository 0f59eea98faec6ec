"""Request executor — one HTTP round trip per call, with a bounded refresh retry.

Every service in the client goes through :meth:`RequestExecutor.execute`.
It joins the endpoint onto the configured base URL, attaches JSON and
bearer headers, encodes the body through :mod:`prevonto.core.json.dynamic`,
sends it with ``httpx`` and classifies the response:

* 2xx — decoded into ``response_type`` (or ``None`` when no content is expected)
* 401 — at most one token refresh, then one re-issue of the same request
* anything else — :class:`HTTPStatusError` with the server's ``detail`` if any

Usage::

    executor = RequestExecutor("http://localhost:8000", credentials)
    executor.set_refresh_handler(auth_client.refresh)
    user = await executor.execute("/api/auth/me", response_type=User)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import httpx

from prevonto.core.auth.credentials import CredentialStore
from prevonto.core.http.decoding import Decodable, PayloadError, PayloadReader
from prevonto.core.http.errors import (
    APIClientError,
    HTTPStatusError,
    InvalidTargetError,
    RequestEncodingError,
    ResponseDecodingError,
    TransportError,
    UnauthorizedError,
)
from prevonto.core.json.dynamic import DynamicDecodeError, DynamicValue, decode, encode
from prevonto.core.storage.secrets import SecretStoreError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"

REGISTER_ENDPOINT = "/api/auth/register"
LOGIN_ENDPOINT = "/api/auth/login"
REFRESH_ENDPOINT = "/api/auth/refresh"

# A 401 from these endpoints is final
NO_REFRESH_ENDPOINTS = frozenset({REFRESH_ENDPOINT, LOGIN_ENDPOINT, REGISTER_ENDPOINT})

# Upper bound on refresh-and-reissue cycles per call
MAX_AUTH_RETRIES = 1

RefreshHandler = Callable[[], Awaitable[Any]]


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class ListOf:
    """Response shape for a top-level JSON array of ``model`` objects."""

    def __init__(self, model: type[Decodable]) -> None:
        self.model = model

    def from_reader(self, reader: PayloadReader) -> list[Any]:
        return reader.as_list_of(self.model)

    def __repr__(self) -> str:
        return f"ListOf({self.model.__name__})"


class RequestExecutor:
    """Builds, sends and classifies API requests.

    The executor reads the access token from ``credentials`` but never
    writes it; token changes only happen inside the refresh handler. A
    refresh outlives a cancelled caller, and :meth:`aclose` waits for it.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        connect_timeout: float = 30.0,
        request_timeout: float = 60.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._credentials = credentials
        self._request_timeout = request_timeout
        self._refresh_handler: RefreshHandler | None = None
        self._detached_refreshes: set[asyncio.Future] = set()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout, connect=connect_timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_refresh_handler(self, handler: RefreshHandler | None) -> None:
        """Register the coroutine function run when a request comes back 401."""
        self._refresh_handler = handler

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(
        self,
        endpoint: str,
        method: HTTPMethod | str = HTTPMethod.GET,
        body: Any = None,
        response_type: Any = None,
        retry_count: int = 0,
    ) -> Any:
        """Send one request and decode the response.

        Args:
            endpoint: Path (and optional query string) starting with ``/``.
            method: HTTP method.
            body: A DynamicValue, an object with ``to_dynamic()``, or plain
                JSON-like Python data. ``None`` sends no body.
            response_type: A model with ``from_reader``, a :class:`ListOf`,
                ``DynamicValue`` for the raw tree, or ``None`` when no
                content is expected.
            retry_count: Refresh cycles already spent on this call.

        Raises:
            APIClientError: One of the subclasses in
                :mod:`prevonto.core.http.errors`.
        """
        method = HTTPMethod(method)
        url = self.build_url(endpoint)
        content = self.encode_body(body) if body is not None else None

        request = self._client.build_request(
            method.value, url, headers=self.build_headers(), content=content
        )
        try:
            response = await asyncio.wait_for(
                self._client.send(request), timeout=self._request_timeout
            )
        except (httpx.RequestError, asyncio.TimeoutError) as exc:
            logger.warning("%s %s failed: %s", method.value, endpoint, type(exc).__name__)
            raise TransportError(f"Network error: {str(exc) or type(exc).__name__}") from exc

        status = response.status_code
        logger.debug("%s %s -> %d", method.value, endpoint, status)

        if 200 <= status < 300:
            return self.decode_response(response.content, response_type)

        if status == 401:
            if not self._can_refresh(endpoint, retry_count):
                raise UnauthorizedError()
            await self._refresh(endpoint)
            return await self.execute(
                endpoint, method, body, response_type, retry_count=retry_count + 1
            )

        raise HTTPStatusError(status, _error_detail(response.content))

    async def aclose(self) -> None:
        if self._detached_refreshes:
            await asyncio.gather(*self._detached_refreshes, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RequestExecutor:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def build_url(self, endpoint: str) -> httpx.URL:
        """Join ``endpoint`` onto the base URL.

        Raises:
            InvalidTargetError: The result is not an absolute http(s) URL.
        """
        if not isinstance(endpoint, str) or not endpoint.startswith("/"):
            raise InvalidTargetError(f"Invalid URL: endpoint must start with '/': {endpoint!r}")
        try:
            url = httpx.URL(self._base_url + endpoint)
        except (httpx.InvalidURL, ValueError, TypeError) as exc:
            raise InvalidTargetError(f"Invalid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidTargetError(f"Invalid URL: {self._base_url + endpoint!r}")
        return url

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": JSON_MEDIA_TYPE, "Accept": JSON_MEDIA_TYPE}
        token = self._credentials.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def encode_body(body: Any) -> bytes:
        """Encode a request body; every datetime becomes ISO 8601 UTC.

        Raises:
            RequestEncodingError: The body has no JSON representation.
        """
        try:
            if isinstance(body, DynamicValue):
                value = body
            elif hasattr(body, "to_dynamic"):
                value = body.to_dynamic()
            else:
                value = DynamicValue.from_native(body)
            return encode(value)
        except (TypeError, ValueError) as exc:
            raise RequestEncodingError(f"Failed to encode request: {exc}") from exc

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    @staticmethod
    def decode_response(content: bytes, response_type: Any) -> Any:
        """Decode a 2xx body into ``response_type``.

        Raises:
            ResponseDecodingError: The body is empty, malformed, or does not
                match the expected shape.
        """
        if response_type is None:
            return None
        if not content.strip():
            raise ResponseDecodingError("empty response body")
        try:
            value = decode(content)
        except DynamicDecodeError as exc:
            raise ResponseDecodingError(str(exc)) from exc
        if response_type is DynamicValue:
            return value
        try:
            return response_type.from_reader(PayloadReader(value))
        except PayloadError as exc:
            raise ResponseDecodingError(exc.reason, path=exc.path) from exc

    def _can_refresh(self, endpoint: str, retry_count: int) -> bool:
        path = endpoint.split("?", 1)[0]
        return (
            retry_count < MAX_AUTH_RETRIES
            and path not in NO_REFRESH_ENDPOINTS
            and self._refresh_handler is not None
        )

    async def _refresh(self, endpoint: str) -> None:
        """Run the refresh handler to completion, even if the caller is cancelled."""
        logger.info("Access token rejected on %s; attempting refresh", endpoint)
        task = asyncio.ensure_future(self._refresh_handler())
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                logger.info("Call to %s cancelled; letting token refresh finish", endpoint)
                self._detached_refreshes.add(task)
                task.add_done_callback(self._detached_refreshes.discard)
                task.add_done_callback(_log_detached_refresh)
            raise
        except (APIClientError, SecretStoreError) as exc:
            logger.warning("Token refresh failed: %s", type(exc).__name__)
            raise UnauthorizedError() from exc


def _log_detached_refresh(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Detached token refresh failed: %s", type(exc).__name__)


def _error_detail(content: bytes) -> str | None:
    """Pull ``detail`` out of an error body, if it is a JSON object with one."""
    if not content:
        return None
    try:
        value = decode(content)
    except DynamicDecodeError:
        return None
    detail = value.get("detail")
    return detail.as_str() if detail is not None else None
