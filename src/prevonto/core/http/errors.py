"""Failure taxonomy for the API client.

Every failure the request layer can produce is one of these classes, all
rooted at :class:`APIClientError`. ``retryable`` tells the UI boundary how to
present the failure: retryable errors get a generic "try again", client-bug
errors are logged rather than shown, and :class:`UnauthorizedError` means the
user has to sign in again.
"""

from __future__ import annotations


class APIClientError(Exception):
    """Base exception for all API client errors."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTargetError(APIClientError):
    """The endpoint could not be turned into a routable URL."""


class RequestEncodingError(APIClientError):
    """The request body could not be serialized to JSON."""


class TransportError(APIClientError):
    """DNS failure, refused connection, timeout or other transport failure.

    Never retried automatically by the request layer.
    """

    retryable = True


class UnauthorizedError(APIClientError):
    """A 401 that a single token refresh could not resolve."""

    def __init__(self, message: str = "Unauthorized - Please sign in again") -> None:
        super().__init__(message)


class HTTPStatusError(APIClientError):
    """Any other non-2xx response."""

    retryable = True

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        self.detail = message
        super().__init__(message or f"HTTP Error: {status_code}")


class ResponseDecodingError(APIClientError):
    """A 2xx response body did not match the expected shape."""

    def __init__(self, message: str, path: str = "$") -> None:
        self.path = path
        super().__init__(f"Failed to decode response at {path}: {message}")


class ValidationError(HTTPStatusError):
    """The server rejected a registration or profile payload."""

    retryable = False


class InvalidCredentialsError(APIClientError):
    """Login was refused: wrong email or password."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


def is_retryable_error(error: BaseException) -> bool:
    """Whether the UI should offer a plain retry for ``error``."""
    return isinstance(error, APIClientError) and error.retryable
