"""Error taxonomy.

Two families:

- `FeedError` covers the venue/event pipeline. Any of these is terminal for the
  request and is rendered as a generic 500 `{"error": ...}` body.
- `ApiError` covers request-level failures (credentials, sessions, writes) and is
  rendered as `{"success": false, "message": ...}` with its own status code.
"""

from __future__ import annotations

from fastapi import status


class EventDiscoveryError(Exception):
    """Base exception for the application."""


class FeedError(EventDiscoveryError):
    """Base exception for feed pipeline failures."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class FetchFailure(FeedError):
    """Raised when a feed is unreachable or answers with a non-success status.

    `status` is None for transport errors and timeouts.
    """

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        if status is not None:
            message = f"Fetching {url} failed with HTTP {status}"
        else:
            message = f"Fetching {url} failed: {reason or 'no response'}"
        super().__init__(message, url=url)
        self.status = status
        self.reason = reason


class ParseFailure(FeedError):
    """Raised when a feed body is not well-formed XML or does not match the schema."""

    def __init__(self, url: str, cause: str | Exception):
        super().__init__(f"Parsing {url} failed: {cause}", url=url)
        self.cause = cause


class ApiError(EventDiscoveryError):
    """Base exception for failures reported to the client with a message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthFailure(ApiError):
    """Bad credentials or an unavailable username."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotAuthenticated(ApiError):
    """No session, or the session expired."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class PersistenceFailure(ApiError):
    """A database write failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
