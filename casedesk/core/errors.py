from __future__ import annotations

from typing import Any


class ApiError(RuntimeError):
    """Any failed call to the REST backend."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(ApiError):
    """The request never produced an HTTP response (DNS, refused, timeout...)."""


class ApiStatusError(ApiError):
    """
    Non-2xx response.

    ``server_message`` carries the body's ``error``/``message`` field when the
    backend sent a usable JSON body, otherwise None.
    """

    def __init__(self, *, status_code: int, server_message: str | None, body: Any = None) -> None:
        super().__init__(server_message or f"Request failed with status {status_code}", status_code=status_code)
        self.server_message = server_message
        self.body = body


class ValidationFailure(ValueError):
    """Client-side validation failed; nothing was sent."""


class SessionNotResolved(RuntimeError):
    """Role-gated work was attempted before the session user was known."""


class Unauthorized(PermissionError):
    pass
