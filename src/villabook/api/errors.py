"""Errors raised by the API client.

Every failure reaching a caller is an ``ApiError``:

- ``NetworkError``: the server was never reached.
- ``ApiTimeoutError``: the request outlived its deadline.
- ``AuthRefreshError``: the token refresh failed; the session is gone.
- ``HttpStatusError``: the server answered with a failure status.
- ``UnexpectedError``: anything else.
"""

from __future__ import annotations

from typing import Any

import httpx


class ApiError(Exception):
    """Base class for API client failures."""

    kind = "unexpected"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(ApiError):
    kind = "network"


class ApiTimeoutError(ApiError, TimeoutError):
    kind = "timeout"


class AuthRefreshError(ApiError):
    kind = "auth_refresh"

    def __init__(self, message: str, reason: str = "token_refresh_failed"):
        super().__init__(message)
        self.reason = reason


class HttpStatusError(ApiError):
    kind = "http"

    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __repr__(self) -> str:
        return f"HttpStatusError(status_code={self.status_code}, message={self.message!r})"


class UnexpectedError(ApiError):
    kind = "unexpected"


def _first_text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict):
        msg = value.get("message")
        if isinstance(msg, str) and msg:
            return msg
    return None


def extract_error_message(body: Any, status_code: int) -> str:
    """Pull a human-readable message out of an error response body.

    Priority: plain string body, ``message``, ``error``, first entry of
    ``errors``, ``detail``, then a generic status line. ``error`` and
    ``errors`` entries may be objects carrying their own ``message``.
    """
    if isinstance(body, str) and body.strip():
        return body.strip()

    if isinstance(body, dict):
        for key in ("message", "error"):
            text = _first_text(body.get(key))
            if text:
                return text

        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            text = _first_text(errors[0])
            if text:
                return text

        detail = body.get("detail")
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list) and detail:
            # FastAPI validation errors: [{"loc": ..., "msg": ...}]
            first = detail[0]
            if isinstance(first, dict) and isinstance(first.get("msg"), str):
                return first["msg"]

    return f"Request failed with status {status_code}"


def response_body(response: httpx.Response) -> Any:
    """Decoded JSON body, the raw text when it isn't JSON, or None when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_from_response(response: httpx.Response) -> HttpStatusError:
    body = response_body(response)
    return HttpStatusError(
        response.status_code,
        extract_error_message(body, response.status_code),
        body=body,
    )


def classify_error(exc: BaseException) -> ApiError:
    """Map a transport-level exception onto the ``ApiError`` family.

    Timeouts are checked before other transport errors since httpx
    timeouts are transport errors too.
    """
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return ApiTimeoutError(f"Request timed out: {exc}")
    if isinstance(exc, httpx.HTTPStatusError):
        return error_from_response(exc.response)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(f"Network error: {exc}")
    return UnexpectedError(f"Unexpected error: {exc}")
