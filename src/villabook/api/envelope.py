# Response envelope — the {success, message, data} shape every call returns.
# Created: 2026-10-19

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter

T = TypeVar("T")

DEFAULT_MESSAGE = "Success"


class ApiResponse(BaseModel, Generic[T]):
    """Normalized API response."""

    success: bool
    message: str = DEFAULT_MESSAGE
    data: T | None = None


def is_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("success"), bool)


def decode_envelope(payload: Any, data_model: Any = None) -> ApiResponse[Any]:
    """Decode a response body into an ``ApiResponse``.

    A JSON object with a boolean ``success`` is an envelope already.
    Anything else (objects without ``success``, lists, scalars, an empty
    body) is taken as bare data from a successful call and wrapped with
    ``success=True`` and ``message="Success"``.

    When *data_model* is given, ``data`` is validated against it.
    """
    if is_envelope(payload):
        success = payload["success"]
        message = payload.get("message") or (DEFAULT_MESSAGE if success else "Request failed")
        data = payload.get("data")
    else:
        success, message, data = True, DEFAULT_MESSAGE, payload

    if data_model is not None and data is not None and success:
        data = TypeAdapter(data_model).validate_python(data)

    return ApiResponse[Any](success=success, message=message, data=data)
