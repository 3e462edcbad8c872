"""HTTP layer for the villa-booking API."""

from villabook.api.client import ApiClient, get_api_client
from villabook.api.envelope import ApiResponse, decode_envelope
from villabook.api.errors import (
    ApiError,
    ApiTimeoutError,
    AuthRefreshError,
    HttpStatusError,
    NetworkError,
    UnexpectedError,
    extract_error_message,
)

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiResponse",
    "ApiTimeoutError",
    "AuthRefreshError",
    "HttpStatusError",
    "NetworkError",
    "UnexpectedError",
    "decode_envelope",
    "extract_error_message",
    "get_api_client",
]
