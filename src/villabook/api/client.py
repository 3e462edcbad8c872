# API Client — authenticated HTTP client for the villa-booking REST API.
# Created: 2026-10-19
#
# Attaches the bearer token to every call and recovers from an expired
# access token: the first 401 of a request triggers one token refresh that
# every concurrent caller shares, then the request is sent once more with the
# new token. If the refresh fails the stored credentials are wiped, an
# auth:failure event goes out and the navigator is sent to the login page.

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError

from villabook.api.envelope import ApiResponse, decode_envelope, is_envelope
from villabook.api.errors import (
    AuthRefreshError,
    HttpStatusError,
    UnexpectedError,
    classify_error,
    error_from_response,
    extract_error_message,
    response_body,
)
from villabook.auth.credentials import CredentialStorage, CredentialStore
from villabook.auth.models import TokenPair
from villabook.config import get_settings
from villabook.events import (
    AUTH_FAILURE,
    AppEvent,
    EventBus,
    get_event_bus,
)
from villabook.i18n import normalize_language_code
from villabook.navigation import Navigator, is_login_path, login_path

logger = logging.getLogger(__name__)


class ApiClient:
    """Async client for the booking API with transparent token refresh.

    Args:
        base_url: API root, e.g. ``"https://example.com/api"``. Defaults to
            ``Settings.api_url``.
        credentials: Where the token pair lives. Defaults to the file store.
        event_bus: Receives ``auth:failure``. Defaults to the process bus.
        navigator: Receives the login redirect. Without one no redirect happens.
        language: Accessor for the current UI language, used in the login path.
        timeout: Per-call deadline in seconds. Defaults to ``Settings.request_timeout``.
        transport: Optional httpx transport (tests pass a ``MockTransport``).
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        credentials: CredentialStorage | None = None,
        event_bus: EventBus | None = None,
        navigator: Navigator | None = None,
        language: Callable[[], str] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.credentials: CredentialStorage = (
            credentials if credentials is not None else CredentialStore()
        )
        self.events = event_bus if event_bus is not None else get_event_bus()
        self.navigator = navigator
        self.refresh_path = settings.refresh_path
        self.login_route = settings.login_route
        self._language = language or (lambda: settings.default_language)

        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

        self._auth_token: str | None = self.credentials.access_token
        self._refresh_lock = asyncio.Lock()
        self._refresh_future: asyncio.Future[str] | None = None
        # Token rejected by the last failed refresh, with the error it produced
        self._failed_refresh: tuple[str | None, AuthRefreshError] | None = None

    # -- token handling --

    @property
    def auth_token(self) -> str | None:
        return self._auth_token

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_future is not None

    def set_auth_token(self, token: str | None) -> None:
        token = token or None
        if token != self._auth_token:
            self._failed_refresh = None
        self._auth_token = token

    def clear_auth_token(self) -> None:
        self.set_auth_token(None)

    # -- verbs --

    async def get(self, path: str, **kwargs: Any) -> ApiResponse[Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> ApiResponse[Any]:
        return await self.request("POST", path, body=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> ApiResponse[Any]:
        return await self.request("PUT", path, body=body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> ApiResponse[Any]:
        return await self.request("PATCH", path, body=body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> ApiResponse[Any]:
        return await self.request("DELETE", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        data_model: Any = None,
        refresh: bool = True,
    ) -> ApiResponse[Any]:
        """Send a request and return the normalized envelope.

        Raises an ``ApiError`` subclass on failure. A 401 is retried once
        after a token refresh; a second 401 is raised as ``HttpStatusError``.
        With ``refresh=False`` (credential endpoints) a 401 is raised as is.
        """
        if self._refresh_future is not None:
            await self._wait_for_refresh(self._refresh_future)

        sent_token = self._auth_token
        response = await self._send(method, path, sent_token, body, params, headers)

        if response.status_code == 401 and refresh:
            token = await self._token_after_rejection(sent_token)
            response = await self._send(method, path, token, body, params, headers)
            if response.status_code == 401:
                logger.warning("%s %s still unauthorized after token refresh", method, path)

        return self._handle_response(response, data_model)

    async def _send(
        self,
        method: str,
        path: str,
        token: str | None,
        body: Any,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        request_headers = dict(headers or {})
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        try:
            return await self._http.request(
                method,
                path,
                json=body,
                params=params,
                headers=request_headers,
            )
        except Exception as exc:
            error = classify_error(exc)
            logger.warning("%s %s failed (%s): %s", method, path, error.kind, exc)
            raise error from exc

    def _handle_response(self, response: httpx.Response, data_model: Any) -> ApiResponse[Any]:
        if response.is_error:
            raise error_from_response(response)

        body = response_body(response)
        try:
            envelope = decode_envelope(body, data_model)
        except ValidationError as exc:
            raise UnexpectedError(f"Malformed response data: {exc}") from exc

        if not envelope.success:
            raise HttpStatusError(response.status_code, envelope.message, body=body)
        return envelope

    # -- refresh coordination --

    async def _wait_for_refresh(self, future: asyncio.Future[str]) -> None:
        """Hold a call back until the running refresh settles.

        The call goes out with whatever token is held afterwards; its own
        401, if any, decides whether it ends up on the failure path.
        """
        try:
            await asyncio.shield(future)
        except AuthRefreshError:
            pass
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise

    async def _token_after_rejection(self, sent_token: str | None) -> str:
        """Return the token to retry with, refreshing at most once across callers."""
        async with self._refresh_lock:
            current = self._auth_token
            if self._refresh_future is None:
                failed = self._failed_refresh
                if (
                    failed is not None
                    and sent_token in (failed[0], None)
                    and not self.credentials.refresh_token
                ):
                    # Sent with the given-up token or none since; cleanup already ran
                    raise AuthRefreshError(failed[1].message, reason=failed[1].reason)
                if current and current != sent_token:
                    # Rejected token was already replaced by a finished refresh
                    return current

            future = self._refresh_future
            leader = future is None
            if future is None:
                future = asyncio.get_running_loop().create_future()
                self._refresh_future = future

        if leader:
            await self._run_refresh(future, sent_token)
        return await asyncio.shield(future)

    async def _run_refresh(self, future: asyncio.Future[str], rejected_token: str | None) -> None:
        failure: AuthRefreshError | None = None
        try:
            token = await self._refresh_access_token()
        except AuthRefreshError as exc:
            failure = exc
        except Exception as exc:
            failure = AuthRefreshError(f"Token refresh failed: {exc}")
            failure.__cause__ = exc
        else:
            self._refresh_future = None
            future.set_result(token)
            return
        finally:
            if not future.done() and failure is None:
                # Cancelled mid-refresh; waiters must not hang
                self._refresh_future = None
                future.cancel()

        logger.warning("Token refresh failed: %s", failure.message)
        self.credentials.clear()
        self.clear_auth_token()
        self._failed_refresh = (rejected_token, failure)
        self._refresh_future = None
        future.set_exception(failure)
        await self._handle_auth_failure(failure)

    async def _refresh_access_token(self) -> str:
        refresh_token = self.credentials.refresh_token
        if not refresh_token:
            raise AuthRefreshError("No refresh token available")

        logger.info("Access token rejected, refreshing")
        try:
            # Bare transport call: no bearer header, no retry
            response = await self._http.post(
                self.refresh_path,
                json={"refreshToken": refresh_token},
            )
        except Exception as exc:
            error = classify_error(exc)
            raise AuthRefreshError(f"Token refresh failed: {error.message}") from exc

        body = response_body(response)
        if response.is_error:
            raise AuthRefreshError(extract_error_message(body, response.status_code))
        if is_envelope(body) and not body["success"]:
            raise AuthRefreshError(body.get("message") or "Token refresh rejected")

        payload = body.get("data") if is_envelope(body) else body
        try:
            pair = TokenPair.model_validate(payload)
        except ValidationError as exc:
            raise AuthRefreshError("Malformed token refresh response") from exc

        self.credentials.save_tokens(pair.access_token, pair.refresh_token)
        if pair.user is not None:
            self.credentials.save_user(pair.user)
        self._auth_token = pair.access_token
        self._failed_refresh = None
        logger.info("Access token refreshed")
        return pair.access_token

    async def _handle_auth_failure(self, error: AuthRefreshError) -> None:
        await self.events.publish(AppEvent(AUTH_FAILURE, {"reason": error.reason}))

        if self.navigator is None:
            return
        if is_login_path(self.navigator.current_path, self.login_route):
            return
        language = normalize_language_code(self._language())
        self.navigator.redirect(login_path(language, self.login_route))

    # -- lifecycle --

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


_client_instance: ApiClient | None = None


def get_api_client() -> ApiClient:
    """Get or create the shared API client."""
    global _client_instance
    if _client_instance is None:
        _client_instance = ApiClient()

        from villabook.lifecycle import register

        def _reset():
            global _client_instance
            _client_instance = None

        register("api_client", shutdown=_client_instance.aclose, reset=_reset)
    return _client_instance


__all__ = ["ApiClient", "get_api_client"]
