# Auth Session — login state on top of the API client.
# Created: 2026-10-19

from __future__ import annotations

import logging

from villabook.api.client import ApiClient
from villabook.api.errors import ApiError
from villabook.auth.models import LoginData, RegisterData, Role, TokenPair, User
from villabook.events import AUTH_FAILURE, AppEvent

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


class AuthSession:
    """Tracks the signed-in user.

    Stores the token pair and user on login/register, hands the access
    token to the client, and forgets the user when the client broadcasts
    ``auth:failure``. Call ``close()`` to stop listening.
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self.credentials = client.credentials
        self.user: User | None = None
        self.error: str | None = None
        client.events.subscribe(AUTH_FAILURE, self._on_auth_failure)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.credentials.access_token)

    async def restore(self) -> User | None:
        """Resume a stored session, verifying it against ``/auth/me``.

        Any failure clears the stored credentials.
        """
        stored_user = self.credentials.load_user()
        access_token = self.credentials.access_token
        if stored_user is None or not access_token:
            return None

        self.client.set_auth_token(access_token)
        try:
            self.user = await self.fetch_current_user()
        except ApiError as e:
            logger.warning("Stored session rejected, clearing credentials: %s", e)
            self._clear()
            return None
        return self.user

    async def fetch_current_user(self) -> User:
        response = await self.client.get("/auth/me")
        data = response.data
        # /auth/me answers either {user: {...}} or the user object itself
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        user = User.model_validate(data)
        self.credentials.save_user(user)
        return user

    async def login(self, email: str, password: str) -> User:
        payload = LoginData(email=email, password=password)
        return await self._authenticate(
            "/auth/login", payload.model_dump(by_alias=True), "Login failed"
        )

    async def register(self, data: RegisterData) -> User:
        return await self._authenticate(
            "/auth/register", data.model_dump(by_alias=True), "Registration failed"
        )

    async def _authenticate(self, path: str, body: dict, failure_message: str) -> User:
        self.error = None
        try:
            response = await self.client.post(path, body, refresh=False)
            pair = TokenPair.model_validate(response.data or {})
        except ApiError as e:
            self.error = e.message or failure_message
            raise
        except ValueError as e:
            self.error = failure_message
            raise ApiError(failure_message) from e

        self.credentials.save_tokens(pair.access_token, pair.refresh_token)
        self.client.set_auth_token(pair.access_token)
        if pair.user is not None:
            self.credentials.save_user(pair.user)
            self.user = pair.user
        else:
            self.user = await self.fetch_current_user()
        logger.info("Signed in as %s", self.user.email)
        return self.user

    async def logout(self) -> None:
        """Log out on the server; local credentials go regardless."""
        self.error = None
        try:
            await self.client.post("/auth/logout")
        except ApiError as e:
            logger.warning("Server logout failed, clearing local data anyway: %s", e)
        finally:
            self._clear()

    def has_role(self, role: Role | str) -> bool:
        if self.user is None:
            return False
        try:
            role = Role(role)
        except ValueError:
            return False
        if self.user.role is Role.ADMIN:
            return True
        if self.user.role is Role.HOST and role in (Role.HOST, Role.GUEST):
            return True
        return self.user.role is role

    def is_guest(self) -> bool:
        return self.has_role(Role.GUEST)

    def is_host(self) -> bool:
        return self.has_role(Role.HOST)

    def is_admin(self) -> bool:
        return self.user is not None and self.user.role is Role.ADMIN

    def clear_error(self) -> None:
        self.error = None

    def close(self) -> None:
        self.client.events.unsubscribe(AUTH_FAILURE, self._on_auth_failure)

    def _clear(self) -> None:
        self.credentials.clear()
        self.client.clear_auth_token()
        self.user = None

    def _on_auth_failure(self, event: AppEvent) -> None:
        logger.info("Auth failure (%s), signing out", event.data.get("reason"))
        self._clear()
        self.error = SESSION_EXPIRED_MESSAGE
