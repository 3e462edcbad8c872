# End-to-end flow against a FastAPI stand-in for the booking API.
# Created: 2026-10-19

import asyncio
import itertools

import httpx
import pytest
from fastapi import APIRouter, FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from villabook.api.client import ApiClient
from villabook.api.errors import AuthRefreshError, HttpStatusError
from villabook.auth.credentials import MemoryCredentialStore
from villabook.auth.session import SESSION_EXPIRED_MESSAGE, AuthSession
from villabook.events import EventBus
from villabook.i18n import LocaleState
from villabook.navigation import HistoryNavigator


class LoginBody(BaseModel):
    email: str
    password: str


class RefreshBody(BaseModel):
    refreshToken: str


class BookingApi:
    """Issues numbered tokens; ``expire_all`` invalidates every access token."""

    def __init__(self):
        self._seq = itertools.count(1)
        self.access_tokens: set[str] = set()
        self.refresh_tokens: set[str] = set()
        self.refresh_calls = 0
        self.user = {
            "id": "u1",
            "email": "guest@example.com",
            "firstName": "Ada",
            "lastName": "Guest",
            "role": "GUEST",
        }

    def issue(self) -> dict:
        n = next(self._seq)
        access, refresh = f"access-{n}", f"refresh-{n}"
        self.access_tokens.add(access)
        self.refresh_tokens.add(refresh)
        return {"accessToken": access, "refreshToken": refresh, "user": self.user}

    def expire_all(self) -> None:
        self.access_tokens.clear()

    def revoke_refresh(self) -> None:
        self.refresh_tokens.clear()

    def require(self, authorization: str | None) -> None:
        token = (authorization or "").removeprefix("Bearer ")
        if token not in self.access_tokens:
            raise HTTPException(status_code=401, detail="Token expired")

    def build_app(self) -> FastAPI:
        router = APIRouter(prefix="/api")

        @router.post("/auth/login")
        async def login(body: LoginBody):
            if body.password != "secret":
                return JSONResponse(
                    status_code=401, content={"success": False, "message": "Invalid credentials"}
                )
            return {"success": True, "message": "Login successful", "data": self.issue()}

        @router.post("/auth/refresh-token")
        async def refresh(body: RefreshBody):
            self.refresh_calls += 1
            await asyncio.sleep(0.01)
            if body.refreshToken not in self.refresh_tokens:
                return JSONResponse(
                    status_code=401, content={"success": False, "message": "Invalid refresh token"}
                )
            self.refresh_tokens.discard(body.refreshToken)
            return {"success": True, "data": self.issue()}

        @router.get("/auth/me")
        async def me(authorization: str | None = Header(default=None)):
            self.require(authorization)
            return {"success": True, "data": {"user": self.user}}

        @router.get("/villas")
        async def villas(authorization: str | None = Header(default=None)):
            self.require(authorization)
            await asyncio.sleep(0.01)
            # Bare list on purpose: not every endpoint wraps its payload
            return [{"id": "v1", "name": "Palm Villa"}]

        app = FastAPI()
        app.include_router(router)
        return app


@pytest.fixture
def api():
    return BookingApi()


@pytest.fixture
def navigator():
    return HistoryNavigator("/fr/bookings")


@pytest.fixture
async def client(api, navigator):
    locale = LocaleState("fr")
    async with ApiClient(
        "http://testserver/api",
        credentials=MemoryCredentialStore(),
        event_bus=EventBus(),
        navigator=navigator,
        language=locale.get,
        transport=httpx.ASGITransport(app=api.build_app()),
    ) as c:
        yield c


async def test_login_and_fetch(api, client):
    session = AuthSession(client)
    await session.login("guest@example.com", "secret")

    resp = await client.get("/villas")

    assert resp.message == "Success"
    assert resp.data == [{"id": "v1", "name": "Palm Villa"}]
    assert api.refresh_calls == 0


async def test_wrong_password(client):
    session = AuthSession(client)
    with pytest.raises(HttpStatusError) as exc_info:
        await session.login("guest@example.com", "nope")
    assert exc_info.value.message == "Invalid credentials"


async def test_expired_token_refreshed_once_for_parallel_calls(api, client):
    session = AuthSession(client)
    await session.login("guest@example.com", "secret")
    api.expire_all()

    results = await asyncio.gather(*(client.get("/villas") for _ in range(4)))

    assert all(r.data[0]["id"] == "v1" for r in results)
    assert api.refresh_calls == 1
    assert client.auth_token == "access-2"
    assert client.credentials.refresh_token == "refresh-2"


async def test_revoked_refresh_token_ends_session(api, client, navigator):
    session = AuthSession(client)
    await session.login("guest@example.com", "secret")
    api.expire_all()
    api.revoke_refresh()

    with pytest.raises(AuthRefreshError):
        await client.get("/auth/me")

    assert navigator.history == ["/fr/login"]
    assert session.user is None
    assert session.error == SESSION_EXPIRED_MESSAGE
    assert client.credentials.access_token is None


async def test_unknown_refresh_token_rejected(client):
    client.credentials.save_tokens("forged", "bogus")
    client.set_auth_token("forged")

    with pytest.raises(AuthRefreshError) as exc_info:
        await client.get("/villas")
    assert exc_info.value.message == "Invalid refresh token"


async def test_fastapi_detail_surfaces_as_message(client):
    with pytest.raises(HttpStatusError) as exc_info:
        await client.get("/no-such-endpoint")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Not Found"
