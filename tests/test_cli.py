# Tests for the villabook command line.
# Created: 2026-10-19

import functools
import json

import httpx
import pytest

from villabook import __main__ as cli
from villabook.api.client import ApiClient
from villabook.auth.credentials import CredentialStore

USER_JSON = {"id": "u1", "email": "guest@example.com", "firstName": "Ada", "role": "GUEST"}


def handler(request):
    path = request.url.path
    if path.endswith("/auth/login"):
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"accessToken": "A1", "refreshToken": "R1", "user": USER_JSON},
            },
        )
    if path.endswith("/auth/logout"):
        return httpx.Response(200, json={"success": True, "message": "Logged out"})
    if path.endswith("/villas"):
        return httpx.Response(200, json={"success": True, "data": [dict(request.url.params)]})
    return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture
def mock_api(monkeypatch):
    monkeypatch.setattr(
        cli,
        "ApiClient",
        functools.partial(ApiClient, transport=httpx.MockTransport(handler)),
    )


def run(argv):
    return cli.main(["--log-level", "WARNING", *argv])


class TestParser:
    def test_login_requires_password(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["login", "a@example.com"])

    def test_parse_params(self):
        assert cli._parse_params(["page=2", "q=sea=view"]) == {"page": "2", "q": "sea=view"}

    def test_parse_params_invalid(self):
        with pytest.raises(SystemExit):
            cli._parse_params(["novalue"])


class TestCommands:
    def test_whoami_not_signed_in(self, capsys):
        assert run(["whoami"]) == 1
        assert "Not signed in" in capsys.readouterr().out

    def test_login_then_logout(self, mock_api, capsys):
        assert run(["login", "guest@example.com", "--password", "pw"]) == 0
        assert "Signed in as Ada" in capsys.readouterr().out
        assert CredentialStore().access_token == "A1"

        assert run(["logout"]) == 0
        assert CredentialStore().access_token is None

    def test_get_prints_data(self, mock_api, capsys):
        assert run(["get", "/villas", "--param", "page=2"]) == 0
        assert json.loads(capsys.readouterr().out) == [{"page": "2"}]

    def test_api_error_exit_code(self, mock_api, capsys):
        assert run(["get", "/nowhere"]) == 1
        assert "Error: Not found" in capsys.readouterr().err
