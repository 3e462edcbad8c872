# Credential Store — persistence of the access/refresh token pair and cached user.
# Created: 2026-10-19
#
# Layout: a single JSON object at <config dir>/credentials.json with the keys
# the web client keeps in localStorage: accessToken, refreshToken, user.

from __future__ import annotations

import json
import logging
import os
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from villabook.auth.models import User
from villabook.config import get_config_dir

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"

CREDENTIAL_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)


def _get_credentials_path() -> Path:
    return get_config_dir() / "credentials.json"


class CredentialStorage(ABC):
    """Typed accessors shared by the file and memory stores.

    Subclasses provide raw key access; everything else builds on it.
    """

    @abstractmethod
    def get(self, key: str) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @property
    def access_token(self) -> str | None:
        return self.get(ACCESS_TOKEN_KEY) or None

    @property
    def refresh_token(self) -> str | None:
        return self.get(REFRESH_TOKEN_KEY) or None

    def save_tokens(self, access_token: str, refresh_token: str) -> None:
        self.set(ACCESS_TOKEN_KEY, access_token)
        self.set(REFRESH_TOKEN_KEY, refresh_token)

    def save_user(self, user: User) -> None:
        self.set(USER_KEY, user.model_dump(mode="json", by_alias=True))

    def load_user(self) -> User | None:
        raw = self.get(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate(raw)
        except ValidationError as e:
            logger.warning("Discarding malformed stored user: %s", e)
            return None

    def clear(self) -> None:
        """Remove every credential key."""
        for key in CREDENTIAL_KEYS:
            self.delete(key)


class CredentialStore(CredentialStorage):
    """File-backed store at ~/.villabook/credentials.json.

    The file is chmod 0600 (owner-only read/write). Other keys in the file
    (e.g. a stored language preference) survive ``clear()``.
    """

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or _get_credentials_path()

    def _read(self) -> dict[str, Any]:
        path = self.path
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Failed to read credentials from %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        if not data:
            if path.exists():
                path.unlink()
            return
        path.write_text(json.dumps(data, indent=2))
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def save_tokens(self, access_token: str, refresh_token: str) -> None:
        # Both tokens land in a single write
        data = self._read()
        data[ACCESS_TOKEN_KEY] = access_token
        data[REFRESH_TOKEN_KEY] = refresh_token
        self._write(data)
        logger.info("Saved credentials to %s", self.path)

    def clear(self) -> None:
        data = self._read()
        removed = [k for k in CREDENTIAL_KEYS if data.pop(k, None) is not None]
        if removed:
            self._write(data)
            logger.info("Cleared stored credentials")


class MemoryCredentialStore(CredentialStorage):
    """In-process store, for tests and short-lived scripts."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
