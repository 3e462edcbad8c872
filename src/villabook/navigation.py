"""Navigation target for redirects triggered outside the UI.

The API client never imports a router. It gets a ``Navigator`` and a
language accessor and asks for ``/<lang>/login`` when the session is
beyond repair.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


def login_path(language: str, route: str = "login") -> str:
    return f"/{language}/{route.strip('/')}"


def is_login_path(path: str, route: str = "login") -> bool:
    return f"/{route.strip('/')}" in path


@runtime_checkable
class Navigator(Protocol):
    @property
    def current_path(self) -> str: ...

    def redirect(self, path: str) -> None: ...


class HistoryNavigator:
    """Navigator that tracks the current path and every redirect made."""

    def __init__(self, initial_path: str = "/"):
        self._path = initial_path
        self.history: list[str] = []

    @property
    def current_path(self) -> str:
        return self._path

    def redirect(self, path: str) -> None:
        logger.info("Redirecting to %s", path)
        self.history.append(path)
        self._path = path
