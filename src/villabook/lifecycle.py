"""Process-wide singleton teardown.

Singletons that hold open resources (the shared API client and its
connection pool) register here. The CLI awaits ``shutdown_all()`` before
its event loop closes; tests call ``reset_all()`` so the next
``get_*()`` builds a fresh instance.

Created: 2026-10-19
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Hooks:
    shutdown: Callable[[], Any] | None = None
    reset: Callable[[], Any] | None = None


_hooks: dict[str, _Hooks] = {}


def register(
    name: str,
    *,
    shutdown: Callable[[], Any] | None = None,
    reset: Callable[[], Any] | None = None,
) -> None:
    """Register teardown hooks for a singleton.

    Args:
        name: Unique identifier (e.g. ``"api_client"``). Re-registering
            replaces the previous hooks.
        shutdown: Sync or async callable that releases resources.
        reset: Sync callable that drops the cached instance.
    """
    _hooks[name] = _Hooks(shutdown=shutdown, reset=reset)


def registered() -> list[str]:
    return list(_hooks)


async def shutdown_all() -> list[str]:
    """Run shutdown hooks, newest registration first.

    Returns the names whose hook raised; a failing hook never stops the rest.
    """
    failed: list[str] = []
    for name in reversed(list(_hooks)):
        hook = _hooks[name].shutdown
        if hook is None:
            continue
        try:
            result = hook()
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.warning("Shutdown hook for %s failed", name, exc_info=True)
            failed.append(name)
        else:
            logger.debug("Shut down %s", name)
    return failed


def reset_all() -> None:
    """Run reset hooks and forget every registration."""
    for name, hooks in list(_hooks.items()):
        if hooks.reset is None:
            continue
        try:
            hooks.reset()
        except Exception:
            logger.warning("Reset hook for %s failed", name, exc_info=True)
    _hooks.clear()
