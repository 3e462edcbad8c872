"""In-process notification bus.

Lets the API layer announce things (an unrecoverable auth failure) to
whatever UI or session code is listening, without importing it.

Created: 2026-10-19
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

AUTH_FAILURE = "auth:failure"

# Reason codes carried in AUTH_FAILURE events
REASON_TOKEN_REFRESH_FAILED = "token_refresh_failed"


@dataclass
class AppEvent:
    """A broadcast notification."""

    event_type: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


EventHandler = Callable[[AppEvent], Awaitable[None] | None]


class EventBus:
    """Fan-out of ``AppEvent`` to subscribers keyed by event type.

    Handlers may be plain functions or coroutines. They run in
    subscription order; one failing handler is logged and the rest still
    run.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: AppEvent) -> None:
        """Deliver *event* to every subscriber of its type."""
        handlers = list(self._handlers.get(event.event_type, []))
        logger.debug("Publishing %s to %d handler(s)", event.event_type, len(handlers))
        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning(
                    "Handler %r failed for %s", handler, event.event_type, exc_info=True
                )


_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the process-wide event bus."""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


def reset_event_bus() -> None:
    """Drop the bus singleton (for testing)."""
    global _bus
    _bus = None
