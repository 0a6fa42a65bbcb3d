"""
Broadcast Registry — single slot holding the live broadcast function.

The realtime subsystem installs its ``broadcast`` here at startup; anything
that needs to push an event to browsers (SMS service, route handlers,
webhooks) reads it back without importing the realtime layer.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger("switchboard.broadcast")

BroadcastFn = Callable[[dict[str, Any]], Awaitable[None]]


class BroadcastRegistry:
    """Holds the current broadcast function, or None."""

    def __init__(self) -> None:
        self._broadcast: Optional[BroadcastFn] = None

    def set_broadcast(self, fn: Optional[BroadcastFn]) -> None:
        self._broadcast = fn
        logger.debug("Broadcast function set: %r", fn)

    def get_broadcast(self) -> Optional[BroadcastFn]:
        return self._broadcast


# Process default, used by route code that has no injected registry
default_registry = BroadcastRegistry()


def set_broadcast(fn: Optional[BroadcastFn]) -> None:
    default_registry.set_broadcast(fn)


def get_broadcast() -> Optional[BroadcastFn]:
    return default_registry.get_broadcast()


async def notify(
    payload: dict[str, Any],
    registry: BroadcastRegistry | None = None,
) -> bool:
    """
    Push ``payload`` through the registered broadcaster.

    Returns False (after a warning) when nothing is registered. Broadcast
    errors are logged and swallowed; callers never fail because a browser
    push did.
    """
    fn = (registry or default_registry).get_broadcast()
    if fn is None:
        logger.warning(
            "No broadcaster registered; dropping %s event", payload.get("type")
        )
        return False
    try:
        await fn(payload)
    except Exception as exc:
        logger.error(
            "Broadcast of %s event failed: %s", payload.get("type"), exc,
            exc_info=True,
        )
        return False
    return True
