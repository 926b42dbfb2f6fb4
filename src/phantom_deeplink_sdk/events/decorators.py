from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..types import EventKind, SessionEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[SessionEvent], Awaitable[None] | None]


@dataclass
class EventRegistry:
    """Handlers for classified inbound events, registered with decorators.

    Usage:
        @events.on_connected()
        def connected(event): ...

        @events.on_error()
        async def failed(event): ...
    """

    handlers: dict[EventKind, list[EventHandler]] = field(default_factory=dict)

    def on(self, kind: EventKind) -> Callable[[EventHandler], EventHandler]:
        def decorator(fn: EventHandler) -> EventHandler:
            self.handlers.setdefault(kind, []).append(fn)
            return fn

        return decorator

    def on_connected(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.CONNECTED)

    def on_key_exchanged(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.KEY_EXCHANGED)

    def on_public_key(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.PUBLIC_KEY)

    def on_signature(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.SIGNATURE)

    def on_transaction(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.TRANSACTION)

    def on_error(self) -> Callable[[EventHandler], EventHandler]:
        """Register a handler for the caller-visible error channel.

        Receives wallet-reported errors and failed key exchanges; the
        exception is on ``event.error``.
        """
        return self.on(EventKind.ERROR)

    def on_disconnected(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.DISCONNECTED)

    def on_unrecognized(self) -> Callable[[EventHandler], EventHandler]:
        return self.on(EventKind.UNRECOGNIZED)

    async def emit(self, event: SessionEvent) -> None:
        """Run every handler for ``event``; handler failures are logged, not raised."""
        for handler in list(self.handlers.get(event.kind, [])):
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
            except Exception as e:
                logger.error(f"Event handler for '{event.kind.value}' failed: {e}", exc_info=True)


# Default registry used by ``run()``
wallet = EventRegistry()
