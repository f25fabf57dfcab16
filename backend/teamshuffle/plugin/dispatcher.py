from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any

import structlog

from teamshuffle.plugin.events import parse_event_frame

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    EventHandler = Callable[[dict[str, Any]], Awaitable[None]]

logger = structlog.get_logger()


class EventDispatcher:
    """
    Routes game client events to subscribed handlers.

    Plugins register handlers from their ``on_connect`` hook. One failing
    handler is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        if handler not in self._handlers[event_name]:
            self._handlers[event_name].append(handler)
            logger.info("event subscribed", event_name=event_name)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    @property
    def subscriptions(self) -> set[str]:
        return {name for name, handlers in self._handlers.items() if handlers}

    def is_subscribed(self, event_name: str) -> bool:
        return bool(self._handlers.get(event_name))

    async def dispatch(self, event_name: str, payload: dict[str, Any]) -> int:
        """Run every handler for ``event_name`` in subscription order. Returns the handler count."""
        handlers = list(self._handlers.get(event_name, []))
        for handler in handlers:
            try:
                await handler(payload)
            except Exception:
                logger.exception("event handler failed", event_name=event_name)
        return len(handlers)

    async def dispatch_frame(self, raw: Any) -> int:  # noqa: ANN401
        frame = parse_event_frame(raw)
        return await self.dispatch(frame.event, frame.payload)
