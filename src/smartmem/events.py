"""Turn-boundary events emitted by the host agent runtime."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

BEFORE_TURN = "before_turn"
TURN_END = "turn_end"

EVENTS = (BEFORE_TURN, TURN_END)

Handler = Callable[[Any], Awaitable[Any] | Any]


@dataclass
class BeforeTurnEvent:
    """Emitted before the agent starts a turn.

    Handlers may return text to prepend to the agent context.
    """

    prompt: str


@dataclass
class TurnEndEvent:
    """Emitted after a turn, carrying the full message list."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    success: bool = True


class EventBus:
    """Registry of event handlers.

    A failing handler is logged and skipped; it never breaks the turn.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {event: [] for event in EVENTS}

    def on(self, event: str, handler: Handler) -> None:
        """Register a handler for an event."""
        if event not in self._handlers:
            raise ValueError(f"Unknown event: {event}")
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        """Unregister a handler, if registered."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers(self, event: str) -> list[Handler]:
        """Handlers registered for an event, in registration order."""
        return list(self._handlers.get(event, []))

    async def emit(self, event: str, payload: Any) -> list[Any]:
        """Call every handler of an event in registration order.

        Args:
            event: Event name.
            payload: Event payload passed to each handler.

        Returns:
            Non-None handler results.
        """
        results = []
        for handler in self.handlers(event):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.warning(f"Handler for {event} failed: {e}")
                continue
            if result is not None:
                results.append(result)
        return results
