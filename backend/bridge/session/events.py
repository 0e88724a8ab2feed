"""Synchronous publish/subscribe for emitter events."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from bridge.logic.enums import EmitterEvent

logger = structlog.get_logger()

# Callback receives the event's detail payload.
EventCallback = Callable[[Any], None]


class EventBus:
    """Per-event-kind subscriber lists with sequential synchronous delivery."""

    def __init__(self) -> None:
        self._subscribers: dict[EmitterEvent, list[EventCallback]] = {}

    def subscribe(self, event: EmitterEvent, callback: EventCallback) -> Callable[[], None]:
        """Register a callback and return a function that unregisters it."""
        self._subscribers.setdefault(event, []).append(callback)
        return lambda: self.unsubscribe(event, callback)

    def unsubscribe(self, event: EmitterEvent, callback: EventCallback) -> None:
        """Remove one registration of callback; unknown callbacks are ignored."""
        callbacks = self._subscribers.get(event)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def subscriber_count(self, event: EmitterEvent) -> int:
        return len(self._subscribers.get(event, ()))

    def emit(self, event: EmitterEvent, detail: Any) -> None:  # noqa: ANN401
        """Deliver detail to every current subscriber of event, in registration order.

        The subscriber list is copied first, so callbacks may subscribe or
        unsubscribe during delivery. A raising callback is logged and does not
        stop delivery to the others.
        """
        for callback in list(self._subscribers.get(event, ())):
            try:
                callback(detail)
            except Exception:
                logger.exception("event subscriber failed", event=event)
