"""Simple synchronous in-process event bus."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe bus for scheduling events.

    Handlers run synchronously in registration order, so anything a handler
    writes lands inside the publisher's transaction and is rolled back with it.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Callable) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        handlers = self._subscribers.get(type(event), [])
        logger.debug("publish %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event)


def publish(bus: EventBus | None, event: Any) -> None:
    """Publish on *bus* when one is wired; services run fine without it."""
    if bus is not None:
        bus.publish(event)
