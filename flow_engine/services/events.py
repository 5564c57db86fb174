"""Simple in-memory event bus.

Used by EventTrigger to start flows from in-process events. Subscriber errors
are logged and never reach the publisher.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Subscriber = Callable[[Dict[str, Any]], Any]


class EventBus:
    def __init__(self) -> None:
        self.subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, event: str, fn: Subscriber) -> None:
        self.subscribers[event].append(fn)

    def unsubscribe(self, event: str, fn: Subscriber) -> None:
        if fn in self.subscribers.get(event, []):
            self.subscribers[event].remove(fn)

    def publish(self, event: str, payload: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Deliver `payload` to every subscriber of `event` and return their results."""
        results = []
        for fn in list(self.subscribers.get(event, [])):
            try:
                results.append(fn(dict(payload or {})))
            except Exception as e:
                logger.warning(f"Event subscriber for '{event}' failed: {e}")
        return results

    def subscriber_count(self, event: str) -> int:
        return len(self.subscribers.get(event, []))


_bus = EventBus()


def get_event_bus() -> EventBus:
    return _bus


__all__ = ["EventBus", "get_event_bus"]
