"""
Observability hooks.

Listeners are called for brick and run lifecycle events. They may be plain
functions or coroutines. A failing listener is logged and never changes the
outcome of a run.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

BEFORE_BRICK = "before_brick"
BRICK_FAILED = "brick_failed"
RUN_STARTED = "run_started"
RUN_COMPLETED = "run_completed"
RUN_FAILED = "run_failed"
RUN_PAUSED = "run_paused"

HOOK_EVENTS = (BEFORE_BRICK, BRICK_FAILED, RUN_STARTED, RUN_COMPLETED, RUN_FAILED, RUN_PAUSED)

Listener = Callable[..., Any]


class ExecutionHooks:
    """Fire-and-forget listener registry.

    Signatures by event:
        before_brick(brick, context)
        brick_failed(brick, context, error)
        run_started(context)
        run_completed(result) / run_failed(result) / run_paused(result)
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Listener:
        if event not in HOOK_EVENTS:
            raise ValueError(f"Unknown hook event: {event}")
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def before_brick(self, listener: Listener) -> Listener:
        return self.on(BEFORE_BRICK, listener)

    def brick_failed(self, listener: Listener) -> Listener:
        return self.on(BRICK_FAILED, listener)

    async def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"⚠️ Hook listener for '{event}' raised: {e}")

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))


__all__ = [
    "BEFORE_BRICK",
    "BRICK_FAILED",
    "ExecutionHooks",
    "HOOK_EVENTS",
    "RUN_COMPLETED",
    "RUN_FAILED",
    "RUN_PAUSED",
    "RUN_STARTED",
]
