"""Engine-specific exceptions for flow_engine."""

from __future__ import annotations

from typing import Optional


class FlowEngineError(Exception):
    pass


class DefinitionError(FlowEngineError):
    """The flow definition cannot be executed (unknown node, brick ref or kind mismatch)."""

    pass


class NodeNotFoundError(DefinitionError):
    pass


class BrickNotFoundError(DefinitionError):
    pass


class PausedRunNotFoundError(DefinitionError):
    pass


class ExecutionError(FlowEngineError):
    """A brick raised, or an action failed the run explicitly."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message)
        self.node_id = node_id


class PauseStoreError(FlowEngineError):
    pass


class TriggerDispatchError(FlowEngineError):
    """An async dispatcher was called with no running event loop to schedule it on."""

    pass


class LoopGuardWarning(UserWarning):
    """Category for loop guard log entries. Never raised by the runner."""

    pass


__all__ = [
    "FlowEngineError",
    "DefinitionError",
    "NodeNotFoundError",
    "BrickNotFoundError",
    "PausedRunNotFoundError",
    "ExecutionError",
    "PauseStoreError",
    "TriggerDispatchError",
    "LoopGuardWarning",
]
