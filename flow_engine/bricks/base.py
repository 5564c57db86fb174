"""
Brick contract.

Bricks are the units of behavior a flow is built from. The runner only relies
on the capability protocols below; the ABC base classes are conveniences that
give catalog authors config access, a logger and a display name.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from ..core.graph import NodeKind

if TYPE_CHECKING:
    from ..core.context import ExecutionContext


@runtime_checkable
class Named(Protocol):
    def name(self) -> str: ...


@runtime_checkable
class Registerable(Protocol):
    """Trigger capability: start and stop listening for external events."""

    def register(self) -> Any: ...

    def unregister(self) -> Any: ...


@runtime_checkable
class Evaluatable(Protocol):
    """Condition capability."""

    def evaluate(self, context: "ExecutionContext") -> bool: ...


@runtime_checkable
class GateEvaluatable(Protocol):
    """Gate capability: combine the boolean inputs recorded by upstream conditions."""

    def evaluate(self, inputs: Dict[str, bool], context: "ExecutionContext") -> bool: ...


@runtime_checkable
class Handleable(Protocol):
    """Action capability."""

    def handle(self, context: "ExecutionContext") -> "ExecutionContext": ...


@runtime_checkable
class Compensable(Protocol):
    """Optional action capability: undo a previous handle()."""

    def compensate(self, context: "ExecutionContext") -> Any: ...


def brick_name(brick: Any) -> str:
    """Display name of any brick, falling back to its class name."""
    name = getattr(brick, "name", None)
    if callable(name):
        try:
            return str(name())
        except Exception:
            return brick.__class__.__name__
    return brick.__class__.__name__


class Brick(ABC):
    """Base class for bricks. `config` is already template-resolved by the runner."""

    kind: NodeKind
    label: Optional[str] = None
    required_fields: Tuple[str, ...] = ()

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config: Dict[str, Any] = dict(config or {})
        self.logger = logging.getLogger(self.__class__.__name__)

    def name(self) -> str:
        if self.label:
            return self.label
        # AndGate -> "And Gate"
        return re.sub(r"(?<!^)(?=[A-Z])", " ", self.__class__.__name__)

    def config_value(self, key: str, default: Any = None) -> Any:
        value = self.config.get(key, default)
        return default if value is None else value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.config!r})"


class TriggerBrick(Brick):
    kind = NodeKind.TRIGGER

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.flow_id: Optional[str] = None
        self._callback: Optional[Callable[[str, Dict[str, Any]], Any]] = None

    def bind(self, flow_id: str, callback: Callable[[str, Dict[str, Any]], Any]) -> None:
        """Attach the trigger to a flow. `callback(flow_id, payload)` is used by dispatch()."""
        self.flow_id = flow_id
        self._callback = callback

    def dispatch(self, payload: Optional[Dict[str, Any]] = None) -> Any:
        if self._callback is None or self.flow_id is None:
            self.logger.warning(f"Trigger '{self.name()}' fired while unbound, ignoring")
            return None
        return self._callback(self.flow_id, dict(payload or {}))

    def register(self) -> None:
        pass

    def unregister(self) -> None:
        pass


class ConditionBrick(Brick):
    kind = NodeKind.CONDITION

    @abstractmethod
    def evaluate(self, context: "ExecutionContext") -> bool:
        """Return the boolean outcome for the current context."""


class GateBrick(Brick):
    kind = NodeKind.GATE

    @abstractmethod
    def evaluate(self, inputs: Dict[str, bool], context: "ExecutionContext") -> bool:
        """Combine upstream condition results keyed by source node id."""


class ActionBrick(Brick):
    kind = NodeKind.ACTION

    @abstractmethod
    def handle(self, context: "ExecutionContext") -> "ExecutionContext":
        """Perform the side effect and return the context."""


__all__ = [
    "ActionBrick",
    "Brick",
    "Compensable",
    "ConditionBrick",
    "Evaluatable",
    "GateBrick",
    "GateEvaluatable",
    "Handleable",
    "Named",
    "Registerable",
    "TriggerBrick",
    "brick_name",
]
