"""
flow_engine - graph-based workflow automation engine.
"""

__version__ = "0.1.0"

from .bricks import (
    ActionBrick,
    BrickRegistry,
    ConditionBrick,
    GateBrick,
    TriggerBrick,
    get_brick_registry,
)
from .bricks.builtin import register_builtin_bricks
from .core.config import Settings, get_settings
from .core.context import ExecutionContext
from .core.exceptions import (
    BrickNotFoundError,
    DefinitionError,
    ExecutionError,
    FlowEngineError,
    LoopGuardWarning,
    NodeNotFoundError,
    PausedRunNotFoundError,
    PauseStoreError,
    TriggerDispatchError,
)
from .core.graph import BranchLabel, Edge, FlowGraph, Node, NodeKind
from .core.hooks import ExecutionHooks
from .core.runner import FlowRunner
from .core.validation import FlowValidator, ValidationResult
from .models.execution import ContextSnapshot, LogEntry, LogLevel, RunResult, RunStatus
from .services.compensation import compensate_run
from .services.pause_store import InMemoryPauseStore, PauseStore, RedisPauseStore
from .services.repository import InMemoryRunRepository, RunRepository
from .services.run_service import FlowRunService
from .services.trigger_manager import TriggerManager
from .utils.template_resolver import TemplateResolver

__all__ = [
    "ActionBrick",
    "BranchLabel",
    "BrickNotFoundError",
    "BrickRegistry",
    "ConditionBrick",
    "ContextSnapshot",
    "DefinitionError",
    "Edge",
    "ExecutionContext",
    "ExecutionError",
    "ExecutionHooks",
    "FlowEngineError",
    "FlowGraph",
    "FlowRunService",
    "FlowRunner",
    "FlowValidator",
    "GateBrick",
    "InMemoryPauseStore",
    "InMemoryRunRepository",
    "LogEntry",
    "LogLevel",
    "LoopGuardWarning",
    "Node",
    "NodeKind",
    "NodeNotFoundError",
    "PauseStore",
    "PauseStoreError",
    "PausedRunNotFoundError",
    "RedisPauseStore",
    "RunRepository",
    "RunResult",
    "RunStatus",
    "Settings",
    "TemplateResolver",
    "TriggerDispatchError",
    "TriggerBrick",
    "TriggerManager",
    "ValidationResult",
    "compensate_run",
    "get_brick_registry",
    "get_settings",
    "register_builtin_bricks",
]
