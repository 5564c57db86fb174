"""
Run-scoped execution state.

One ExecutionContext is created per run. It owns the variables written by
actions, the payload the run was started with, the run-visible log, the pause
cursor and the gate input accumulator.
"""

from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from ..models.execution import ContextSnapshot, LogEntry, LogLevel
from ..utils.paths import MISSING, delete_path, get_path, set_path

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionContext:
    """Mutable state for a single run."""

    def __init__(
        self,
        flow_id: str = "",
        payload: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
    ):
        self.run_id: str = run_id or uuid.uuid4().hex
        self.flow_id = flow_id
        self.payload: Dict[str, Any] = dict(payload or {})
        self.variables: Dict[str, Any] = dict(variables or {})
        self.logs: List[LogEntry] = []
        self.pause_cursor: Optional[str] = None
        self.paused_by: Optional[str] = None
        self._paused = False
        self.resume_points: List[Dict[str, str]] = []
        self.gate_inputs: Dict[str, Dict[str, bool]] = {}
        self.stop_requested = False
        self.stop_reason: Optional[str] = None
        self.errors: List[str] = []
        self.executed_nodes: List[str] = []
        self.started_at: datetime = _utcnow()

    # Variables

    def lookup(self, path: str) -> Any:
        """Like get(), but returns MISSING instead of a default for absent paths."""
        value = get_path(self.variables, path)
        if value is MISSING:
            value = get_path(self.payload, path)
        return value

    def get(self, path: str, default: Any = None) -> Any:
        """Read a dotted path, variables first then payload."""
        value = self.lookup(path)
        return default if value is MISSING else value

    def has(self, path: str) -> bool:
        return self.lookup(path) is not MISSING

    def set(self, path: str, value: Any) -> None:
        """Write a variable. Dotted paths create nested dicts."""
        set_path(self.variables, path, value)

    def forget(self, path: str) -> bool:
        """Remove a variable. Payload values are never removed."""
        return delete_path(self.variables, path)

    def merged_data(self) -> Dict[str, Any]:
        """Payload overlaid by variables at the top level."""
        merged = dict(self.payload)
        merged.update(self.variables)
        return merged

    # Logs

    def append_log(self, level: Union[LogLevel, str], message: str) -> LogEntry:
        entry = LogEntry(level=LogLevel(str(getattr(level, "value", level)).lower()), message=message)
        self.logs.append(entry)
        logger.debug(f"[{self.run_id}] {entry.level.value}: {message}")
        return entry

    def debug(self, message: str) -> LogEntry:
        return self.append_log(LogLevel.DEBUG, message)

    def info(self, message: str) -> LogEntry:
        return self.append_log(LogLevel.INFO, message)

    def warning(self, message: str) -> LogEntry:
        return self.append_log(LogLevel.WARNING, message)

    def error(self, message: str) -> LogEntry:
        return self.append_log(LogLevel.ERROR, message)

    def logs_at(self, level: Union[LogLevel, str]) -> List[LogEntry]:
        level = LogLevel(str(getattr(level, "value", level)).lower())
        return [entry for entry in self.logs if entry.level == level]

    # Pause / stop

    def mark_paused(self, resume_node_id: Optional[str] = None) -> None:
        """Suspend the run. With no id, the runner fills in the node that paused."""
        self.pause_cursor = resume_node_id
        self.paused_by = None
        self._paused = True

    def is_paused(self) -> bool:
        return self._paused

    def resume(self) -> None:
        self._paused = False
        self.pause_cursor = None
        self.paused_by = None
        self.resume_points = []

    def add_resume_point(self, node_id: str) -> None:
        """Record the pause just requested by node `node_id`.

        The first resume point stays the primary cursor. Later ones are kept
        so that resume() can continue every paused branch.
        """
        cursor = self.pause_cursor or node_id
        self.resume_points.append({"cursor": cursor, "paused_by": node_id})
        first = self.resume_points[0]
        self.pause_cursor = first["cursor"]
        self.paused_by = first["paused_by"]

    def pending_pause(self) -> bool:
        """True when a pause was requested but not yet recorded by the runner."""
        return self._paused and self.paused_by is None

    def request_stop(self, reason: Optional[str] = None) -> None:
        self.stop_requested = True
        self.stop_reason = reason

    def fail(self, message: str) -> None:
        """Record an error and stop the run. The runner reports it as failed."""
        self.errors.append(message)
        self.error(message)
        self.request_stop(message)

    # Gate accumulator

    def record_gate_input(self, gate_id: str, source_id: str, result: bool) -> None:
        self.gate_inputs.setdefault(gate_id, {})[source_id] = bool(result)

    def gate_inputs_for(self, gate_id: str) -> Dict[str, bool]:
        return dict(self.gate_inputs.get(gate_id, {}))

    def has_all_inputs(self, gate_id: str, expected_count: int) -> bool:
        return len(self.gate_inputs.get(gate_id, {})) >= expected_count

    def clear_gate_inputs(self, gate_id: str) -> None:
        self.gate_inputs.pop(gate_id, None)

    # History

    def record_execution(self, node_id: str) -> None:
        self.executed_nodes.append(node_id)

    # Snapshot

    def snapshot(self) -> ContextSnapshot:
        return ContextSnapshot(
            run_id=self.run_id,
            flow_id=self.flow_id,
            payload=copy.deepcopy(self.payload),
            variables=copy.deepcopy(self.variables),
            logs=list(self.logs),
            pause_cursor=self.pause_cursor,
            paused_by=self.paused_by,
            paused=self.is_paused(),
            resume_points=copy.deepcopy(self.resume_points),
            gate_inputs=copy.deepcopy(self.gate_inputs),
            stop_requested=self.stop_requested,
            stop_reason=self.stop_reason,
            errors=list(self.errors),
            executed_nodes=list(self.executed_nodes),
            started_at=self.started_at,
        )

    @classmethod
    def restore(cls, snapshot: Union[ContextSnapshot, Dict[str, Any]]) -> "ExecutionContext":
        """Rebuild a context from snapshot() output (or its JSON form)."""
        if not isinstance(snapshot, ContextSnapshot):
            snapshot = ContextSnapshot.model_validate(snapshot)
        context = cls(
            flow_id=snapshot.flow_id,
            payload=copy.deepcopy(snapshot.payload),
            run_id=snapshot.run_id,
            variables=copy.deepcopy(snapshot.variables),
        )
        context.logs = list(snapshot.logs)
        context.pause_cursor = snapshot.pause_cursor
        context.paused_by = snapshot.paused_by
        context._paused = snapshot.paused
        context.resume_points = copy.deepcopy(snapshot.resume_points)
        context.gate_inputs = copy.deepcopy(snapshot.gate_inputs)
        context.stop_requested = snapshot.stop_requested
        context.stop_reason = snapshot.stop_reason
        context.errors = list(snapshot.errors)
        context.executed_nodes = list(snapshot.executed_nodes)
        context.started_at = snapshot.started_at
        return context

    def __repr__(self) -> str:
        return f"ExecutionContext(run_id={self.run_id!r}, flow_id={self.flow_id!r})"


__all__ = ["ExecutionContext"]
