"""
Execution models: run status, log entries, context snapshots and run results.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..core.context import ExecutionContext


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    """Terminal outcome of a run."""

    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LogEntry(BaseModel):
    """A run-visible log line."""

    level: LogLevel = Field(..., description="Log level")
    message: str = Field(..., description="Log message")
    timestamp: datetime = Field(default_factory=_utcnow, description="UTC timestamp")


class ContextSnapshot(BaseModel):
    """Serializable copy of an ExecutionContext, used to pause and resume runs."""

    run_id: str = Field(..., description="Run id")
    flow_id: str = Field(default="", description="Flow id")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Trigger payload")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Run variables")
    logs: List[LogEntry] = Field(default_factory=list, description="Run log")
    pause_cursor: Optional[str] = Field(default=None, description="Node to resume from")
    paused_by: Optional[str] = Field(default=None, description="Node that paused the run")
    paused: bool = Field(default=False, description="Whether the run is suspended")
    resume_points: List[Dict[str, str]] = Field(
        default_factory=list, description="Paused branches, in pause order"
    )
    gate_inputs: Dict[str, Dict[str, bool]] = Field(
        default_factory=dict, description="Gate id -> source id -> result"
    )
    stop_requested: bool = Field(default=False)
    stop_reason: Optional[str] = Field(default=None)
    errors: List[str] = Field(default_factory=list)
    executed_nodes: List[str] = Field(default_factory=list, description="Executed node ids, in order")
    started_at: datetime = Field(default_factory=_utcnow)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "ContextSnapshot":
        return cls.model_validate_json(data)


@dataclass
class RunResult:
    """Outcome of FlowRunner.run() / resume()."""

    status: RunStatus
    context: "ExecutionContext"
    error: Optional[Exception] = None
    completed_at: Optional[datetime] = field(default_factory=_utcnow)

    @property
    def run_id(self) -> str:
        return self.context.run_id

    @property
    def snapshot(self) -> ContextSnapshot:
        return self.context.snapshot()

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED

    @property
    def paused(self) -> bool:
        return self.status == RunStatus.PAUSED

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready record for outcome sinks."""
        snapshot = self.snapshot.model_dump(mode="json")
        return {
            "id": self.context.run_id,
            "flow_id": self.context.flow_id,
            "status": self.status.value,
            "payload": snapshot["payload"],
            "variables": snapshot["variables"],
            "logs": snapshot["logs"],
            "error_type": type(self.error).__name__ if self.error else None,
            "error_message": str(self.error) if self.error else None,
            "started_at": snapshot["started_at"],
            "completed_at": (
                self.completed_at.isoformat()
                if self.completed_at and self.status != RunStatus.PAUSED
                else None
            ),
        }
