"""Run outcome repositories.

Interfaces for persisting run results. Provides an in-memory implementation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..models.execution import RunResult


class RunRepository:
    def save(self, result: RunResult) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def get(self, run_id: str) -> Optional[Dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError

    def list(self, flow_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryRunRepository(RunRepository):
    """Keeps the latest record per run id."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}

    def save(self, result: RunResult) -> None:
        self._data[result.run_id] = result.to_record()

    def get(self, run_id: str) -> Optional[Dict[str, Any]]:
        return self._data.get(run_id)

    def list(self, flow_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
        records = [r for r in self._data.values() if flow_id is None or r["flow_id"] == flow_id]
        # newest first
        records.sort(key=lambda r: (r["started_at"] or "", r["id"]), reverse=True)
        return records[offset : offset + limit]


__all__ = ["InMemoryRunRepository", "RunRepository"]
