"""
Run service: runs flows, parks paused runs in a pause store and records
outcomes.
"""

import logging
from typing import Any, Dict, Optional

from ..core.config import Settings, get_settings
from ..core.exceptions import PausedRunNotFoundError
from ..core.graph import FlowGraph
from ..core.logger import run_fields
from ..core.runner import FlowRunner
from ..models.execution import RunResult, RunStatus
from .pause_store import InMemoryPauseStore, PauseStore
from .repository import RunRepository

logger = logging.getLogger(__name__)


class FlowRunService:
    def __init__(
        self,
        runner: Optional[FlowRunner] = None,
        pause_store: Optional[PauseStore] = None,
        repository: Optional[RunRepository] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.runner = runner or FlowRunner(settings=self.settings)
        self.pause_store = pause_store or InMemoryPauseStore()
        self.repository = repository

    async def run(
        self,
        graph: FlowGraph,
        payload: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> RunResult:
        result = await self.runner.run(graph, payload, run_id=run_id)
        await self._after(result)
        return result

    async def resume(self, graph: FlowGraph, run_id: str) -> RunResult:
        """Resume a paused run by id. The stored snapshot is consumed."""
        snapshot = await self.pause_store.get(run_id)
        if snapshot is None:
            raise PausedRunNotFoundError(f"Paused run not found or expired: {run_id}")
        await self.pause_store.delete(run_id)

        result = await self.runner.resume(graph, snapshot)
        await self._after(result)
        return result

    async def _after(self, result: RunResult) -> None:
        if result.status == RunStatus.PAUSED:
            await self.pause_store.put(
                result.run_id, result.snapshot, self.settings.pause_ttl_seconds
            )
            logger.info(
                f"Run {result.run_id} parked until resumed "
                f"(ttl={self.settings.pause_ttl_seconds}s)",
                extra=run_fields(result.context),
            )
        if self.repository is not None:
            self.repository.save(result)


__all__ = ["FlowRunService"]
