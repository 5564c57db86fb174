"""
Flow Runner.

Walks a FlowGraph depth-first from its trigger nodes (or from a resume
cursor), dispatching every node to its brick by kind:

- trigger: follow every outgoing edge
- action: handle(context); a pause ends this branch, siblings keep running
- condition: evaluate(context); feed downstream gates, then follow labeled edges
- gate: evaluate(inputs, context) once all inputs arrived; follow labeled edges

Every run ends in exactly one of completed, failed or paused.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List, Optional, Union

from ..bricks.base import brick_name
from ..bricks.registry import BrickRegistry, get_brick_registry
from ..models.execution import ContextSnapshot, RunResult, RunStatus
from ..utils.template_resolver import resolve_config
from .config import Settings, get_settings
from .context import ExecutionContext
from .exceptions import (
    BrickNotFoundError,
    DefinitionError,
    ExecutionError,
    FlowEngineError,
    LoopGuardWarning,
)
from .graph import BranchLabel, Edge, FlowGraph, NodeKind
from .hooks import (
    BEFORE_BRICK,
    BRICK_FAILED,
    RUN_COMPLETED,
    RUN_FAILED,
    RUN_PAUSED,
    RUN_STARTED,
    ExecutionHooks,
)
from .logger import run_fields

logger = logging.getLogger(__name__)


async def _call(fn, *args: Any) -> Any:
    """Call a brick method that may be a plain function or a coroutine function."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class _Traversal:
    """Per-invocation traversal state. Never shared between runs."""

    def __init__(
        self,
        graph: FlowGraph,
        context: ExecutionContext,
        registry: BrickRegistry,
        hooks: ExecutionHooks,
        max_visits: int,
    ):
        self.graph = graph
        self.context = context
        self.registry = registry
        self.hooks = hooks
        self.max_visits = max_visits
        self.visited: List[str] = []

    def halted(self) -> bool:
        return self.context.stop_requested

    async def execute(self, node_id: str) -> None:
        if self.halted():
            return

        node = self.graph.get_node(node_id)
        context = self.context

        if node_id in self.visited and len(self.visited) >= self.max_visits:
            message = f"Max node execution limit reached: {node_id}"
            context.warning(message)
            logger.warning(
                f"⚠️ {message} (run {context.run_id})",
                extra={"category": LoopGuardWarning.__name__, **run_fields(context, node_id)},
            )
            return
        self.visited.append(node_id)

        config = resolve_config(node.config, context)
        brick = self.registry.resolve(node.kind, node.brick_ref, config)
        name = node.name or brick_name(brick)

        context.info(f"Executing: {name}")
        logger.info(
            f"Executing: {name} ({node.kind.value} {node_id})",
            extra=run_fields(context, node_id),
        )
        await self.hooks.emit(BEFORE_BRICK, brick, context)

        try:
            result = await self._invoke(node.id, node.kind, brick)
        except Exception as e:
            await self.hooks.emit(BRICK_FAILED, brick, self.context, e)
            raise ExecutionError(f"Brick '{name}' failed at node '{node_id}': {e}", node_id) from e

        context = self.context
        context.record_execution(node_id)

        if node.kind == NodeKind.TRIGGER:
            await self.follow_all(node_id)
        elif node.kind == NodeKind.ACTION:
            if context.pending_pause():
                # A pause ends this branch only; sibling branches keep running.
                context.add_resume_point(node_id)
                logger.info(f"⏸️ Branch paused at {node_id}", extra=run_fields(context, node_id))
                return
            await self.follow_all(node_id)
        elif node.kind == NodeKind.CONDITION:
            context.info(f"Condition '{name}' = {'true' if result else 'false'}")
            await self.route_condition(node_id, result)
        elif node.kind == NodeKind.GATE:
            context.info(f"Gate '{name}' = {'PASS' if result else 'FAIL'}")
            await self.route_gate(node_id, result)

    async def _invoke(self, node_id: str, kind: NodeKind, brick: Any) -> Optional[bool]:
        context = self.context
        if kind == NodeKind.ACTION:
            returned = await _call(brick.handle, context)
            if isinstance(returned, ExecutionContext):
                self.context = returned
            return None
        if kind == NodeKind.CONDITION:
            return bool(await _call(brick.evaluate, context))
        if kind == NodeKind.GATE:
            inputs = context.gate_inputs_for(node_id)
            result = bool(await _call(brick.evaluate, inputs, context))
            context.clear_gate_inputs(node_id)
            return result
        return None

    async def follow_all(self, node_id: str) -> None:
        for edge in self.graph.outgoing(node_id):
            if self.halted():
                return
            await self.execute(edge.target)

    async def route_condition(self, node_id: str, result: bool) -> None:
        edges = self.graph.outgoing(node_id)

        # Pass 1: every gate target receives the result, whatever the edge label.
        for edge in edges:
            if self.halted():
                return
            target = self.graph.get_node(edge.target)
            if target.kind != NodeKind.GATE:
                continue
            self.context.record_gate_input(target.id, node_id, result)
            if self.context.has_all_inputs(target.id, self.graph.incoming_count(target.id)):
                await self.execute(target.id)

        # Pass 2: non-gate targets follow the edge labels.
        for edge in edges:
            if self.halted():
                return
            if self.graph.get_node(edge.target).kind == NodeKind.GATE:
                continue
            if self._condition_follows(edge, result):
                await self.execute(edge.target)

    async def route_gate(self, node_id: str, result: bool) -> None:
        for edge in self.graph.outgoing(node_id):
            if self.halted():
                return
            if self._gate_follows(edge, result):
                await self.execute(edge.target)

    @staticmethod
    def _condition_follows(edge: Edge, result: bool) -> bool:
        if edge.branch_label == BranchLabel.ALWAYS:
            return True
        if edge.branch_label == BranchLabel.FALSE:
            return not result
        return result

    @staticmethod
    def _gate_follows(edge: Edge, result: bool) -> bool:
        if edge.branch_label == BranchLabel.FALSE:
            return not result
        if edge.branch_label in (None, BranchLabel.TRUE):
            return result
        return False


class FlowRunner:
    """Interpret a FlowGraph against a brick registry.

    The runner holds no per-run state, so one instance can serve concurrent runs.
    """

    def __init__(
        self,
        registry: Optional[BrickRegistry] = None,
        hooks: Optional[ExecutionHooks] = None,
        settings: Optional[Settings] = None,
        max_node_visits: Optional[int] = None,
    ):
        self.registry = registry if registry is not None else get_brick_registry()
        self.hooks = hooks or ExecutionHooks()
        self.settings = settings or get_settings()
        self.max_node_visits = max_node_visits or self.settings.max_node_visits

    async def run(
        self,
        graph: FlowGraph,
        payload: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
        context: Optional[ExecutionContext] = None,
    ) -> RunResult:
        """Start a run from every trigger node of `graph`."""
        context = context or ExecutionContext(flow_id=graph.id, payload=payload, run_id=run_id)
        logger.info(f"🚀 Starting run {context.run_id} for flow '{graph.id}'", extra=run_fields(context))
        await self.hooks.emit(RUN_STARTED, context)

        traversal = self._traversal(graph, context)
        try:
            self.preflight(graph)
            triggers = graph.triggers()
            if not triggers:
                context.warning("No trigger nodes found")
            for trigger in triggers:
                if traversal.halted():
                    break
                await traversal.execute(trigger.id)
        except Exception as e:
            return await self._finish(traversal.context, self._as_engine_error(e))
        return await self._finish(traversal.context)

    async def resume(
        self,
        graph: FlowGraph,
        snapshot: Union[ContextSnapshot, Dict[str, Any], ExecutionContext],
    ) -> RunResult:
        """Continue a paused run from every branch that paused.

        A resume point whose cursor is the node that paused walks only that
        node's successors; the pausing node itself is never executed again.
        """
        if isinstance(snapshot, ExecutionContext):
            context = snapshot
        else:
            context = ExecutionContext.restore(snapshot)
        logger.info(f"▶️ Resuming run {context.run_id} for flow '{graph.id}'", extra=run_fields(context))

        traversal = self._traversal(graph, context)
        try:
            if not context.is_paused() or context.pause_cursor is None:
                raise DefinitionError(f"Run {context.run_id} is not paused")
            points = list(context.resume_points) or [
                {"cursor": context.pause_cursor, "paused_by": context.paused_by}
            ]
            context.resume()

            self.preflight(graph)
            for point in points:
                graph.get_node(point["cursor"])
            for point in points:
                if traversal.halted():
                    break
                cursor = point["cursor"]
                traversal.context.info(f"Resuming from: {cursor}")
                if cursor == point.get("paused_by"):
                    await traversal.follow_all(cursor)
                else:
                    await traversal.execute(cursor)
        except Exception as e:
            return await self._finish(traversal.context, self._as_engine_error(e))
        return await self._finish(traversal.context)

    def preflight(self, graph: FlowGraph) -> None:
        """Ensure every node can be resolved before any brick runs."""
        for node in graph.nodes:
            if not node.brick_ref:
                raise DefinitionError(f"Node '{node.id}' has no brick")
            if self.registry.has(node.kind, node.brick_ref):
                continue
            if node.brick_ref in self.registry:
                raise DefinitionError(
                    f"Brick '{node.brick_ref}' cannot be used as a {node.kind.value} (node '{node.id}')"
                )
            raise BrickNotFoundError(f"Unknown brick '{node.brick_ref}' at node '{node.id}'")

    def _traversal(self, graph: FlowGraph, context: ExecutionContext) -> _Traversal:
        return _Traversal(graph, context, self.registry, self.hooks, self.max_node_visits)

    @staticmethod
    def _as_engine_error(error: Exception) -> FlowEngineError:
        if isinstance(error, FlowEngineError):
            return error
        wrapped = ExecutionError(f"Unexpected error: {error}")
        wrapped.__cause__ = error
        return wrapped

    async def _finish(
        self, context: ExecutionContext, error: Optional[FlowEngineError] = None
    ) -> RunResult:
        if error is None and context.errors:
            error = ExecutionError("; ".join(context.errors))

        if error is not None:
            context.error(f"Run failed: {error}")
            logger.error(f"❌ Run {context.run_id} failed: {error}", extra=run_fields(context))
            result = RunResult(status=RunStatus.FAILED, context=context, error=error)
            await self.hooks.emit(RUN_FAILED, result)
        elif context.is_paused():
            logger.info(
                f"⏸️ Run {context.run_id} paused (cursor: {context.pause_cursor})",
                extra=run_fields(context),
            )
            result = RunResult(status=RunStatus.PAUSED, context=context, completed_at=None)
            await self.hooks.emit(RUN_PAUSED, result)
        else:
            logger.info(f"✅ Run {context.run_id} completed", extra=run_fields(context))
            result = RunResult(status=RunStatus.COMPLETED, context=context)
            await self.hooks.emit(RUN_COMPLETED, result)
        return result


__all__ = ["FlowRunner"]
