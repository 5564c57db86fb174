"""
Caller-driven compensation.

Nothing here runs automatically: after a failed (or abandoned) run, the caller
may ask the action bricks that already executed to undo their work. The order
is the caller's choice; newest-first is only the default.
"""

import inspect
import logging
from typing import Iterable, List, Optional

from ..bricks.base import brick_name
from ..bricks.registry import BrickRegistry
from ..core.context import ExecutionContext
from ..core.graph import FlowGraph, NodeKind
from ..core.logger import run_fields
from ..utils.template_resolver import resolve_config

logger = logging.getLogger(__name__)


def compensation_order(
    graph: FlowGraph, context: ExecutionContext, reverse: bool = True
) -> List[str]:
    """Executed action node ids, each once, newest first unless `reverse` is False."""
    ordered: List[str] = []
    history = reversed(context.executed_nodes) if reverse else iter(context.executed_nodes)
    for node_id in history:
        if node_id in ordered or not graph.has_node(node_id):
            continue
        if graph.get_node(node_id).kind == NodeKind.ACTION:
            ordered.append(node_id)
    return ordered


async def compensate_run(
    graph: FlowGraph,
    context: ExecutionContext,
    registry: BrickRegistry,
    node_ids: Optional[Iterable[str]] = None,
    reverse: bool = True,
) -> List[str]:
    """Call compensate() on executed actions and return the ids that were compensated.

    Bricks without compensate() are skipped. A failing compensation is logged
    to the run log and the process log, and the remaining nodes still run.
    """
    targets = list(node_ids) if node_ids is not None else compensation_order(graph, context, reverse)
    compensated: List[str] = []

    for node_id in targets:
        node = graph.get_node(node_id)
        brick = registry.resolve(node.kind, node.brick_ref, resolve_config(node.config, context))
        compensate = getattr(brick, "compensate", None)
        if not callable(compensate):
            continue
        name = node.name or brick_name(brick)
        try:
            result = compensate(context)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            context.error(f"Compensation failed for '{name}': {e}")
            logger.error(
                f"❌ Compensation failed for node {node_id} (run {context.run_id}): {e}",
                extra=run_fields(context, node_id),
            )
            continue
        context.info(f"Compensated: {name}")
        compensated.append(node_id)

    return compensated


__all__ = ["compensate_run", "compensation_order"]
