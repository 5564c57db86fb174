"""
Trigger manager.

Keeps live trigger listeners in sync with the set of active flows: each
trigger node is resolved to its brick, bound to its flow and registered.
When a trigger fires, the flow id and payload are forwarded to the dispatcher.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Set

from ..bricks.base import brick_name
from ..bricks.registry import BrickRegistry
from ..core.exceptions import TriggerDispatchError
from ..core.graph import FlowGraph
from ..core.logger import get_struct_logger
from ..utils.template_resolver import resolve_config

logger = logging.getLogger(__name__)

Dispatcher = Callable[[str, Dict[str, Any]], Any]


class TriggerManager:
    def __init__(self, registry: BrickRegistry, dispatcher: Dispatcher):
        self.registry = registry
        self.dispatcher = dispatcher
        self._triggers: Dict[str, List[Any]] = {}
        self._pending: Set["asyncio.Future[Any]"] = set()

    def register_flow(self, graph: FlowGraph) -> int:
        """Register every trigger of `graph`. Returns the number registered."""
        if graph.id in self._triggers:
            self.unregister_flow(graph.id)

        log = get_struct_logger(__name__, flow_id=graph.id)
        registered = []
        for node in graph.triggers():
            try:
                brick = self.registry.resolve(node.kind, node.brick_ref, resolve_config(node.config, {}))
                if hasattr(brick, "bind"):
                    brick.bind(graph.id, self._dispatch)
                brick.register()
            except Exception as e:
                log.warning("trigger_register_failed", node_id=node.id, error=str(e))
                continue
            registered.append(brick)
            log.info("trigger_registered", node_id=node.id, trigger=brick_name(brick))

        self._triggers[graph.id] = registered
        return len(registered)

    def unregister_flow(self, flow_id: str) -> None:
        for brick in self._triggers.pop(flow_id, []):
            try:
                brick.unregister()
            except Exception as e:
                logger.warning(f"Failed to unregister trigger for flow {flow_id}: {e}")

    def boot(self, graphs: Iterable[FlowGraph]) -> int:
        return sum(self.register_flow(graph) for graph in graphs)

    def shutdown(self) -> None:
        for flow_id in list(self._triggers):
            self.unregister_flow(flow_id)

    def registered_flows(self) -> List[str]:
        return list(self._triggers)

    def triggers_for(self, flow_id: str) -> List[Any]:
        return list(self._triggers.get(flow_id, []))

    async def drain(self) -> None:
        """Wait for dispatches scheduled on the running loop."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _dispatch(self, flow_id: str, payload: Dict[str, Any]) -> Any:
        logger.info(f"🔀 Trigger fired for flow {flow_id}")
        result = self.dispatcher(flow_id, payload)
        if not inspect.isawaitable(result):
            return result

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            logger.error(f"❌ Trigger for flow {flow_id} fired outside an event loop; run not started")
            raise TriggerDispatchError(
                f"Cannot dispatch flow '{flow_id}': no running event loop for the async dispatcher"
            ) from None

        future = asyncio.ensure_future(result, loop=loop)
        self._pending.add(future)
        future.add_done_callback(self._on_dispatch_done)
        return future

    def _on_dispatch_done(self, future: "asyncio.Future[Any]") -> None:
        self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error(f"❌ Triggered run failed to dispatch: {future.exception()}")


__all__ = ["TriggerManager"]
