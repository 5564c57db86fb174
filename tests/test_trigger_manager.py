"""
Tests for TriggerManager.
"""

import pytest

from flow_engine.bricks.base import TriggerBrick
from flow_engine.bricks.builtin import EventTrigger
from flow_engine.core.exceptions import TriggerDispatchError
from flow_engine.models.execution import RunStatus
from flow_engine.services.events import EventBus
from flow_engine.services.run_service import FlowRunService
from flow_engine.services.trigger_manager import TriggerManager

from .conftest import build_graph, edge, record


class CountingTrigger(TriggerBrick):
    registered = 0
    unregistered = 0

    def register(self):
        CountingTrigger.registered += 1

    def unregister(self):
        CountingTrigger.unregistered += 1


class ExplodingTrigger(TriggerBrick):
    def register(self):
        raise RuntimeError("listener unavailable")


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def manager_registry(registry, bus):
    registry.register("counting", CountingTrigger)
    registry.register("exploding", ExplodingTrigger)
    registry.register("local_event", lambda config: EventTrigger(config, bus=bus), kind="trigger")
    CountingTrigger.registered = CountingTrigger.unregistered = 0
    return registry


def counting_graph(flow_id):
    return build_graph([{"id": "t", "kind": "trigger", "brickRef": "counting"}], [], flow_id=flow_id)


def test_register_and_unregister(manager_registry):
    manager = TriggerManager(manager_registry, dispatcher=lambda flow_id, payload: None)
    assert manager.boot([counting_graph("f1"), counting_graph("f2")]) == 2
    assert manager.registered_flows() == ["f1", "f2"]
    assert CountingTrigger.registered == 2

    manager.unregister_flow("f1")
    assert manager.registered_flows() == ["f2"]
    assert CountingTrigger.unregistered == 1

    manager.shutdown()
    assert manager.registered_flows() == []
    assert CountingTrigger.unregistered == 2


def test_reregistering_replaces_previous_listeners(manager_registry):
    manager = TriggerManager(manager_registry, dispatcher=lambda flow_id, payload: None)
    manager.register_flow(counting_graph("f1"))
    manager.register_flow(counting_graph("f1"))
    assert CountingTrigger.registered == 2
    assert CountingTrigger.unregistered == 1
    assert len(manager.triggers_for("f1")) == 1


def test_failing_trigger_is_skipped(manager_registry):
    manager = TriggerManager(manager_registry, dispatcher=lambda flow_id, payload: None)
    graph = build_graph(
        [
            {"id": "bad", "kind": "trigger", "brickRef": "exploding"},
            {"id": "good", "kind": "trigger", "brickRef": "counting"},
        ],
        [],
        flow_id="f1",
    )
    assert manager.register_flow(graph) == 1
    assert CountingTrigger.registered == 1


def test_sync_dispatch(manager_registry, bus):
    calls = []
    manager = TriggerManager(manager_registry, dispatcher=lambda flow_id, payload: calls.append((flow_id, payload)))
    graph = build_graph(
        [{"id": "t", "kind": "trigger", "brickRef": "local_event", "config": {"event": "user.created"}}],
        [],
        flow_id="welcome",
    )
    manager.register_flow(graph)

    bus.publish("user.created", {"id": 5})
    assert calls == [("welcome", {"id": 5})]

    manager.unregister_flow("welcome")
    bus.publish("user.created", {"id": 6})
    assert len(calls) == 1


def test_async_dispatcher_needs_running_loop(manager_registry, bus):
    calls = []

    async def dispatcher(flow_id, payload):
        calls.append(flow_id)

    manager = TriggerManager(manager_registry, dispatcher)
    graph = build_graph(
        [{"id": "t", "kind": "trigger", "brickRef": "local_event", "config": {"event": "user.created"}}],
        [],
        flow_id="welcome",
    )
    manager.register_flow(graph)

    with pytest.raises(TriggerDispatchError, match="no running event loop"):
        manager.triggers_for("welcome")[0].dispatch({"id": 1})

    # The bus logs the failure instead of scheduling a run that never happens.
    assert bus.publish("user.created", {"id": 2}) == []
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_event_starts_run_through_service(manager_registry, bus, runner, settings):
    service = FlowRunService(runner=runner, settings=settings)
    graph = build_graph(
        [{"id": "t", "kind": "trigger", "brickRef": "local_event", "config": {"event": "order.paid"}}, record("r", "{{ order }}")],
        [edge("t", "r")],
        flow_id="orders",
    )
    graphs = {"orders": graph}
    results = []

    async def dispatcher(flow_id, payload):
        result = await service.run(graphs[flow_id], payload)
        results.append(result)
        return result

    manager = TriggerManager(manager_registry, dispatcher)
    manager.register_flow(graph)

    bus.publish("order.paid", {"order": "A-1"})
    await manager.drain()

    assert len(results) == 1
    assert results[0].status == RunStatus.COMPLETED
    assert results[0].context.get("trail") == ["A-1"]
