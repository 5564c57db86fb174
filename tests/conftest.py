"""Shared fixtures for flow_engine tests."""

import pytest

from flow_engine.bricks.base import ActionBrick, ConditionBrick
from flow_engine.bricks.builtin import register_builtin_bricks
from flow_engine.bricks.registry import BrickRegistry, reset_brick_registry
from flow_engine.core.config import Settings, reset_settings
from flow_engine.core.graph import FlowGraph
from flow_engine.core.hooks import ExecutionHooks
from flow_engine.core.runner import FlowRunner


class RecordAction(ActionBrick):
    """Append `label` to the `trail` variable."""

    def handle(self, context):
        trail = context.get("trail", [])
        context.set("trail", trail + [self.config_value("label", "?")])
        return context


class AsyncRecordAction(RecordAction):
    async def handle(self, context):
        return super().handle(context)


class FailingAction(ActionBrick):
    def handle(self, context):
        raise RuntimeError(self.config_value("message", "boom"))


class FlagCondition(ConditionBrick):
    """Evaluates to the (template-resolved) `result` config value."""

    def evaluate(self, context):
        return bool(self.config.get("result"))


class UndoableAction(RecordAction):
    def compensate(self, context):
        undone = context.get("undone", [])
        context.set("undone", undone + [self.config_value("label", "?")])


@pytest.fixture(autouse=True)
def _reset_globals():
    reset_settings()
    reset_brick_registry()
    yield
    reset_settings()
    reset_brick_registry()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def registry():
    registry = BrickRegistry()
    register_builtin_bricks(registry)
    registry.register("record", RecordAction)
    registry.register("async_record", AsyncRecordAction)
    registry.register("fail", FailingAction)
    registry.register("flag", FlagCondition)
    registry.register("undoable", UndoableAction)
    return registry


@pytest.fixture
def hooks():
    return ExecutionHooks()


@pytest.fixture
def runner(registry, hooks, settings):
    return FlowRunner(registry=registry, hooks=hooks, settings=settings)


def trigger(node_id="t"):
    return {"id": node_id, "kind": "trigger", "brickRef": "manual"}


def record(node_id, label=None):
    return {"id": node_id, "kind": "action", "brickRef": "record", "config": {"label": label or node_id}}


def flag(node_id, result):
    return {"id": node_id, "kind": "condition", "brickRef": "flag", "config": {"result": result}}


def edge(source, target, label=None):
    data = {"source": source, "target": target}
    if label is not None:
        data["branchLabel"] = label
    return data


def build_graph(nodes, edges, flow_id="flow-1"):
    return FlowGraph.from_dict({"id": flow_id, "nodes": nodes, "edges": edges})
