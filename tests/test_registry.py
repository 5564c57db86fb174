"""
Tests for BrickRegistry and the brick contract.
"""

import pytest

from flow_engine.bricks.base import (
    ActionBrick,
    Compensable,
    Evaluatable,
    Handleable,
    Registerable,
    brick_name,
)
from flow_engine.bricks.builtin import AndGate, FieldEquals, ManualTrigger, SetVariable
from flow_engine.bricks.registry import BrickRegistry, get_brick_registry
from flow_engine.core.exceptions import BrickNotFoundError, DefinitionError
from flow_engine.core.graph import NodeKind


class Greeter(ActionBrick):
    label = "Greeter"

    def handle(self, context):
        context.set("greeting", f"hello {self.config_value('who', 'world')}")
        return context


def test_register_infers_kind_from_class():
    registry = BrickRegistry()
    registry.register("greet", Greeter)
    assert registry.has(NodeKind.ACTION, "greet")
    assert registry.has("action", "greet")
    assert not registry.has(NodeKind.CONDITION, "greet")


def test_resolve_passes_config():
    registry = BrickRegistry()
    registry.register("greet", Greeter)
    brick = registry.resolve(NodeKind.ACTION, "greet", {"who": "bob"})
    assert isinstance(brick, Greeter)
    assert brick.config == {"who": "bob"}


def test_callable_factory_needs_explicit_kind():
    registry = BrickRegistry()
    with pytest.raises(DefinitionError):
        registry.register("anon", lambda config: Greeter(config))
    registry.register("anon", lambda config: Greeter(config), kind="action")
    assert registry.resolve("action", "anon", {}).name() == "Greeter"


def test_decorator_registration():
    registry = BrickRegistry()

    @registry.brick("decorated")
    class Decorated(Greeter):
        pass

    assert registry.refs(NodeKind.ACTION) == ["decorated"]


def test_unknown_ref_raises_brick_not_found():
    with pytest.raises(BrickNotFoundError):
        BrickRegistry().resolve(NodeKind.ACTION, "nope", {})


def test_kind_mismatch_is_definition_error():
    registry = BrickRegistry()
    registry.register("greet", Greeter)
    with pytest.raises(DefinitionError) as exc_info:
        registry.resolve(NodeKind.CONDITION, "greet", {})
    assert "registered as action" in str(exc_info.value)


def test_factory_errors_become_definition_errors():
    def broken(config):
        raise KeyError("missing")

    registry = BrickRegistry()
    registry.register("broken", broken, kind="action")
    with pytest.raises(DefinitionError):
        registry.resolve("action", "broken", {})


def test_describe_groups_by_kind():
    registry = BrickRegistry()
    registry.register("greet", Greeter)
    registry.register("and", AndGate)
    described = registry.describe()
    assert described["action"] == ["greet"]
    assert described["gate"] == ["and"]
    assert described["trigger"] == []
    assert len(registry) == 2
    assert "greet" in registry


def test_global_registry_has_builtins():
    registry = get_brick_registry()
    assert registry is get_brick_registry()
    assert registry.has(NodeKind.TRIGGER, "manual")
    assert registry.has(NodeKind.ACTION, "set_variable")
    assert registry.has(NodeKind.GATE, "and_gate")


def test_capability_protocols():
    assert isinstance(ManualTrigger(), Registerable)
    assert isinstance(FieldEquals(), Evaluatable)
    assert isinstance(SetVariable(), Handleable)
    assert isinstance(SetVariable(), Compensable)
    assert not isinstance(Greeter(), Compensable)


def test_brick_names():
    assert SetVariable().name() == "Set Variable"
    assert brick_name(Greeter()) == "Greeter"
    assert brick_name(object()) == "object"


def test_duck_typed_brick_without_base_class():
    class Plain:
        kind = NodeKind.CONDITION

        def __init__(self, config):
            self.config = config

        def evaluate(self, context):
            return True

    registry = BrickRegistry()
    registry.register("plain", Plain)
    brick = registry.resolve("condition", "plain", {})
    assert isinstance(brick, Evaluatable)
    assert brick_name(brick) == "Plain"
