"""
Built-in brick catalog.
"""

from .actions import LogMessage, PauseFlow, SetVariable, StopFlow, TransformData, cast_value
from .conditions import FieldComparison, FieldContains, FieldEquals, FieldIsEmpty, FieldMatchesRegex
from .gates import AndGate, OrGate
from .triggers import EventTrigger, ManualTrigger

BUILTIN_BRICKS = {
    "manual": ManualTrigger,
    "event": EventTrigger,
    "field_equals": FieldEquals,
    "field_comparison": FieldComparison,
    "field_contains": FieldContains,
    "field_is_empty": FieldIsEmpty,
    "field_matches_regex": FieldMatchesRegex,
    "and_gate": AndGate,
    "or_gate": OrGate,
    "set_variable": SetVariable,
    "log_message": LogMessage,
    "stop_flow": StopFlow,
    "pause_flow": PauseFlow,
    "transform_data": TransformData,
}


def register_builtin_bricks(registry) -> None:
    """Register every built-in brick on `registry`."""
    for ref, brick_class in BUILTIN_BRICKS.items():
        registry.register(ref, brick_class)


__all__ = [
    "AndGate",
    "BUILTIN_BRICKS",
    "EventTrigger",
    "FieldComparison",
    "FieldContains",
    "FieldEquals",
    "FieldIsEmpty",
    "FieldMatchesRegex",
    "LogMessage",
    "ManualTrigger",
    "OrGate",
    "PauseFlow",
    "SetVariable",
    "StopFlow",
    "TransformData",
    "cast_value",
    "register_builtin_bricks",
]
