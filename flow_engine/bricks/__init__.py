"""Brick contract and registry."""

from .base import (
    ActionBrick,
    Brick,
    Compensable,
    ConditionBrick,
    Evaluatable,
    GateBrick,
    GateEvaluatable,
    Handleable,
    Registerable,
    TriggerBrick,
    brick_name,
)
from .registry import BrickRegistry, get_brick_registry, reset_brick_registry

__all__ = [
    "ActionBrick",
    "Brick",
    "BrickRegistry",
    "Compensable",
    "ConditionBrick",
    "Evaluatable",
    "GateBrick",
    "GateEvaluatable",
    "Handleable",
    "Registerable",
    "TriggerBrick",
    "brick_name",
    "get_brick_registry",
    "reset_brick_registry",
]
