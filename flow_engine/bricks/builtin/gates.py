"""Built-in gates combining upstream condition results."""

from typing import Dict

from ..base import GateBrick


class AndGate(GateBrick):
    label = "AND Gate"

    def evaluate(self, inputs: Dict[str, bool], context) -> bool:
        return bool(inputs) and all(inputs.values())


class OrGate(GateBrick):
    label = "OR Gate"

    def evaluate(self, inputs: Dict[str, bool], context) -> bool:
        return any(inputs.values())
