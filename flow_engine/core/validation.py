"""
Structural validation of flow definitions.

The validator is a separate tool for editors and activation checks; the
runner never calls it. Errors make a flow invalid, warnings do not.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ..utils.template_resolver import TemplateResolver
from .graph import FlowGraph, NodeKind


class ValidationIssue(BaseModel):
    type: str = Field(..., description="Machine-readable issue code")
    message: str = Field(..., description="Human-readable description")
    node_id: Optional[str] = Field(default=None, description="Offending node, if any")
    field: Optional[str] = Field(default=None, description="Offending config field, if any")


class ValidationResult(BaseModel):
    valid: bool = True
    flow_id: Optional[str] = None
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    def is_valid(self) -> bool:
        return self.valid and not self.errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings)

    def errors_for_node(self, node_id: str) -> List[ValidationIssue]:
        return [issue for issue in self.errors if issue.node_id == node_id]

    def warnings_for_node(self, node_id: str) -> List[ValidationIssue]:
        return [issue for issue in self.warnings if issue.node_id == node_id]

    def summary(self) -> str:
        if self.is_valid():
            if self.warnings:
                return f"Flow is valid with {self.warning_count()} warning(s)."
            return "Flow is valid and ready to activate."
        return (
            f"Flow has {self.error_count()} error(s) and {self.warning_count()} warning(s)."
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.is_valid(),
            "flow_id": self.flow_id,
            "errors": [issue.model_dump() for issue in self.errors],
            "warnings": [issue.model_dump() for issue in self.warnings],
            "summary": {
                "error_count": self.error_count(),
                "warning_count": self.warning_count(),
                "message": self.summary(),
            },
        }


class FlowValidator:
    """Check a flow for structural problems before it is activated."""

    def __init__(self, registry=None):
        self.registry = registry

    def validate(self, flow: Union[FlowGraph, Mapping[str, Any]]) -> ValidationResult:
        if isinstance(flow, FlowGraph):
            graph = flow
        else:
            try:
                graph = FlowGraph.from_dict(flow or {})
            except ValidationError as e:
                result = ValidationResult(flow_id=str((flow or {}).get("id", "") or "") or None)
                for err in e.errors():
                    self._error(result, "invalid_definition", err.get("msg", str(err)))
                return self._finalize(result)

        result = ValidationResult(flow_id=graph.id or None)
        if not graph.nodes:
            self._error(result, "empty_flow", "Flow has no nodes.")
            return self._finalize(result)

        if not graph.triggers():
            self._error(result, "no_trigger", "Flow needs at least one trigger node.")

        self._check_bricks(graph, result)
        self._check_edges(graph, result)
        self._check_connectivity(graph, result)
        return self._finalize(result)

    def _check_bricks(self, graph: FlowGraph, result: ValidationResult) -> None:
        for node in graph.nodes:
            if not node.brick_ref:
                self._error(result, "missing_brick", f"Node '{node.id}' has no brick.", node.id)
                continue
            if self.registry is None:
                continue
            if not self.registry.has(node.kind, node.brick_ref):
                self._error(
                    result,
                    "unknown_brick",
                    f"Brick '{node.brick_ref}' is not registered as a {node.kind.value}.",
                    node.id,
                )
                continue
            factory = self.registry.factory(node.kind, node.brick_ref)
            for field in getattr(factory, "required_fields", ()):
                value = node.config.get(field)
                if TemplateResolver.is_template(value):
                    continue
                if value is None or value == "" or value == [] or value == {}:
                    self._error(
                        result,
                        "required_field",
                        f"Node '{node.id}' requires '{field}'.",
                        node.id,
                        field,
                    )

    def _check_edges(self, graph: FlowGraph, result: ValidationResult) -> None:
        for edge in graph.edges:
            if not graph.has_node(edge.source):
                self._error(
                    result,
                    "invalid_edge",
                    f"Edge '{edge.id}' has an unknown source node '{edge.source}'.",
                )
            if not graph.has_node(edge.target):
                self._error(
                    result,
                    "invalid_edge",
                    f"Edge '{edge.id}' has an unknown target node '{edge.target}'.",
                )
            if edge.source == edge.target:
                self._warning(
                    result, "self_loop", f"Node '{edge.source}' connects to itself.", edge.source
                )

    def _check_connectivity(self, graph: FlowGraph, result: ValidationResult) -> None:
        for node in graph.nodes:
            incoming = graph.incoming_count(node.id)
            outgoing = len(graph.outgoing(node.id))
            kind = node.kind.value

            if node.kind == NodeKind.TRIGGER:
                if outgoing == 0:
                    self._warning(
                        result, "orphan_trigger", f"Trigger '{node.id}' has no outgoing connections.", node.id
                    )
                continue

            if incoming == 0:
                self._warning(
                    result, f"orphan_{kind}", f"{kind.capitalize()} '{node.id}' has no incoming connections.", node.id
                )

            if node.kind == NodeKind.CONDITION and outgoing == 0:
                self._warning(
                    result,
                    "orphan_condition",
                    f"Condition '{node.id}' has no outgoing connections.",
                    node.id,
                )
            elif node.kind == NodeKind.GATE:
                if incoming < 2:
                    self._warning(
                        result,
                        "gate_inputs",
                        f"Gate '{node.id}' has {incoming} input(s); gates combine at least 2.",
                        node.id,
                    )
                if outgoing == 0:
                    self._warning(
                        result, "orphan_gate", f"Gate '{node.id}' has no outgoing connections.", node.id
                    )

    @staticmethod
    def _error(result, type_, message, node_id=None, field=None) -> None:
        result.errors.append(ValidationIssue(type=type_, message=message, node_id=node_id, field=field))

    @staticmethod
    def _warning(result, type_, message, node_id=None) -> None:
        result.warnings.append(ValidationIssue(type=type_, message=message, node_id=node_id))

    @staticmethod
    def _finalize(result: ValidationResult) -> ValidationResult:
        result.valid = not result.errors
        return result


__all__ = ["FlowValidator", "ValidationIssue", "ValidationResult"]
