"""
Flow graph model.

A FlowGraph is an immutable set of nodes and labeled edges plus id-keyed
lookup tables built once at construction time.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from .exceptions import NodeNotFoundError


class NodeKind(str, Enum):
    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"
    GATE = "gate"


class BranchLabel(str, Enum):
    TRUE = "true"
    FALSE = "false"
    ALWAYS = "always"


class Node(BaseModel):
    """A node in a flow graph."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(..., min_length=1, description="Unique node id within the graph")
    kind: NodeKind = Field(..., description="trigger, condition, action or gate")
    brick_ref: str = Field(default="", description="Registry reference of the brick")
    config: Dict[str, Any] = Field(default_factory=dict, description="Raw (templated) config")
    name: Optional[str] = Field(default=None, description="Optional display label")


class Edge(BaseModel):
    """A directed edge between two nodes."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Edge id")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    branch_label: Optional[BranchLabel] = Field(
        default=None, description="true, false, always or absent"
    )

    @field_validator("branch_label", mode="before")
    @classmethod
    def normalize_label(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, str):
            return v.strip().lower()
        return v


class FlowGraph(BaseModel):
    """Immutable directed graph of nodes and labeled edges."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Flow id")
    name: Optional[str] = Field(default=None, description="Flow name")
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    _nodes_by_id: Dict[str, Node] = PrivateAttr(default_factory=dict)
    _outgoing: Dict[str, List[Edge]] = PrivateAttr(default_factory=dict)
    _incoming: Dict[str, List[Edge]] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def check_unique_node_ids(self) -> "FlowGraph":
        seen = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)
        return self

    def model_post_init(self, __context: Any) -> None:
        outgoing: Dict[str, List[Edge]] = defaultdict(list)
        incoming: Dict[str, List[Edge]] = defaultdict(list)
        for edge in self.edges:
            outgoing[edge.source].append(edge)
            incoming[edge.target].append(edge)
        self._nodes_by_id = {node.id: node for node in self.nodes}
        self._outgoing = dict(outgoing)
        self._incoming = dict(incoming)

    def get_node(self, node_id: str) -> Node:
        node = self._nodes_by_id.get(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node not found: {node_id}")
        return node

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes_by_id

    def outgoing(self, node_id: str) -> List[Edge]:
        """Outgoing edges of `node_id`, in graph order."""
        return list(self._outgoing.get(node_id, []))

    def incoming(self, node_id: str) -> List[Edge]:
        return list(self._incoming.get(node_id, []))

    def incoming_count(self, node_id: str) -> int:
        return len(self._incoming.get(node_id, []))

    def successors(self, node_id: str) -> List[str]:
        return [edge.target for edge in self._outgoing.get(node_id, [])]

    def triggers(self) -> List[Node]:
        return self.nodes_of_kind(NodeKind.TRIGGER)

    def nodes_of_kind(self, kind: NodeKind) -> List[Node]:
        return [node for node in self.nodes if node.kind == kind]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FlowGraph":
        """Build a graph from external records.

        Accepts both flat node records (`kind`, `brickRef`, `config`) and the
        editor format where brick and config live under `data`.
        """
        nodes = [_node_from_record(record) for record in data.get("nodes", []) or []]
        edges = [_edge_from_record(record) for record in data.get("edges", []) or []]
        return cls(
            id=str(data.get("id", "") or ""),
            name=data.get("name"),
            nodes=nodes,
            edges=edges,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def _first_present(record: Mapping[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return default


def _node_from_record(record: Mapping[str, Any]) -> Node:
    data = record.get("data") or {}
    return Node(
        id=str(record.get("id", "")),
        kind=_first_present(record, ("kind", "type"), data.get("kind")),
        brick_ref=_first_present(data, ("brick", "brickRef", "brick_ref"))
        or _first_present(record, ("brickRef", "brick_ref", "brick"), ""),
        config=_first_present(data, ("config",)) or record.get("config") or {},
        name=_first_present(record, ("name", "label"), data.get("label")),
    )


def _edge_from_record(record: Mapping[str, Any]) -> Edge:
    source = str(record.get("source", ""))
    target = str(record.get("target", ""))
    return Edge(
        id=str(record.get("id") or f"{source}->{target}"),
        source=source,
        target=target,
        branch_label=_first_present(
            record, ("branchLabel", "branch_label", "sourceHandle", "condition")
        ),
    )


__all__ = ["BranchLabel", "Edge", "FlowGraph", "Node", "NodeKind"]
