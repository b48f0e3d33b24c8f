"""
Workflow structure graph.

The graph is populated only by the chaining calls of a Workflow, never by
execution, so it can be inspected and rendered before anything runs. Nodes and
edges are only ever appended.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence, Tuple

import networkx as nx

from .steps import NodeKind


@dataclass(frozen=True)
class GraphNode:
    """A node of the workflow graph."""

    id: str
    name: str
    kind: NodeKind
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name, "kind": self.kind.value}
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class GraphEdge:
    """A directed edge between two graph nodes."""

    source: str
    target: str
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"from": self.source, "to": self.target}
        if self.label is not None:
            data["label"] = self.label
        return data


@dataclass(frozen=True)
class GraphSnapshot:
    """Point-in-time copy of the workflow graph."""

    nodes: List[GraphNode]
    edges: List[GraphEdge]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def node(self, node_id: str) -> GraphNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> List[GraphNode]:
        return [node for node in self.nodes if node.kind == kind]


class WorkflowGraphBuilder:
    """Append-only node/edge table behind a workflow.

    Node ids are ``<kind>-<counter>`` and are never reused. The table is kept
    in a networkx DiGraph; edge insertion order is tracked separately so that
    renderings follow declaration order.
    """

    def __init__(self):
        self._graph = nx.DiGraph()
        self._edges: List[GraphEdge] = []
        self._counter = 0
        self._lock = Lock()

    def add_node(
        self,
        kind: NodeKind,
        name: str,
        metadata: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> str:
        """Add a node and return its id.

        Raises:
            ValueError: If node_id is already taken
        """
        with self._lock:
            if node_id is None:
                self._counter += 1
                node_id = f"{kind.value}-{self._counter}"
            if self._graph.has_node(node_id):
                raise ValueError(f'Workflow graph already contains node id "{node_id}"')
            self._graph.add_node(node_id, name=name, kind=kind, metadata=dict(metadata or {}))
            return node_id

    def add_edge(self, source: str, target: str, label: Optional[str] = None) -> None:
        """Add an edge between two existing nodes.

        Raises:
            KeyError: If either endpoint is unknown
        """
        with self._lock:
            for node_id in (source, target):
                if not self._graph.has_node(node_id):
                    raise KeyError(f'Unknown workflow graph node "{node_id}"')
            self._graph.add_edge(source, target, label=label)
            self._edges.append(GraphEdge(source, target, label))

    def snapshot(self) -> GraphSnapshot:
        with self._lock:
            nodes = [
                GraphNode(node_id, data["name"], data["kind"], dict(data["metadata"]))
                for node_id, data in self._graph.nodes(data=True)
            ]
            return GraphSnapshot(nodes=nodes, edges=list(self._edges))

    def to_networkx(self) -> nx.DiGraph:
        """Copy of the underlying DiGraph."""
        with self._lock:
            return self._graph.copy()

    def is_acyclic(self) -> bool:
        return nx.is_directed_acyclic_graph(self._graph)

    def to_dot(self) -> str:
        """Render as a Graphviz DOT digraph."""
        snapshot = self.snapshot()
        lines = ["digraph Workflow {", "  rankdir=LR;"]
        for node in snapshot.nodes:
            shape, style = _dot_style(node.kind)
            attrs = [f"label={_quote(node.name)}", f"shape={shape}"]
            if style:
                attrs.append(f"style={style}")
            lines.append(f"  {_quote(node.id)} [{', '.join(attrs)}];")
        for edge in snapshot.edges:
            attrs = f" [label={_quote(edge.label)}]" if edge.label else ""
            lines.append(f"  {_quote(edge.source)} -> {_quote(edge.target)}{attrs};")
        lines.append("}")
        return "\n".join(lines)

    def to_mermaid(self) -> str:
        """Render as a Mermaid flowchart."""
        snapshot = self.snapshot()
        ids: Dict[str, str] = {}
        lines = ["flowchart LR"]
        for node in snapshot.nodes:
            lines.append(f"  {_mermaid_id(node.id, ids)}{_mermaid_body(node)}")
        for edge in snapshot.edges:
            label = f"|{_escape_mermaid(edge.label)}|" if edge.label else ""
            lines.append(f"  {_mermaid_id(edge.source, ids)} -->{label} {_mermaid_id(edge.target, ids)}")
        return "\n".join(lines)


def register_step(builder: WorkflowGraphBuilder, tail_id: str, name: str) -> str:
    """Register a sequential step; the step node becomes the new tail."""
    node_id = builder.add_node(NodeKind.STEP, name)
    builder.add_edge(tail_id, node_id)
    return node_id


def register_fallback(builder: WorkflowGraphBuilder, tail_id: str, name: str) -> Tuple[str, str]:
    """Register a fallback group.

    Returns:
        (group id, join id); the join is the new tail
    """
    group_id = builder.add_node(NodeKind.FALLBACK_GROUP, name)
    primary_id = builder.add_node(NodeKind.FALLBACK_PRIMARY, f"{name}::primary", {"role": "primary"})
    secondary_id = builder.add_node(NodeKind.FALLBACK_SECONDARY, f"{name}::fallback", {"role": "fallback"})
    join_id = builder.add_node(NodeKind.FALLBACK_JOIN, f"{name}::join")

    builder.add_edge(tail_id, group_id)
    builder.add_edge(group_id, primary_id, "primary")
    builder.add_edge(group_id, secondary_id, "fallback")
    builder.add_edge(primary_id, join_id)
    builder.add_edge(secondary_id, join_id)
    return group_id, join_id


def register_parallel(
    builder: WorkflowGraphBuilder, tail_id: str, name: str, branch_keys: Sequence[str]
) -> Tuple[str, str]:
    """Register a parallel group with one branch node per key.

    Returns:
        (group id, join id); the join is the new tail
    """
    group_id = builder.add_node(NodeKind.PARALLEL_GROUP, name)
    join_id = builder.add_node(NodeKind.PARALLEL_JOIN, f"{name}::join")
    builder.add_edge(tail_id, group_id)

    for key in branch_keys:
        branch_id = builder.add_node(NodeKind.PARALLEL_BRANCH, f"{name}::{key}", {"branch": key})
        builder.add_edge(group_id, branch_id, key)
        builder.add_edge(branch_id, join_id)
    return group_id, join_id


def _dot_style(kind: NodeKind) -> Tuple[str, Optional[str]]:
    if kind == NodeKind.START:
        return "circle", "filled"
    if kind in (NodeKind.PARALLEL_GROUP, NodeKind.FALLBACK_GROUP):
        return "diamond", None
    if kind in (NodeKind.PARALLEL_JOIN, NodeKind.FALLBACK_JOIN):
        return "oval", "dashed"
    return "box", "rounded"


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _mermaid_id(node_id: str, ids: Dict[str, str]) -> str:
    """Stable Mermaid-safe identifier for a node id."""
    if node_id in ids:
        return ids[node_id]
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", node_id)
    if not sanitized or sanitized in ids.values():
        sanitized = f"node_{len(ids)}"
    ids[node_id] = sanitized
    return sanitized


def _mermaid_body(node: GraphNode) -> str:
    label = _escape_mermaid(node.name)
    if node.kind == NodeKind.START:
        return f"(({label}))"
    if node.kind in (NodeKind.PARALLEL_GROUP, NodeKind.FALLBACK_GROUP):
        return f"{{{label}}}"
    if node.kind in (NodeKind.PARALLEL_JOIN, NodeKind.FALLBACK_JOIN):
        return f"[[{label}]]"
    return f'["{label}"]'


def _escape_mermaid(value: str) -> str:
    return re.sub(r'(["{}\[\]()])', r"\\\1", value)
