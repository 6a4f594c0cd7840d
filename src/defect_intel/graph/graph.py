"""KnowledgeGraph: deduplicated typed nodes and edges with backward lookup."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable

from defect_intel.graph.nodes import Edge, Node, NodeType, Relation
from defect_intel.utils import make_node_id


class KnowledgeGraph:
    """Owns one node map and one edge-triple set for a single build."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._edges: list[Edge] = []
        self._edge_keys: set[tuple[str, str, Relation]] = set()
        # Backward adjacency: dst_id → list[Edge], in insertion order
        self._bwd: dict[str, list[Edge]] = defaultdict(list)

    def add_node(
        self,
        node_type: NodeType,
        key: str,
        label: str | None = None,
        severity: str = "low",
        metadata: dict | None = None,
    ) -> str:
        """Insert a node keyed by ``(node_type, key)`` and return its id.

        Re-inserting an existing key is a no-op: the first label, severity
        and metadata are kept.
        """
        node_id = make_node_id(node_type.value, key)
        if node_id not in self._nodes:
            self._nodes[node_id] = Node(
                id=node_id,
                type=node_type,
                label=label if label is not None else key,
                severity=severity,
                metadata=dict(metadata or {}),
            )
        return node_id

    def enrich(self, node_id: str, **metadata) -> None:
        """Add metadata keys the node does not have yet."""
        node = self._nodes.get(node_id)
        if node is None:
            return
        for k, v in metadata.items():
            node.metadata.setdefault(k, v)

    def add_edge(
        self,
        src: str,
        dst: str,
        relation: Relation,
        weight: int = 1,
        meta: dict | None = None,
    ) -> bool:
        """Add a directed edge; returns False when the triple already exists."""
        edge = Edge(src=src, dst=dst, relation=relation, weight=weight, meta=dict(meta or {}))
        if edge.key in self._edge_keys:
            return False
        self._edge_keys.add(edge.key)
        self._edges.append(edge)
        self._bwd[dst].append(edge)
        return True

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def nodes_matching(self, pred: Callable[[Node], bool]) -> list[Node]:
        return [n for n in self._nodes.values() if pred(n)]

    def edges_of(self, relation: Relation) -> list[Edge]:
        return [e for e in self._edges if e.relation == relation]

    def predecessor(self, node_id: str, relation: Relation) -> Node | None:
        """First node linked into ``node_id`` by ``relation``, if any."""
        for edge in self._bwd.get(node_id, []):
            if edge.relation == relation:
                return self._nodes.get(edge.src)
        return None

    def all_nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def all_edges(self) -> list[Edge]:
        return list(self._edges)

    def count(self, node_type: NodeType) -> int:
        return sum(1 for n in self._nodes.values() if n.type == node_type)

    def stats(self) -> dict[str, int]:
        return {
            "pages": self.count(NodeType.PAGE),
            "elements": self.count(NodeType.ELEMENT),
            "apis": self.count(NodeType.API),
            "actions": self.count(NodeType.ACTION),
            "failures": self.count(NodeType.FAILURE),
            "goals": self.count(NodeType.GOAL),
            "edges": len(self._edges),
        }

    def __len__(self) -> int:
        return len(self._nodes)
