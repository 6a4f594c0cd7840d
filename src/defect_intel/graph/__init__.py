"""Defect knowledge graph.

Provides:
    build_knowledge_graph(window) -> KnowledgeGraph
"""

from __future__ import annotations

from defect_intel.graph.builder import FLOW_GOALS, build_knowledge_graph
from defect_intel.graph.graph import KnowledgeGraph
from defect_intel.graph.nodes import Edge, Node, NodeType, Relation

__all__ = [
    "build_knowledge_graph",
    "Edge",
    "FLOW_GOALS",
    "KnowledgeGraph",
    "Node",
    "NodeType",
    "Relation",
]
