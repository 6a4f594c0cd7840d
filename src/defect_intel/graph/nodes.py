"""Node and Edge dataclasses for the defect knowledge graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NodeType(str, Enum):
    PAGE = "page"
    ELEMENT = "element"
    ACTION = "action"
    API = "api"
    FAILURE = "failure"
    GOAL = "goal"


class Relation(str, Enum):
    HAS = "HAS"              # page owns a tested element / flow
    TRIGGERS = "TRIGGERS"    # element triggers an interaction step
    CALLS = "CALLS"          # page calls a network endpoint
    CAUSES = "CAUSES"        # step or endpoint causes a failure
    IMPACTS = "IMPACTS"      # failure impacts a user goal


@dataclass
class Node:
    id: str                  # "<type>:<normalized label>"
    type: NodeType
    label: str
    severity: str = "low"
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "severity": self.severity,
            "meta": dict(self.metadata),
        }


@dataclass
class Edge:
    src: str                 # Node.id
    dst: str                 # Node.id
    relation: Relation
    weight: int = 1
    meta: dict = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, Relation]:
        return (self.src, self.dst, self.relation)

    def to_dict(self) -> dict:
        return {
            "from": self.src,
            "to": self.dst,
            "rel": self.relation.value,
            "weight": self.weight,
            "meta": dict(self.meta),
        }
