"""Backward chain walk from goal impacts to the page they originate on."""

from __future__ import annotations

import logging

from defect_intel.graph.graph import KnowledgeGraph
from defect_intel.graph.nodes import Relation
from defect_intel.inference.models import RootCause

log = logging.getLogger(__name__)


def walk_root_causes(graph: KnowledgeGraph) -> list[RootCause]:
    """One record per IMPACTS edge.

    From each failure, follow at most one CAUSES, one TRIGGERS and one HAS
    edge backwards to recover the action, element and page. A missing link
    stops the walk and leaves the remaining fields empty.
    """
    causes: list[RootCause] = []
    for impact in graph.edges_of(Relation.IMPACTS):
        failure = graph.get_node(impact.src)
        goal = graph.get_node(impact.dst)
        if failure is None or goal is None:
            log.debug("Dangling IMPACTS edge %s -> %s", impact.src, impact.dst)
            continue

        action = graph.predecessor(failure.id, Relation.CAUSES)
        element = graph.predecessor(action.id, Relation.TRIGGERS) if action else None
        page = graph.predecessor(element.id, Relation.HAS) if element else None

        causes.append(RootCause(
            goal=goal.label,
            failure=failure.label,
            reason=failure.metadata.get("why"),
            action=action.label if action else None,
            element=element.label if element else None,
            page=page.label if page else None,
            severity=failure.severity or "medium",
            suggestions=list(failure.metadata.get("suggestions") or []),
        ))

    log.info("Root-cause walk: %d goal impacts traced", len(causes))
    return causes
