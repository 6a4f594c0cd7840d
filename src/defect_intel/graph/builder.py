"""Turn an ingestion window into a typed, deduplicated knowledge graph.

    (page) -HAS-> (element) -TRIGGERS-> (action) -CAUSES-> (failure) -IMPACTS-> (goal)
    (page) -CALLS-> (api) -CAUSES-> (failure)
    (page) -HAS-> (element) -CAUSES-> (failure)

Only failing steps, endpoints with issues and unstable elements are
materialized, so the graph grows with defect volume rather than test volume.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from defect_intel.graph.graph import KnowledgeGraph
from defect_intel.graph.nodes import NodeType, Relation
from defect_intel.ingest import IngestionWindow
from defect_intel.ingest.models import DomAnalysis, FlowRun, NetworkCapture
from defect_intel.scoring.formula import STABILITY_FLOOR, flow_severity, is_unstable, status_severity
from defect_intel.utils import normalize_url

log = logging.getLogger(__name__)

FLOW_GOALS = {
    "login": "User Authentication",
    "addToCart": "Purchase Conversion",
    "submitForm": "Lead Capture",
    "search": "Content Discovery",
}


def goal_for(flow_id: str) -> str:
    return FLOW_GOALS.get(flow_id, flow_id)


def _page(graph: KnowledgeGraph, url: str) -> tuple[str, str]:
    """Page node keyed by canonical URL; returns (node id, canonical URL)."""
    canonical = normalize_url(url)
    return graph.add_node(NodeType.PAGE, canonical, label=url, metadata={"url": url}), canonical


def ingest_functional(graph: KnowledgeGraph, runs: list[FlowRun]) -> None:
    for run in runs:
        for flow in run.results:
            if not flow.has_failing_step:
                continue
            page_id, canonical = _page(graph, flow.url)
            flow_key = f"{canonical}|{flow.flow_id}"
            elem_id = graph.add_node(
                NodeType.ELEMENT, flow_key,
                label=flow.name or flow.flow_id,
                severity=flow_severity(flow.flow_id, flow.verdict),
                metadata={"flowId": flow.flow_id, "verdict": flow.verdict},
            )
            graph.add_edge(page_id, elem_id, Relation.HAS, 1, {"verdict": flow.verdict})

            goal = goal_for(flow.flow_id)
            severity = flow_severity(flow.flow_id, "fail")
            for idx, step in enumerate(flow.steps):
                if not step.failed:
                    continue
                action_id = graph.add_node(
                    NodeType.ACTION, f"{flow_key}_step{idx}",
                    label=step.label or f"Step {idx + 1}",
                    severity="high",
                    metadata={"action": step.action, "detail": step.detail},
                )
                graph.add_edge(elem_id, action_id, Relation.TRIGGERS, 1, {"step": idx})

                reason = step.reason
                fail_id = graph.add_node(
                    NodeType.FAILURE, f"{flow_key}_step{idx}_fail",
                    label=(reason and reason.title) or "Step Failure",
                    severity=severity,
                    metadata={
                        "why": (reason and reason.why) or step.detail or "Step did not complete as expected",
                        "category": (reason and reason.category) or "Functional",
                        "code": reason.code if reason else None,
                        "suggestions": list(reason.suggestions) if reason else [],
                    },
                )
                graph.add_edge(action_id, fail_id, Relation.CAUSES, 2,
                               {"code": reason.code if reason else None})

                goal_id = graph.add_node(NodeType.GOAL, goal, label=goal, severity=severity)
                graph.add_edge(fail_id, goal_id, Relation.IMPACTS, 3, {"flowId": flow.flow_id})


def ingest_network(graph: KnowledgeGraph, captures: list[NetworkCapture], endpoint_cap: int) -> None:
    endpoints: dict[str, set[str]] = defaultdict(set)
    for capture in captures:
        page_id, _ = _page(graph, capture.url)
        graph.enrich(page_id, capturedAt=capture.captured_at)
        for req in capture.requests:
            if not req.issues:
                continue
            seen = endpoints[page_id]
            if req.url not in seen and len(seen) >= endpoint_cap:
                continue
            seen.add(req.url)

            api_id = graph.add_node(
                NodeType.API, req.url,
                label=req.short_url or req.url,
                severity=status_severity(req.status),
                metadata={
                    "method": req.method,
                    "status": req.status,
                    "cluster": req.cluster,
                    "duration": req.duration,
                },
            )
            graph.add_edge(page_id, api_id, Relation.CALLS, 1, {"status": req.status})

            for issue in req.issues:
                fail_id = graph.add_node(
                    NodeType.FAILURE, f"net_{req.url}_{issue.msg[:20]}",
                    label=issue.msg,
                    severity="high" if issue.severity == "error" else "medium",
                    metadata={
                        "category": "Network",
                        "why": f"{req.method} {req.url} returned {req.status or 'no response'}",
                        "suggestions": ["Review server logs for error details"],
                    },
                )
                graph.add_edge(api_id, fail_id, Relation.CAUSES, 2, {"status": req.status})


def ingest_dom(graph: KnowledgeGraph, analyses: list[DomAnalysis], element_cap: int) -> None:
    unstable: dict[str, set[str]] = defaultdict(set)
    for result in analyses:
        page_id, canonical = _page(graph, result.url)
        graph.enrich(page_id, analyzedAt=result.analyzed_at)
        for el in result.elements:
            if not is_unstable(el.stability_score):
                continue
            key = f"dom_{canonical}_{el.tag}_{el.css_path}"
            seen = unstable[page_id]
            if key not in seen and len(seen) >= element_cap:
                continue
            seen.add(key)

            elem_id = graph.add_node(
                NodeType.ELEMENT, key,
                label=f"{el.tag} (score: {el.stability_score:g})",
                severity="high" if el.stability_score < STABILITY_FLOOR else "medium",
                metadata={
                    "stabilityScore": el.stability_score,
                    "isDynamic": el.is_dynamic,
                    "selector": el.recommended_selector,
                },
            )
            graph.add_edge(page_id, elem_id, Relation.HAS, 1, {"stabilityScore": el.stability_score})

            if el.is_dynamic:
                fail_id = graph.add_node(
                    NodeType.FAILURE, f"dom_dynamic_{elem_id}",
                    label=f"Unstable selector: {el.tag}",
                    severity="medium",
                    metadata={
                        "category": "DOM Stability",
                        "why": (
                            f"Element has a stability score of {el.stability_score:g}/100; "
                            "dynamic ID or class names may break selectors."
                        ),
                        "suggestions": [
                            f"Use recommended selector: {el.recommended_selector}"
                            if el.recommended_selector else
                            "Add a data-testid attribute to this element",
                        ],
                    },
                )
                graph.add_edge(elem_id, fail_id, Relation.CAUSES, 1)


def build_knowledge_graph(window: IngestionWindow) -> KnowledgeGraph:
    """Build a fresh graph from the window; identical windows give identical graphs."""
    graph = KnowledgeGraph()
    ingest_functional(graph, window.graph_runs)
    ingest_network(graph, window.network, window.caps.endpoints_per_page)
    ingest_dom(graph, window.dom, window.caps.unstable_elements_per_page)

    log.info(
        "Knowledge graph built: %d nodes, %d edges",
        len(graph), len(graph.all_edges()),
    )
    return graph
