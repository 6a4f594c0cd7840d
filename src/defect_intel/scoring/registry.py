"""Score defect events from every source and merge them into one registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from defect_intel.ingest import IngestionWindow
from defect_intel.ingest.models import DomAnalysis, FlowRun, NetworkCapture
from defect_intel.scoring.formula import (
    ScoringInputs,
    classify_score,
    compute_score,
    dom_inputs,
    flow_inputs,
    is_unstable,
    network_inputs,
)
from defect_intel.scoring.models import DefectRecord, DefectRegistry
from defect_intel.utils import utc_now

log = logging.getLogger(__name__)


def _record(inputs: ScoringInputs, **fields) -> DefectRecord:
    score = compute_score(inputs)
    return DefectRecord(
        impact=inputs.impact,
        business_value=inputs.business_value,
        reproducibility=inputs.reproducibility,
        fix_effort=inputs.fix_effort,
        score=score,
        severity=classify_score(score),
        **fields,
    )


def defects_from_functional(runs: Iterable[FlowRun]) -> list[DefectRecord]:
    """One defect per failing step; the id is stable across runs."""
    defects: list[DefectRecord] = []
    for run in runs:
        for flow in run.results:
            for idx, step in enumerate(flow.steps):
                if not step.failed:
                    continue
                reason = step.reason
                defects.append(_record(
                    flow_inputs(flow.flow_id),
                    id=f"func_{flow.flow_id}_{idx}",
                    source="Functional",
                    title=(reason and reason.title) or f"Step failed: {step.label or idx}",
                    description=(reason and reason.why) or step.detail or "Step did not complete as expected",
                    page=flow.url,
                    component=flow.name or flow.flow_id,
                    category=(reason and reason.category) or "Functional",
                    suggestions=list(reason.suggestions) if reason else [],
                    detected_at=flow.executed_at,
                ))
    return defects


def defects_from_network(captures: Iterable[NetworkCapture]) -> list[DefectRecord]:
    """One defect per reported request issue."""
    defects: list[DefectRecord] = []
    for capture in captures:
        for req in capture.requests:
            for issue in req.issues:
                status_text = req.status or "no response"
                defects.append(_record(
                    network_inputs(req.status, req.cluster, issue.severity),
                    id=f"net_{req.url[-30:]}_{issue.msg[:15]}",
                    source="Network",
                    title=issue.msg,
                    description=(
                        f"{req.method} {req.url[:80]} returned {status_text}. "
                        f"Duration: {req.duration if req.duration is not None else '?'}ms"
                    ),
                    page=capture.url,
                    component=req.cluster or "API",
                    category="Network/API",
                    suggestions=[
                        f"Check endpoint: {req.url[:60]}",
                        "Review server logs for error details",
                        "Add retry logic with exponential backoff",
                    ],
                    selector=req.url,
                    detected_at=capture.captured_at,
                ))
    return defects


def defects_from_dom(analyses: Iterable[DomAnalysis]) -> list[DefectRecord]:
    """One defect per element below the fragility threshold."""
    defects: list[DefectRecord] = []
    for result in analyses:
        for el in result.elements:
            if not is_unstable(el.stability_score):
                continue
            recommended = el.recommended_selector or "a data-testid attribute"
            defects.append(_record(
                dom_inputs(el.stability_score),
                id=f"dom_{el.css_path[-30:]}",
                source="DOM",
                title=f"Unstable selector: <{el.tag}> (score {el.stability_score:g})",
                description=(
                    f"Element uses {'dynamic IDs/classes' if el.is_dynamic else 'fragile selectors'}. "
                    f"Recommended: {recommended}"
                ),
                page=result.url,
                component=el.tag,
                category="DOM Stability",
                suggestions=[
                    f"Use recommended selector: {recommended}",
                    "Add data-testid attributes to interactive elements",
                ],
                selector=el.css_path or None,
                detected_at=result.analyzed_at,
            ))
    return defects


def collect_defect_events(window: IngestionWindow) -> list[DefectRecord]:
    """Every scored event in the window, in source order, before dedup."""
    return [
        *defects_from_functional(window.registry_runs),
        *defects_from_network(window.network),
        *defects_from_dom(window.dom),
    ]


def build_registry(events: Iterable[DefectRecord]) -> DefectRegistry:
    """Deduplicate by id (first seen wins) and order by score, highest first."""
    seen: set[str] = set()
    unique: list[DefectRecord] = []
    dropped = 0
    for event in events:
        if event.id in seen:
            dropped += 1
            continue
        seen.add(event.id)
        unique.append(event)

    unique.sort(key=lambda d: d.score, reverse=True)
    registry = DefectRegistry(defects=unique, built_at=utc_now())
    log.info(
        "Defect registry: %d defects (%d duplicates dropped), %d critical",
        registry.total, dropped, registry.by_severity["critical"],
    )
    return registry
