"""Engine pipeline: window -> graph + root causes, registry + clusters, readiness, page risk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from defect_intel.config import EngineSettings
from defect_intel.graph import KnowledgeGraph, build_knowledge_graph
from defect_intel.inference import (
    ClusterReport,
    RootCause,
    cluster_shared_components,
    events_from_defects,
    events_from_scans,
    walk_root_causes,
)
from defect_intel.ingest import IngestionWindow, RecordHistory, build_window
from defect_intel.readiness import ReadinessReport, calculate_readiness, parse_dimensions
from defect_intel.risk import RiskAnalysis, analyze_page_risk
from defect_intel.scoring import DefectRegistry, build_registry, collect_defect_events
from defect_intel.utils import utc_now

log = logging.getLogger(__name__)


@dataclass
class EngineResult:
    """Everything one request produces, derived only from its own window."""
    graph: KnowledgeGraph
    root_causes: list[RootCause]
    registry: DefectRegistry
    clusters: ClusterReport
    readiness: ReadinessReport
    risk: RiskAnalysis
    target: str | None = None
    built_at: str = field(default_factory=utc_now)

    def graph_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.graph.all_nodes()],
            "edges": [e.to_dict() for e in self.graph.all_edges()],
            "rootCauses": [rc.model_dump() for rc in self.root_causes],
            "stats": self.graph.stats(),
            "builtAt": self.built_at,
        }

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "graph": self.graph_dict(),
            "matrix": self.registry.model_dump(by_alias=True),
            "clusters": self.clusters.model_dump(by_alias=True),
            "readiness": self.readiness.model_dump(by_alias=True),
            "risk": self.risk.model_dump(by_alias=True),
        }


def run_engine(
    history: RecordHistory,
    *,
    target_url: str | None = None,
    settings: EngineSettings | None = None,
) -> EngineResult:
    """Run every stage once, sequentially, over a fresh window of ``history``.

    Stage failures are logged and degrade to an empty result for that stage.
    """
    settings = settings or EngineSettings()
    window = build_window(history, settings.caps, target_url)
    if window.is_empty:
        log.warning("No collaborator records in the window; reporting neutral defaults")

    graph, root_causes = _graph_stage(window)
    registry, clusters = _registry_stage(window)

    dimensions = parse_dimensions(history.dimensions)
    readiness = calculate_readiness(dimensions, registry)

    try:
        risk = analyze_page_risk(window)
    except Exception:
        log.exception("Page risk analysis failed (non-fatal)")
        risk = RiskAnalysis(computed_at=utc_now())

    return EngineResult(
        graph=graph,
        root_causes=root_causes,
        registry=registry,
        clusters=clusters,
        readiness=readiness,
        risk=risk,
        target=window.target,
    )


def _graph_stage(window: IngestionWindow) -> tuple[KnowledgeGraph, list[RootCause]]:
    try:
        graph = build_knowledge_graph(window)
        return graph, walk_root_causes(graph)
    except Exception:
        log.exception("Graph stage failed (non-fatal)")
        return KnowledgeGraph(), []


def _registry_stage(window: IngestionWindow) -> tuple[DefectRegistry, ClusterReport]:
    try:
        events = collect_defect_events(window)
        registry = build_registry(events)
        clusters = cluster_shared_components(
            events_from_defects(events) + events_from_scans(window.scans)
        )
        return registry, clusters
    except Exception:
        log.exception("Registry stage failed (non-fatal)")
        return DefectRegistry(built_at=utc_now()), ClusterReport()
