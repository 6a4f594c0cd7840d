"""Cross-page frequency clustering: recurring defect signatures point at shared components."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from defect_intel.ingest.models import PageScan
from defect_intel.inference.models import ClusterReport, IsolatedDefect, SharedComponentCause
from defect_intel.scoring.models import DefectRecord
from defect_intel.utils import normalize_url, round_half_up

log = logging.getLogger(__name__)

# A signature must recur on at least this many distinct pages to be a
# shared-component suspicion.
MIN_SHARED_PAGES = 2

FRAGMENT_LEN = 40


@dataclass(frozen=True)
class DefectEvent:
    page: str
    category: str
    rule_id: str | None = None
    selector: str | None = None
    message: str = ""

    @property
    def signature(self) -> str:
        if self.rule_id:
            return self.rule_id
        fragment = self.selector[-FRAGMENT_LEN:] if self.selector else self.message[:FRAGMENT_LEN]
        return f"{self.category}|{fragment}"


@dataclass
class _Cluster:
    category: str
    rule_id: str | None
    frequency: int = 0
    pages: dict[str, str] = field(default_factory=dict)    # canonical -> first raw URL
    selectors: set[str] = field(default_factory=set)


def events_from_defects(defects: Iterable[DefectRecord]) -> list[DefectEvent]:
    return [
        DefectEvent(page=d.page, category=d.category, selector=d.selector, message=d.title)
        for d in defects
    ]


def events_from_scans(scans: Iterable[PageScan]) -> list[DefectEvent]:
    events: list[DefectEvent] = []
    for scan in scans:
        for issue in scan.issues:
            if not issue.rule_id:
                continue
            events.append(DefectEvent(
                page=scan.url,
                category="Accessibility",
                rule_id=issue.rule_id,
                selector=issue.selector,
                message=issue.message,
            ))
    return events


def confidence_for(page_count: int) -> float:
    return min(0.98, round(0.7 + 0.05 * min(page_count, 5), 2))


def cluster_shared_components(events: Iterable[DefectEvent]) -> ClusterReport:
    """Group events by signature and split them into shared and isolated defects."""
    clusters: dict[str, _Cluster] = {}
    for event in events:
        cluster = clusters.get(event.signature)
        if cluster is None:
            cluster = clusters[event.signature] = _Cluster(category=event.category, rule_id=event.rule_id)
        cluster.frequency += 1
        cluster.pages.setdefault(normalize_url(event.page), event.page)
        if event.selector:
            cluster.selectors.add(event.selector)

    report = ClusterReport()
    for signature, cluster in clusters.items():
        if len(cluster.pages) >= MIN_SHARED_PAGES:
            report.shared.append(SharedComponentCause(
                signature=signature,
                category=cluster.category,
                rule_id=cluster.rule_id,
                frequency=cluster.frequency,
                affected_pages=list(cluster.pages.values()),
                confidence=confidence_for(len(cluster.pages)),
                projected_score_recovery=round_half_up(1.5 * cluster.frequency),
                suspected_component=(
                    "Global Layout Component" if len(cluster.selectors) == 1 else "Shared UI Pattern"
                ),
            ))
        else:
            report.isolated.append(IsolatedDefect(
                signature=signature,
                category=cluster.category,
                page=next(iter(cluster.pages.values()), ""),
                frequency=cluster.frequency,
            ))

    report.shared.sort(key=lambda c: c.frequency, reverse=True)
    log.info(
        "Clustering: %d signatures, %d shared-component suspicions",
        len(clusters), len(report.shared),
    )
    return report
