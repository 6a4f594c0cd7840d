"""Predictive per-page risk analysis.

Each page seen in the window gets a failure probability (0-100) from five
factors normalized to 0-10:

    probability = (defects*0.35 + fragile*0.20 + slow_apis*0.20
                   + complex_flows*0.15 + a11y_debt*0.10) * 10
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field

from defect_intel.ingest import IngestionWindow
from defect_intel.utils import normalize_url, round_half_up, utc_now

log = logging.getLogger(__name__)

WEIGHTS = {
    "Past Defects": 0.35,
    "Fragile Selectors": 0.20,
    "Slow / Failed APIs": 0.20,
    "Complex Flows": 0.15,
    "Accessibility Debt": 0.10,
}

FRAGILE_STABILITY = 40
SLOW_REQUEST_MS = 3000


class RiskFactor(BaseModel):
    name: str
    score: float
    weight: float
    contribution: float


class PageRisk(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    label: str
    probability: int
    risk_level: str = Field(alias="riskLevel")
    top_factor: str = Field(alias="topFactor")
    factors: list[RiskFactor] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)


class Recommendation(BaseModel):
    priority: str
    title: str
    detail: str
    action: str


class RiskAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pages: list[PageRisk] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)
    weights: dict[str, float] = Field(default_factory=lambda: dict(WEIGHTS))
    computed_at: str = Field("", alias="computedAt")


@dataclass
class _PageCounts:
    url: str
    defects: int = 0
    fragile: int = 0
    slow_apis: int = 0
    total_apis: int = 0
    flow_fails: int = 0
    flows: int = 0
    a11y: int = 0
    sources: list[str] = field(default_factory=list)

    def saw(self, source: str) -> None:
        if source not in self.sources:
            self.sources.append(source)


def _clamp(value: float, lo: float = 0, hi: float = 10) -> float:
    return max(lo, min(hi, value))


def _collect(window: IngestionWindow) -> dict[str, _PageCounts]:
    pages: dict[str, _PageCounts] = {}

    def page(url: str) -> _PageCounts:
        key = normalize_url(url)
        if key not in pages:
            pages[key] = _PageCounts(url=url)
        return pages[key]

    for run in window.registry_runs:
        for flow in run.results:
            p = page(flow.url)
            p.flows += 1
            p.flow_fails += flow.failures
            p.defects += flow.failures
            p.saw("functional")

    for result in window.dom:
        p = page(result.url)
        p.fragile += sum(1 for el in result.elements if el.stability_score < FRAGILE_STABILITY)
        p.saw("dom")

    for capture in window.network:
        p = page(capture.url)
        p.total_apis += len(capture.requests)
        p.slow_apis += sum(
            1 for r in capture.requests
            if (r.duration or 0) > SLOW_REQUEST_MS or (r.status or 0) >= 500
        )
        p.saw("network")

    for entry in window.perf:
        p = page(entry.url)
        p.a11y += entry.violations
        p.saw("perf")

    return pages


def _level(probability: int) -> str:
    if probability >= 75:
        return "critical"
    if probability >= 50:
        return "high"
    if probability >= 25:
        return "medium"
    return "low"


def _page_label(url: str) -> str:
    try:
        return urlsplit(url).path or "/"
    except ValueError:
        return url


def score_page(counts: _PageCounts) -> PageRisk:
    scores = {
        "Past Defects": _clamp(counts.defects * 2),
        "Fragile Selectors": _clamp(counts.fragile * 0.5),
        "Slow / Failed APIs": _clamp(counts.slow_apis / counts.total_apis * 10) if counts.total_apis else 0,
        # no flows observed counts as moderate complexity
        "Complex Flows": _clamp(counts.flow_fails / counts.flows * 10) if counts.flows else 3,
        "Accessibility Debt": _clamp(counts.a11y * 0.2),
    }
    factors = [
        RiskFactor(
            name=name,
            score=round(score, 1),
            weight=WEIGHTS[name],
            contribution=round(score * WEIGHTS[name], 2),
        )
        for name, score in scores.items()
    ]
    raw = sum(scores[name] * WEIGHTS[name] for name in scores)
    probability = min(100, round_half_up(raw * 10))
    factors.sort(key=lambda f: f.contribution, reverse=True)

    return PageRisk(
        url=counts.url,
        label=_page_label(counts.url),
        probability=probability,
        risk_level=_level(probability),
        top_factor=factors[0].name,
        factors=factors,
        sources=counts.sources,
        counts={
            "defects": counts.defects,
            "fragile": counts.fragile,
            "slowApis": counts.slow_apis,
            "totalApis": counts.total_apis,
            "a11y": counts.a11y,
            "flows": counts.flows,
            "flowFails": counts.flow_fails,
        },
    )


def recommend(pages: list[PageRisk]) -> list[Recommendation]:
    recs: list[Recommendation] = []

    critical = [p for p in pages if p.risk_level == "critical"]
    if critical:
        recs.append(Recommendation(
            priority="P0",
            title=f"{len(critical)} Critical Pages Need Immediate Attention",
            detail="Pages: " + ", ".join(p.label for p in critical),
            action="Run full functional + accessibility audit on these pages first.",
        ))

    fragile = [p for p in pages if p.counts["fragile"] > 5]
    if fragile:
        total = sum(p.counts["fragile"] for p in fragile)
        recs.append(Recommendation(
            priority="P1",
            title="High Selector Fragility Detected",
            detail=f"{total} unstable selectors across {len(fragile)} pages",
            action="Add data-testid attributes to interactive elements. Migrate away from dynamic IDs.",
        ))

    slow = [p for p in pages if p.counts["slowApis"] > 3]
    if slow:
        total = sum(p.counts["slowApis"] for p in slow)
        recs.append(Recommendation(
            priority="P1",
            title="Slow API Endpoints Increasing Test Flakiness",
            detail=f"{total} slow/failed API calls detected",
            action="Add retry logic, check for missing caching, investigate server-side timeouts.",
        ))

    return recs


def analyze_page_risk(window: IngestionWindow) -> RiskAnalysis:
    pages = [score_page(c) for c in _collect(window).values()]
    pages.sort(key=lambda p: p.probability, reverse=True)

    stats = {"total": len(pages), "critical": 0, "high": 0, "medium": 0, "low": 0, "avgRisk": 0}
    for p in pages:
        stats[p.risk_level] += 1
    if pages:
        stats["avgRisk"] = round_half_up(sum(p.probability for p in pages) / len(pages))

    log.info("Page risk: %d pages, %d critical", len(pages), stats["critical"])
    return RiskAnalysis(
        pages=pages,
        recommendations=recommend(pages),
        stats=stats,
        computed_at=utc_now(),
    )
