"""Severity formula and the source-specific scoring lookup tables.

    score = min(100, round((impact * business_value * reproducibility / max(fix_effort, 1)) * 4))
"""

from __future__ import annotations

from dataclasses import dataclass

from defect_intel.utils import round_half_up

# Severity bands, highest first: (lower bound, label)
SEVERITY_BANDS = ((75, "critical"), (45, "high"), (20, "medium"))

# ── Functional flows ────────────────────────────────────────────────────────

FLOW_BUSINESS_VALUE = {"login": 5, "addToCart": 5, "submitForm": 4, "search": 3}
DEFAULT_FLOW_BUSINESS_VALUE = 3

# Flow verdict -> (impact, reproducibility)
FLOW_VERDICT_FACTORS = {"fail": (5, 5), "warn": (3, 3), "pass": (1, 1)}
FLOW_FIX_EFFORT = 2

# ── Network ─────────────────────────────────────────────────────────────────

STATUS_IMPACT = {0: 5, 500: 5, 502: 5, 503: 5, 401: 4, 403: 4, 404: 3, 429: 3}
CLUSTER_BUSINESS_VALUE = {
    "Auth": 5, "API": 4, "GraphQL": 4, "WebSocket": 3, "CDN": 2,
    "Static": 1, "Media": 1, "Analytics": 1, "Other": 2,
}
DEFAULT_CLUSTER_BUSINESS_VALUE = 2
NETWORK_REPRODUCIBILITY = 4
NETWORK_FIX_EFFORT = 3

# ── DOM stability ───────────────────────────────────────────────────────────

FRAGILITY_THRESHOLD = 50     # below this an element is unstable
STABILITY_FLOOR = 20         # below this an unstable element is high impact
DOM_BUSINESS_VALUE = 3
DOM_REPRODUCIBILITY = 5
DOM_FIX_EFFORT = 1


@dataclass(frozen=True)
class ScoringInputs:
    impact: int
    business_value: int
    reproducibility: int
    fix_effort: int


def compute_score(inputs: ScoringInputs) -> int:
    raw = inputs.impact * inputs.business_value * inputs.reproducibility / max(inputs.fix_effort, 1)
    return min(100, round_half_up(raw * 4))


def classify_score(score: float) -> str:
    for bound, label in SEVERITY_BANDS:
        if score >= bound:
            return label
    return "low"


# ── Per-source input tables ─────────────────────────────────────────────────

def flow_inputs(flow_id: str, verdict: str = "fail") -> ScoringInputs:
    impact, repro = FLOW_VERDICT_FACTORS.get(verdict, (1, 1))
    return ScoringInputs(
        impact=impact,
        business_value=FLOW_BUSINESS_VALUE.get(flow_id, DEFAULT_FLOW_BUSINESS_VALUE),
        reproducibility=repro,
        fix_effort=FLOW_FIX_EFFORT,
    )


def flow_severity(flow_id: str, verdict: str = "fail") -> str:
    return classify_score(compute_score(flow_inputs(flow_id, verdict)))


def status_impact(status: int | None, issue_severity: str = "warning") -> int:
    """Impact (1-5) of a request outcome; no response counts as a server error."""
    status = status or 0
    if status in STATUS_IMPACT:
        return STATUS_IMPACT[status]
    is_error = issue_severity == "error"
    if status >= 500:
        return 5
    if status >= 400:
        return 4 if is_error else 3
    if status >= 300:
        return 2
    return 4 if is_error else 2


def network_inputs(status: int | None, cluster: str | None, issue_severity: str = "warning") -> ScoringInputs:
    return ScoringInputs(
        impact=status_impact(status, issue_severity),
        business_value=CLUSTER_BUSINESS_VALUE.get(cluster or "", DEFAULT_CLUSTER_BUSINESS_VALUE),
        reproducibility=NETWORK_REPRODUCIBILITY,
        fix_effort=NETWORK_FIX_EFFORT,
    )


def status_severity(status: int | None) -> str:
    """Severity band of an endpoint from its HTTP status alone."""
    if not status:
        return "critical"
    if status >= 500:
        return "critical"
    if status >= 400:
        return "high"
    if status >= 300:
        return "medium"
    return "low"


def dom_inputs(stability_score: float) -> ScoringInputs:
    return ScoringInputs(
        impact=4 if stability_score < STABILITY_FLOOR else 2,
        business_value=DOM_BUSINESS_VALUE,
        reproducibility=DOM_REPRODUCIBILITY,
        fix_effort=DOM_FIX_EFFORT,
    )


def is_unstable(stability_score: float) -> bool:
    return stability_score < FRAGILITY_THRESHOLD
