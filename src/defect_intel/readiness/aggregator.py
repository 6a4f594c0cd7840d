"""Combine the seven dimension scores into one production-readiness verdict.

Override rules run in a fixed order because they compound:

1. security reports missing HTTPS             -> overall score capped at 40
2. security reports missing CSP, and code
   quality is below 70                         -> security score capped at 50
3. reliability reports a stress-test failure  -> overall score capped at 60
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import ValidationError

from defect_intel.readiness.models import DIMENSIONS, DimensionScore, ReadinessReport, SignalKind
from defect_intel.scoring.models import DefectRegistry
from defect_intel.utils import round_half_up

log = logging.getLogger(__name__)

HTTPS_CAP = 40
CSP_SECURITY_CAP = 50
CSP_CODE_QUALITY_FLOOR = 70
STRESS_CAP = 60


def parse_dimensions(raw: Mapping | None) -> dict[str, DimensionScore]:
    """Validate a raw dimension vector; invalid or missing entries become neutral."""
    parsed: dict[str, DimensionScore] = {}
    for name in DIMENSIONS:
        value = (raw or {}).get(name)
        if value is None:
            continue
        try:
            parsed[name] = DimensionScore.model_validate(value)
        except ValidationError:
            log.warning("Invalid %s dimension, using neutral default", name, exc_info=True)
    return parsed


def risk_level_for(score: int) -> str:
    if score < 50:
        return "CRITICAL"
    if score < 75:
        return "HIGH"
    if score < 90:
        return "MEDIUM"
    return "LOW"


def readiness_for(score: int, risk_level: str) -> str:
    if risk_level == "CRITICAL":
        return "CRITICAL FAILURE"
    if risk_level == "HIGH":
        return "HIGH RISK"
    if score >= 90:
        return "READY"
    return "NEEDS IMPROVEMENT"


def calculate_readiness(
    dimensions: Mapping[str, DimensionScore] | None,
    registry: DefectRegistry | None = None,
) -> ReadinessReport:
    """Compute overall score, overrides, risk, readiness and regression probability together."""
    dims = {
        name: (dimensions or {}).get(name, DimensionScore()).model_copy(deep=True)
        for name in DIMENSIONS
    }
    overall = round_half_up(sum(d.score for d in dims.values()) / len(dims))
    overrides: list[str] = []

    security = dims["security"]
    code_quality = dims["codeQuality"]
    reliability = dims["reliability"]

    if security.has_signal(SignalKind.HTTPS_MISSING) and overall > HTTPS_CAP:
        overall = HTTPS_CAP
        overrides.append(f"Overall score capped at {HTTPS_CAP} due to lack of HTTPS.")

    if (security.has_signal(SignalKind.CSP_MISSING)
            and code_quality.score < CSP_CODE_QUALITY_FLOOR
            and security.score > CSP_SECURITY_CAP):
        security.score = CSP_SECURITY_CAP
        overrides.append(
            f"Security score capped at {CSP_SECURITY_CAP} due to missing CSP and high code complexity."
        )

    if reliability.has_signal(SignalKind.STRESS_TEST_FAILURE) and overall > STRESS_CAP:
        overall = STRESS_CAP
        overrides.append("Readiness lowered to Growth stage due to reliability stress failures.")

    risk_level = risk_level_for(overall)
    bonus = 30 if risk_level == "CRITICAL" else 0
    regression_prob = min(99, round_half_up((100 - overall) * 1.2 + bonus))

    if overall > 85:
        forecast = "HIGH"
    elif overall > 60:
        forecast = "MEDIUM"
    else:
        forecast = "LOW"

    report = ReadinessReport(
        overall_score=overall,
        risk_level=risk_level,
        readiness=readiness_for(overall, risk_level),
        overrides=overrides,
        regression_prob=regression_prob,
        scalability_forecast=forecast,
        dimensions=dims,
        critical_defects=registry.by_severity["critical"] if registry else 0,
    )
    log.info(
        "Readiness: score %d, risk %s, %s (%d overrides)",
        report.overall_score, report.risk_level, report.readiness, len(overrides),
    )
    return report
