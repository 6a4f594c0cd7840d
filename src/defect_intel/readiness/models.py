"""Pydantic models for dimension scores and the readiness report."""

from __future__ import annotations

import math
from enum import Enum
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from defect_intel.utils import round_half_up

# The seven architectural dimensions, in report order
DIMENSIONS = (
    "security",
    "performance",
    "codeQuality",
    "testEngineering",
    "accessibility",
    "devOps",
    "reliability",
)


class SignalKind(str, Enum):
    HTTPS_MISSING = "https_missing"
    CSP_MISSING = "csp_missing"
    STRESS_TEST_FAILURE = "stress_test_failure"
    OTHER = "other"


# Message fragments collaborators have always emitted for the tagged findings
_KIND_MARKERS = (
    ("HTTPS", SignalKind.HTTPS_MISSING),
    ("Missing Content Security Policy", SignalKind.CSP_MISSING),
    ("stress test failure", SignalKind.STRESS_TEST_FAILURE),
)


def classify_signal(message: str) -> SignalKind:
    """Tag an untagged signal from its message text."""
    for marker, kind in _KIND_MARKERS:
        if marker in message:
            return kind
    return SignalKind.OTHER


class Signal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    severity: str = "INFO"
    message: str = Field("", validation_alias=AliasChoices("message", "msg"), serialization_alias="msg")
    impact: str = ""
    kind: SignalKind | None = None

    @model_validator(mode="after")
    def _tag_kind(self) -> Signal:
        if self.kind is None:
            self.kind = classify_signal(self.message)
        return self


class DimensionScore(BaseModel):
    score: int = Field(100, ge=0, le=100)
    signals: list[Signal] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value):
        # collaborators may report fractional or slightly out-of-range scores
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            return max(0, min(100, round_half_up(value)))
        return value

    @computed_field
    @property
    def maturity(self) -> str:
        if self.score < 60:
            return "EARLY_STAGE"
        if self.score < 85:
            return "GROWTH"
        return "ENTERPRISE"

    def has_signal(self, kind: SignalKind) -> bool:
        return any(s.kind == kind for s in self.signals)


RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
Readiness = Literal["READY", "NEEDS IMPROVEMENT", "HIGH RISK", "CRITICAL FAILURE"]


class ReadinessReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    overall_score: int = Field(alias="overallScore")
    risk_level: RiskLevel = Field(alias="riskLevel")
    readiness: Readiness
    overrides: list[str] = Field(default_factory=list)
    regression_prob: int = Field(alias="regressionProb", ge=0, le=99)
    scalability_forecast: Literal["HIGH", "MEDIUM", "LOW"] = Field(alias="scalabilityForecast")
    # Override-adjusted dimensions (the input mapping is never mutated)
    dimensions: dict[str, DimensionScore] = Field(default_factory=dict)
    # Informational only, never feeds the score
    critical_defects: int = Field(0, alias="criticalDefects")
