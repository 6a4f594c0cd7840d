"""Pydantic models for the defect registry."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from defect_intel.utils import round_half_up

Severity = Literal["critical", "high", "medium", "low"]
Source = Literal["Functional", "Network", "DOM"]


class DefectRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str                  # source-scoped, deterministic per underlying event
    source: Source
    title: str
    description: str = ""
    page: str = ""
    component: str = ""
    category: str = ""
    impact: int
    business_value: int = Field(alias="businessValue")
    reproducibility: int
    fix_effort: int = Field(alias="fixEffort")
    score: int
    severity: Severity
    suggestions: list[str] = Field(default_factory=list)
    selector: str | None = None          # css path or endpoint, for clustering
    detected_at: str | None = Field(None, alias="detectedAt")


class DefectRegistry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    defects: list[DefectRecord] = Field(default_factory=list)
    built_at: str = Field("", alias="builtAt")

    @computed_field
    @property
    def total(self) -> int:
        return len(self.defects)

    @computed_field(alias="bySeverity")
    @property
    def by_severity(self) -> dict[str, int]:
        counts = {"critical": 0, "high": 0, "medium": 0, "low": 0}
        for d in self.defects:
            counts[d.severity] += 1
        return counts

    @computed_field(alias="bySource")
    @property
    def by_source(self) -> dict[str, int]:
        counts = {"Functional": 0, "Network": 0, "DOM": 0}
        for d in self.defects:
            counts[d.source] += 1
        return counts

    @computed_field(alias="avgScore")
    @property
    def avg_score(self) -> int:
        if not self.defects:
            return 0
        return round_half_up(sum(d.score for d in self.defects) / len(self.defects))

    @computed_field(alias="topDefect")
    @property
    def top_defect(self) -> DefectRecord | None:
        """Highest score; the earliest defect wins a tie."""
        top: DefectRecord | None = None
        for d in self.defects:
            if top is None or d.score > top.score:
                top = d
        return top
