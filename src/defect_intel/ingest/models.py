"""Pydantic models for the collaborator record streams.

Field names follow the stored JSON (camelCase) through aliases; every field a
collaborator may omit has a default so partial records still validate.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Functional flows ────────────────────────────────────────────────────────

class FailureReason(_Record):
    title: str | None = None
    why: str | None = None
    category: str | None = None
    code: str | None = None
    suggestions: list[str] = Field(default_factory=list)


class FlowStep(_Record):
    label: str = ""
    action: str | None = None
    detail: str | None = None
    verdict: str = "pass"          # "pass" | "warn" | "fail"
    reason: FailureReason | None = None

    @property
    def failed(self) -> bool:
        return self.verdict == "fail"


class FlowResult(_Record):
    flow_id: str = Field("unknown", alias="flowId")
    name: str | None = None
    url: str = ""
    verdict: str = "pass"
    steps: list[FlowStep] = Field(default_factory=list)
    executed_at: str | None = Field(None, alias="executedAt")
    fail_count: int | None = Field(None, alias="failCount")

    @property
    def has_failing_step(self) -> bool:
        return any(s.failed for s in self.steps)

    @property
    def failures(self) -> int:
        if self.fail_count is not None:
            return self.fail_count
        return sum(1 for s in self.steps if s.failed)


class FlowRun(_Record):
    timestamp: str | None = None
    results: list[FlowResult] = Field(default_factory=list)


# ── Network captures ────────────────────────────────────────────────────────

class NetworkIssue(_Record):
    msg: str = "Network issue"
    severity: str = "warning"      # "error" | "warning" | ...


class NetworkRequest(_Record):
    method: str = "GET"
    url: str = ""
    short_url: str | None = Field(None, alias="shortUrl")
    status: int | None = None      # None / 0 = no response
    duration: float | None = None  # ms
    cluster: str | None = None     # traffic cluster: "Auth", "API", "CDN", ...
    issues: list[NetworkIssue] = Field(default_factory=list)


class NetworkCapture(_Record):
    url: str
    captured_at: str | None = Field(None, alias="capturedAt")
    requests: list[NetworkRequest] = Field(default_factory=list)


# ── DOM stability ───────────────────────────────────────────────────────────

class DomElement(_Record):
    tag: str = "element"
    css_path: str = Field("", alias="cssPath")
    stability_score: float = Field(100, alias="stabilityScore")
    is_dynamic: bool = Field(False, alias="isDynamic")
    recommended_selector: str | None = Field(None, alias="recommendedSelector")


class DomAnalysis(_Record):
    url: str
    analyzed_at: str | None = Field(None, alias="analyzedAt")
    elements: list[DomElement] = Field(default_factory=list)


# ── Optional supplementary inputs ───────────────────────────────────────────

class AccessibilityIssue(_Record):
    rule_id: str | None = Field(None, alias="ruleId")
    message: str = Field("", validation_alias=AliasChoices("message", "msg"))
    selector: str | None = None


class PageScan(_Record):
    """One crawled page with its accessibility-class issues."""

    url: str
    issues: list[AccessibilityIssue] = Field(default_factory=list)


class PerfEntry(_Record):
    url: str
    axe_summary: dict = Field(default_factory=dict, alias="axeSummary")

    @property
    def violations(self) -> int:
        return int(self.axe_summary.get("violations") or 0)
