"""Pydantic models for root-cause inference output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RootCause(BaseModel):
    """A failure that impacts a goal, traced back to where it originated.

    ``action``, ``element`` and ``page`` are None when the chain is partial.
    """

    goal: str
    failure: str
    reason: str | None = None
    action: str | None = None
    element: str | None = None
    page: str | None = None
    severity: str = "medium"
    suggestions: list[str] = Field(default_factory=list)


class SharedComponentCause(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signature: str
    category: str = ""
    rule_id: str | None = Field(None, alias="ruleId")
    frequency: int                                   # occurrences across all pages
    affected_pages: list[str] = Field(default_factory=list, alias="affectedPages")
    confidence: float
    projected_score_recovery: int = Field(alias="projectedScoreRecovery")
    suspected_component: str = Field(alias="suspectedSharedComponent")


class IsolatedDefect(BaseModel):
    signature: str
    category: str = ""
    page: str
    frequency: int = 1


class ClusterReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shared: list[SharedComponentCause] = Field(default_factory=list)
    isolated: list[IsolatedDefect] = Field(default_factory=list)
