"""Bounded, validated, optionally page-filtered view over the stored history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from defect_intel.config import IngestionCaps
from defect_intel.ingest.models import (
    DomAnalysis,
    DomElement,
    FlowResult,
    FlowRun,
    FlowStep,
    NetworkCapture,
    NetworkRequest,
    PageScan,
    PerfEntry,
)
from defect_intel.utils import normalize_url

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass
class RecordHistory:
    """Raw collaborator records as persisted (decoded JSON, unvalidated)."""
    functional: list = field(default_factory=list)   # run envelopes, newest first
    network: dict = field(default_factory=dict)      # session -> capture
    dom: dict = field(default_factory=dict)          # session -> analysis
    dimensions: dict = field(default_factory=dict)   # dimension name -> score
    scans: list = field(default_factory=list)        # crawled pages
    perf: dict = field(default_factory=dict)         # session -> perf entry


@dataclass
class IngestionWindow:
    runs: list[FlowRun]
    network: list[NetworkCapture]
    dom: list[DomAnalysis]
    scans: list[PageScan]
    perf: list[PerfEntry]
    caps: IngestionCaps
    target: str | None = None

    @property
    def graph_runs(self) -> list[FlowRun]:
        return self.runs[: self.caps.graph_runs]

    @property
    def registry_runs(self) -> list[FlowRun]:
        return self.runs[: self.caps.registry_runs]

    @property
    def is_empty(self) -> bool:
        return not (self.runs or self.network or self.dom or self.scans)


def build_window(
    history: RecordHistory,
    caps: IngestionCaps | None = None,
    target_url: str | None = None,
) -> IngestionWindow:
    """Validate and bound the history, keeping only records for ``target_url``.

    Functional runs are stored newest first, so the first runs are kept.
    Network and DOM sessions are appended as they are captured, so the last
    sessions are kept. Malformed records are skipped.
    """
    caps = caps or IngestionCaps()
    target = normalize_url(target_url) if target_url else None

    def matches(url: str) -> bool:
        return target is None or normalize_url(url) == target

    run_cap = max(caps.graph_runs, caps.registry_runs)
    runs: list[FlowRun] = []
    for raw_run in _as_list(history.functional)[:run_cap]:
        if not isinstance(raw_run, dict):
            log.debug("Skipping non-object functional run: %r", raw_run)
            continue
        raw_results = [
            _with_valid_items(r, "steps", FlowStep, "flow step")
            for r in _as_list(raw_run.get("results"))
        ]
        results = _validate_each(FlowResult, raw_results, "flow result")
        runs.append(FlowRun(
            timestamp=raw_run.get("timestamp"),
            results=[r for r in results if matches(r.url)],
        ))

    network = _validate_each(NetworkCapture, [
        _with_valid_items(c, "requests", NetworkRequest, "network request")
        for c in _last_sessions(history.network, caps.sessions)
    ], "network capture")
    dom = _validate_each(DomAnalysis, [
        _with_valid_items(d, "elements", DomElement, "DOM element")
        for d in _last_sessions(history.dom, caps.sessions)
    ], "DOM analysis")
    scans = _validate_each(PageScan, _as_list(history.scans), "page scan")
    perf = _validate_each(PerfEntry, _last_sessions(history.perf, caps.sessions), "perf entry")

    window = IngestionWindow(
        runs=runs,
        network=[c for c in network if matches(c.url)],
        dom=[d for d in dom if matches(d.url)],
        scans=[s for s in scans if matches(s.url)],
        perf=[p for p in perf if matches(p.url)],
        caps=caps,
        target=target,
    )
    log.info(
        "Ingestion window: %d runs, %d network captures, %d DOM analyses%s",
        len(window.runs), len(window.network), len(window.dom),
        f" (page {target})" if target else "",
    )
    return window


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _last_sessions(value: Any, cap: int) -> list:
    if isinstance(value, dict):
        return list(value.values())[-cap:]
    if isinstance(value, list):
        return value[-cap:]
    return []


def _with_valid_items(raw: Any, key: str, model: type[M], label: str) -> Any:
    """Validate the nested records under ``key`` one by one, keeping the valid ones.

    A malformed request, element or step costs only itself, not its session.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get(key), list):
        return raw
    return {**raw, key: _validate_each(model, raw[key], label)}


def _validate_each(model: type[M], items: list, label: str) -> list[M]:
    out: list[M] = []
    for item in items:
        try:
            out.append(model.model_validate(item))
        except ValidationError:
            log.debug("Skipping malformed %s", label, exc_info=True)
    return out
