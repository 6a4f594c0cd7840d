"""Severity & defect scoring engine.

Usage:
    from defect_intel.scoring import build_registry, collect_defect_events

    registry = build_registry(collect_defect_events(window))
"""

from defect_intel.scoring.formula import ScoringInputs, classify_score, compute_score
from defect_intel.scoring.models import DefectRecord, DefectRegistry
from defect_intel.scoring.registry import build_registry, collect_defect_events

__all__ = [
    "build_registry",
    "classify_score",
    "collect_defect_events",
    "compute_score",
    "DefectRecord",
    "DefectRegistry",
    "ScoringInputs",
]
