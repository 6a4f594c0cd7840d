"""Readiness aggregator: dimension scores -> production-readiness verdict."""

from defect_intel.readiness.aggregator import calculate_readiness, parse_dimensions
from defect_intel.readiness.models import (
    DIMENSIONS,
    DimensionScore,
    ReadinessReport,
    Signal,
    SignalKind,
    classify_signal,
)

__all__ = [
    "calculate_readiness",
    "classify_signal",
    "DIMENSIONS",
    "DimensionScore",
    "parse_dimensions",
    "ReadinessReport",
    "Signal",
    "SignalKind",
]
