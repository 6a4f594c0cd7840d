"""Ingestion & normalization of collaborator record streams.

Provides:
    build_window(history, caps, target_url) -> IngestionWindow
"""

from defect_intel.ingest.window import IngestionWindow, RecordHistory, build_window

__all__ = ["build_window", "IngestionWindow", "RecordHistory"]
