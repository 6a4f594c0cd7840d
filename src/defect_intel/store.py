"""Read-only access to the persisted collaborator record store."""

from __future__ import annotations

import logging
from pathlib import Path

from defect_intel.config import EngineSettings
from defect_intel.ingest import RecordHistory
from defect_intel.utils import read_json

log = logging.getLogger(__name__)


def load_history(data_dir: Path, settings: EngineSettings | None = None) -> RecordHistory:
    """Load every collaborator store under ``data_dir``.

    A missing, unreadable or wrongly shaped file is an empty source.
    """
    files = (settings or EngineSettings()).files

    history = RecordHistory(
        functional=_expect(read_json(data_dir / files.functional), list, files.functional),
        network=_expect(read_json(data_dir / files.network), dict, files.network),
        dom=_expect(read_json(data_dir / files.dom), dict, files.dom),
        dimensions=_expect(read_json(data_dir / files.dimensions), dict, files.dimensions),
        scans=_expect(read_json(data_dir / files.scans), list, files.scans),
        perf=_expect(read_json(data_dir / files.perf), dict, files.perf),
    )
    log.info(
        "Loaded history from %s: %d runs, %d network sessions, %d DOM sessions, %d dimensions",
        data_dir, len(history.functional), len(history.network),
        len(history.dom), len(history.dimensions),
    )
    return history


def _expect(data, kind: type, name: str):
    if data is None:
        return kind()
    if not isinstance(data, kind):
        log.warning("%s: expected a JSON %s, treating as empty", name, kind.__name__)
        return kind()
    return data
