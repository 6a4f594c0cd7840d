"""Engine settings: record-store file names and ingestion caps."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

log = logging.getLogger(__name__)

# Looked up inside the data directory when no explicit config file is given
DEFAULT_CONFIG_NAME = "defect_intel.yaml"


class StoreFiles(BaseModel):
    model_config = ConfigDict(extra="forbid")

    functional: str = "functional_results.json"
    network: str = "network_results.json"
    dom: str = "dom_results.json"
    dimensions: str = "dimensions.json"
    scans: str = "scan_results.json"
    perf: str = "perf_results.json"


class IngestionCaps(BaseModel):
    """Hard upper bounds on how much history one request may ingest."""

    model_config = ConfigDict(extra="forbid")

    graph_runs: PositiveInt = 10          # functional runs feeding the graph
    registry_runs: PositiveInt = 5        # functional runs feeding the registry
    sessions: PositiveInt = 10            # network / DOM sessions per source
    endpoints_per_page: PositiveInt = 30
    unstable_elements_per_page: PositiveInt = 20


class EngineSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    files: StoreFiles = Field(default_factory=StoreFiles)
    caps: IngestionCaps = Field(default_factory=IngestionCaps)


def load_settings(config_path: Path | None = None, data_dir: Path | None = None) -> EngineSettings:
    """Load settings from YAML.

    An explicit ``config_path`` must exist. Otherwise ``defect_intel.yaml``
    in ``data_dir`` is used when present, and defaults apply when it is not.
    """
    if config_path is None and data_dir is not None:
        candidate = data_dir / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            config_path = candidate
    if config_path is None:
        return EngineSettings()

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path}: expected a mapping at the top level")
    settings = EngineSettings.model_validate(raw)
    log.info("Loaded settings from %s", config_path)
    return settings
