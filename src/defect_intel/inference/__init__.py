"""Root-cause inference: graph backward walk and cross-page frequency clustering."""

from defect_intel.inference.clustering import (
    DefectEvent,
    cluster_shared_components,
    events_from_defects,
    events_from_scans,
)
from defect_intel.inference.models import ClusterReport, IsolatedDefect, RootCause, SharedComponentCause
from defect_intel.inference.root_cause import walk_root_causes

__all__ = [
    "cluster_shared_components",
    "ClusterReport",
    "DefectEvent",
    "events_from_defects",
    "events_from_scans",
    "IsolatedDefect",
    "RootCause",
    "SharedComponentCause",
    "walk_root_causes",
]
