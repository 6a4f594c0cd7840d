"""Defect intelligence engine: knowledge graph, defect registry, readiness verdict."""

__version__ = "0.1.0"
