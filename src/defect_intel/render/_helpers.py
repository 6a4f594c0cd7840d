"""Shared helpers for render backends."""

from __future__ import annotations

from defect_intel.engine import EngineResult

# Severity rank for sorting: critical first.
_SEV_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def sev_order(severity: str) -> int:
    """Return numeric rank for a severity string (lower = more severe)."""
    return _SEV_ORDER.get(severity, 4)


def top_risks(result: EngineResult, max_risks: int = 5) -> list[str]:
    """The most actionable one-line risk descriptions, most severe first."""
    risks: list[tuple[int, str]] = []

    for rc in result.root_causes:
        where = f" on {rc.page}" if rc.page else ""
        risks.append((sev_order(rc.severity), f"{rc.goal} blocked by '{rc.failure}'{where}"))

    for d in result.registry.defects:
        if d.severity in ("critical", "high"):
            risks.append((sev_order(d.severity), f"{d.title} ({d.source}, score {d.score})"))

    for c in result.clusters.shared:
        risks.append((1, f"{c.suspected_component} suspected: {c.signature} on {len(c.affected_pages)} pages"))

    risks.sort(key=lambda x: x[0])
    return [r[1] for r in risks[:max_risks]]


def cell(text: str | None, max_len: int = 80) -> str:
    """Escape and truncate text for a Markdown table cell."""
    if not text:
        return "-"
    text = text.replace("|", "\\|").replace("\n", " ")
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


# Unicode -> ASCII substitutions for PDF core fonts (latin-1 only).
_UNICODE_SUBS = str.maketrans({
    "—": "--",   # em dash
    "–": "-",    # en dash
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
    "→": "->",
    " ": " ",    # non-breaking space
})


def latin1(text: str) -> str:
    """Sanitize text for latin-1 PDF core fonts."""
    result = text.translate(_UNICODE_SUBS)
    return result.encode("latin-1", errors="replace").decode("latin-1")
