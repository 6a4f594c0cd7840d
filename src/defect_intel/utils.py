"""Shared utilities for defect-intel."""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

log = logging.getLogger(__name__)

# Characters kept verbatim in node ids; everything else becomes "_"
_ID_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_/-]")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_url(url: str | None) -> str:
    """Canonical form of a page URL so the same page matches across sources.

    Lower-cases, drops the fragment (kept for client-side routes such as
    ``#/cart`` or ``#!/cart``), sorts query parameters and strips one
    trailing slash from non-root paths. Falls back to the lower-cased raw
    string when the URL cannot be parsed.
    """
    if not url:
        return ""
    raw = url.strip()
    try:
        parts = urlsplit(raw)
        query = urlencode(sorted(parse_qsl(parts.query.lower(), keep_blank_values=True)))
    except ValueError:
        log.debug("Unparseable URL, using raw form: %r", raw)
        return raw.lower()

    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    if not path and parts.netloc:
        path = "/"

    fragment = parts.fragment if parts.fragment.startswith(("/", "!")) else ""
    return urlunsplit((parts.scheme, parts.netloc, path, query, fragment)).lower()


def make_node_id(node_type: str, label: str) -> str:
    """Composite node key: ``<type>:<label with unsafe chars replaced>``."""
    return f"{node_type}:{_ID_UNSAFE_RE.sub('_', label or '')}"


def read_json(path: Path):
    """Read a JSON file, returning None when it is missing or unreadable."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        log.debug("Record store not found: %s", path)
    except (OSError, ValueError):
        log.warning("Record store unreadable, treating as empty: %s", path, exc_info=True)
    return None
