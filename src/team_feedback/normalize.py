"""
Text and identity normalization.

Two flavours are used throughout the package:
- ``normalize_name``: trim + lowercase, the canonical student identity
- ``normalize_text``: additionally collapses whitespace runs, used when
  matching survey answers against vocabulary phrases
"""

from __future__ import annotations

import re
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: Optional[str]) -> str:
    """
    Canonicalize a student name for grouping and matching.

    Idempotent: ``normalize_name(normalize_name(s)) == normalize_name(s)``.
    ``None`` and empty strings map to ``""``.
    """
    if not name:
        return ""
    return name.strip().lower()


def normalize_text(text: Optional[str]) -> str:
    """Lowercase, collapse internal whitespace to single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()
