"""Text normalization helpers shared by the ingestion pipeline.

Every extractor funnels its output through :func:`collapse_whitespace`
so that the chunker sees one canonical form regardless of file format:
runs of spaces, tabs, newlines and other Unicode whitespace become a
single space and the ends are trimmed.
"""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"(\d+)")


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space and trim the result."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def natural_sort_key(value: str) -> list[int | str]:
    """Sort key that orders embedded numbers numerically.

    ``slide2.xml`` sorts before ``slide10.xml``, which a plain string
    sort gets wrong.
    """
    parts = _DIGITS_RE.split(value)
    key: list[int | str] = []
    for part in parts:
        if part.isdigit():
            key.append(int(part))
        else:
            key.append(part.lower())
    return key


def estimate_tokens(text: str) -> int:
    """Cheap token estimate: one token per four characters, rounded up."""
    return -(-len(text) // 4)
