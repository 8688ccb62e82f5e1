"""Models shared by unit scoring, domain analyzers and the report."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

PRIORITIES = ("critical", "high", "medium", "low")
_PRIORITY_RANK = {p: i for i, p in enumerate(PRIORITIES)}

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_PUNCT_RE = re.compile(r"[\s.!;:,]+$")


def normalize_message(message: str) -> str:
    """Lowercase, collapse whitespace, drop trailing punctuation."""
    text = _WHITESPACE_RE.sub(" ", message.strip().lower())
    return _TRAILING_PUNCT_RE.sub("", text)


@dataclass(frozen=True)
class Recommendation:
    category: str
    priority: str  # critical | high | medium | low
    message: str
    source: str  # analyzer that produced it

    def __post_init__(self) -> None:
        if self.priority not in _PRIORITY_RANK:
            raise ValueError(f"Unknown priority: {self.priority!r}")

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return (self.category, normalize_message(self.message))

    @property
    def sort_key(self) -> tuple[int, str, str, str]:
        return (_PRIORITY_RANK[self.priority], self.category, normalize_message(self.message), self.source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority,
            "message": self.message,
            "source": self.source,
        }


def dedupe_recommendations(recommendations: Iterable[Recommendation]) -> tuple[Recommendation, ...]:
    """Drop duplicates by (category, normalized message) and sort by priority.

    When duplicates differ in priority the most urgent one is kept.
    Idempotent: applying it to its own output returns the same tuple.
    """
    kept: dict[tuple[str, str], Recommendation] = {}
    for rec in sorted(recommendations, key=lambda r: r.sort_key):
        kept.setdefault(rec.dedupe_key, rec)
    return tuple(sorted(kept.values(), key=lambda r: r.sort_key))
