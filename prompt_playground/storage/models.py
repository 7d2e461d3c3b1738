"""
Data models for storage layer.

Defines the records owned by the history and usage stores.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Tuple


@dataclass(frozen=True)
class HistoryEntry:
    """A saved prompt and the response it produced.

    Only the tags ever change; tag updates produce a new entry.
    """
    id: str
    prompt: str
    response: str
    model: str
    temperature: float
    created_at: datetime
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def with_tag(self, tag: str) -> "HistoryEntry":
        """Return a copy carrying the tag (no duplicates)."""
        if tag in self.tags:
            return self
        return replace(self, tags=self.tags + (tag,))

    def without_tag(self, tag: str) -> "HistoryEntry":
        """Return a copy with the tag removed."""
        return replace(self, tags=tuple(t for t in self.tags if t != tag))


@dataclass(frozen=True)
class UsageRecord:
    """Immutable record of the usage of one generation request.

    Append-only entries in the usage ledger.
    """
    date: str  # ISO date, YYYY-MM-DD
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost: float
