"""
Canonical records flowing through the archive pipeline.

All records are immutable value objects owned by a single run.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Item:
    """One normalized syndication entry."""

    title: str
    link: str
    published_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class SourceRecord:
    """One successfully fetched source feed."""

    title: str
    source_url: str
    items: tuple[Item, ...] = ()

    def with_items(self, items) -> "SourceRecord":
        """Return a copy of this record holding ``items``."""
        return replace(self, items=tuple(items))


@dataclass(frozen=True)
class ArchivedSource:
    """A source record paired with its archive identifier."""

    record: SourceRecord
    identifier: str

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def source_url(self) -> str:
        return self.record.source_url


@dataclass(frozen=True)
class AggregationResult:
    """Master items plus independently capped source records."""

    master_items: tuple[Item, ...] = ()
    sources: tuple[SourceRecord, ...] = field(default_factory=tuple)

    @property
    def total_source_items(self) -> int:
        return sum(len(source.items) for source in self.sources)
