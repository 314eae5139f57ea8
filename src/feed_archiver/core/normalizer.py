"""
Normalizer mapping parsed feeds into canonical records.

Works on feedparser results, and on any mapping with the same ``feed`` /
``entries`` shape.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from feed_archiver.core.models import Item, SourceRecord

NO_TITLE = "No title"

# Characters outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def clean_text(value: Optional[str]) -> Optional[str]:
    """Drop characters that cannot appear in an XML document."""
    if value is None:
        return None
    return _INVALID_XML_CHARS.sub("", value)


def _to_utc(value: Any) -> Optional[datetime]:
    """Convert a feedparser date (UTC ``struct_time``) or datetime to aware UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (time.struct_time, tuple)):
        return datetime(*value[:6], tzinfo=timezone.utc)
    return None


def _first_link(entry: Mapping) -> str:
    links = entry.get("links") or []
    if not links:
        return ""
    first = links[0]
    if isinstance(first, Mapping):
        return first.get("href") or ""
    return str(first)


def normalize_entry(entry: Mapping, fetch_time: datetime) -> Item:
    """Map one parsed entry to an Item.

    Args:
        entry: Parsed entry (feedparser entry or plain dict)
        fetch_time: Time the source was fetched, used when the entry has no date

    Returns:
        Item with fallbacks applied
    """
    published_at = (
        _to_utc(entry.get("published_parsed"))
        or _to_utc(entry.get("updated_parsed"))
        or _to_utc(fetch_time)
    )

    title = entry.get("title")
    return Item(
        title=clean_text(title) if title is not None else NO_TITLE,
        link=clean_text(_first_link(entry)),
        description=clean_text(entry.get("summary")),
        published_at=published_at,
    )


def normalize(raw_feed: Mapping, source_url: str, fetch_time: datetime) -> SourceRecord:
    """Map a parsed feed to a SourceRecord.

    Args:
        raw_feed: Parsed feed with ``feed`` metadata and ``entries``
        source_url: Address the feed was fetched from
        fetch_time: Fetch timestamp used as the date fallback

    Returns:
        SourceRecord with items in parser order
    """
    feed_info = raw_feed.get("feed") or {}
    entries = raw_feed.get("entries") or []

    title = feed_info.get("title")
    return SourceRecord(
        title=clean_text(title) if title is not None else source_url,
        source_url=source_url,
        items=tuple(normalize_entry(entry, fetch_time) for entry in entries),
    )
