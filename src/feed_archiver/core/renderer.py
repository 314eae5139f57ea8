"""
Renderer producing RSS 2.0 feeds and the OPML source index.

Documents are built as ElementTree elements and serialized with ``to_bytes``.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, Optional, Sequence

from feed_archiver.config import ArchiveConfig
from feed_archiver.core.models import ArchivedSource, Item

MASTER_TITLE = "Master RSS Feed"
MASTER_DESCRIPTION = "Aggregated RSS feed"
INDEX_TITLE = "Archived Feeds"


def site_url(repo_identifier: str) -> str:
    """Base URL of the published site for a repository identifier.

    ``owner`` maps to ``https://owner.github.io`` and ``owner/name`` to
    ``https://owner.github.io/name``.
    """
    owner, _, name = repo_identifier.strip("/").partition("/")
    base = f"https://{owner}.github.io"
    return f"{base}/{name}" if name else base


def format_rfc2822(value: datetime) -> str:
    """Format a datetime as an RSS date, e.g. ``Mon, 01 Jan 2024 00:00:00 +0000``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value)


def to_bytes(document: ET.Element) -> bytes:
    """Serialize a document as UTF-8 XML with a declaration."""
    ET.indent(document)
    return ET.tostring(document, encoding="utf-8", xml_declaration=True) + b"\n"


class FeedRenderer:
    """Builds the master feed, per-source archives and the OPML index."""

    def __init__(self, config: Optional[ArchiveConfig] = None):
        """Initialize renderer.

        Args:
            config: Archive configuration providing the URL layout
        """
        config = config or ArchiveConfig()

        self.repo_identifier = config.repo_identifier
        self.archive_path = config.archive_path
        self.master_filename = config.master_filename
        self.extension = config.extension

    @property
    def archive_base_url(self) -> str:
        base = site_url(self.repo_identifier)
        return f"{base}/{self.archive_path}" if self.archive_path else base

    def master_url(self) -> str:
        return f"{self.archive_base_url}/{self.master_filename}"

    def archive_url(self, identifier: str) -> str:
        return f"{self.archive_base_url}/{identifier}{self.extension}"

    def render_master(self, items: Sequence[Item]) -> ET.Element:
        """Render the aggregated master feed."""
        return self._channel(
            title=MASTER_TITLE,
            link=self.master_url(),
            description=MASTER_DESCRIPTION,
            items=items,
        )

    def render_source(self, archived: ArchivedSource) -> ET.Element:
        """Render the archive feed of one source."""
        return self._channel(
            title=archived.title,
            link=self.archive_url(archived.identifier),
            description=f"Archived feed from {archived.source_url}",
            items=archived.record.items,
        )

    def render_index(
        self,
        archived_sources: Iterable[ArchivedSource],
        now: Optional[datetime] = None,
    ) -> ET.Element:
        """Render the OPML index listing every archived source.

        Args:
            archived_sources: Sources with their identifiers
            now: Timestamp for dateCreated/dateModified (defaults to current UTC time)

        Returns:
            ``opml`` root element
        """
        stamp = format_rfc2822(now or datetime.now(timezone.utc))

        opml = ET.Element("opml", version="2.0")
        head = ET.SubElement(opml, "head")
        ET.SubElement(head, "title").text = INDEX_TITLE
        ET.SubElement(head, "dateCreated").text = stamp
        ET.SubElement(head, "dateModified").text = stamp

        body = ET.SubElement(opml, "body")
        for archived in archived_sources:
            ET.SubElement(
                body,
                "outline",
                type="rss",
                text=archived.title,
                title=archived.title,
                xmlUrl=self.archive_url(archived.identifier),
                htmlUrl=archived.source_url,
            )

        return opml

    def _channel(
        self,
        title: str,
        link: str,
        description: str,
        items: Sequence[Item],
    ) -> ET.Element:
        rss = ET.Element("rss", version="2.0")
        channel = ET.SubElement(rss, "channel")
        ET.SubElement(channel, "title").text = title
        ET.SubElement(channel, "link").text = link
        ET.SubElement(channel, "description").text = description

        for item in items:
            entry = ET.SubElement(channel, "item")
            ET.SubElement(entry, "title").text = item.title
            ET.SubElement(entry, "link").text = item.link
            if item.description is not None:
                ET.SubElement(entry, "description").text = item.description
            ET.SubElement(entry, "pubDate").text = format_rfc2822(item.published_at)

        return rss


def create_renderer(config: Optional[ArchiveConfig] = None) -> FeedRenderer:
    """Create a configured FeedRenderer instance."""
    return FeedRenderer(config=config)
