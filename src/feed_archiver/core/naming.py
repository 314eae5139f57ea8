"""
Deterministic archive identifiers for sources.

An identifier is a readable slug plus a CRC-32 of the source URL, so it stays
stable across runs and never depends on process state.
"""

import re
import zlib

MIN_SLUG_LENGTH = 3
FALLBACK_SLUG = "feed"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse non-alphanumeric runs to ``-``.

    Example:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def host_slug(source_url: str) -> str:
    """Slug of the URL's host, or ``feed`` when the URL has no scheme."""
    if "://" not in source_url:
        return FALLBACK_SLUG

    remainder = source_url.split("://", 1)[1]
    if remainder.startswith("www."):
        remainder = remainder[len("www."):]
    host = remainder.split("/", 1)[0]
    return slugify(host)


def url_hash(source_url: str) -> str:
    """CRC-32 of the URL as 8 lowercase hex digits."""
    return f"{zlib.crc32(source_url.encode('utf-8')) & 0xFFFFFFFF:08x}"


def resolve(source_url: str, title: str) -> str:
    """Derive the archive identifier for a source.

    Args:
        source_url: Exact source URL as configured
        title: Source display title

    Returns:
        ``{slug}-{hash}`` identifier, e.g. ``a-blog-1a2b3c4d``
    """
    slug = slugify(title or "")
    if len(slug) < MIN_SLUG_LENGTH:
        slug = host_slug(source_url)
    # Host slug is empty for URLs such as "file:///feed.xml"
    if not slug:
        slug = FALLBACK_SLUG
    return f"{slug}-{url_hash(source_url)}"
