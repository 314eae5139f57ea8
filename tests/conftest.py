"""Shared fixtures for feed archiver tests."""

from datetime import datetime, timezone

import httpx
import pytest

from feed_archiver.core.models import Item, SourceRecord

URL_A = "http://a.example/feed"
URL_B = "http://b.example/feed"

RSS_A = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>A Blog</title>
    <link>http://a.example/</link>
    <description>Posts from A</description>
    <item>
      <title>First</title>
      <link>http://a.example/1</link>
      <description>One</description>
      <pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second</title>
      <link>http://a.example/2</link>
      <pubDate>Tue, 02 Jan 2024 00:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Third</title>
      <link>http://a.example/3</link>
      <pubDate>Wed, 03 Jan 2024 00:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

RSS_B = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title></title>
    <link>http://b.example/</link>
    <description>Posts from B</description>
    <item>
      <title>Fifth</title>
      <link>http://b.example/5</link>
      <pubDate>Fri, 05 Jan 2024 00:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_transport(routes: dict) -> httpx.MockTransport:
    """Build a transport serving ``routes`` (url -> bytes or status code).

    Unknown URLs fail with a connection error.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url not in routes:
            raise httpx.ConnectError(f"Cannot connect to {url}", request=request)
        route = routes[url]
        if isinstance(route, int):
            return httpx.Response(route, request=request)
        return httpx.Response(200, content=route, request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def source_a() -> SourceRecord:
    """Three items in feed order, oldest first."""
    return SourceRecord(
        title="A Blog",
        source_url=URL_A,
        items=(
            Item(title="First", link="http://a.example/1", published_at=utc(2024, 1, 1)),
            Item(title="Second", link="http://a.example/2", published_at=utc(2024, 1, 2)),
            Item(title="Third", link="http://a.example/3", published_at=utc(2024, 1, 3)),
        ),
    )


@pytest.fixture
def source_b() -> SourceRecord:
    return SourceRecord(
        title="",
        source_url=URL_B,
        items=(Item(title="Fifth", link="http://b.example/5", published_at=utc(2024, 1, 5)),),
    )

