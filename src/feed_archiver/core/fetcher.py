"""
Concurrent RSS/Atom feed fetcher.

Each source URL is fetched and parsed in its own task; failures are captured
per source and never cancel sibling tasks.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

import feedparser
import httpx

from feed_archiver.config import FetcherConfig
from feed_archiver.core.models import SourceRecord
from feed_archiver.core.normalizer import normalize
from feed_archiver.exceptions import FetchError
from feed_archiver.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FetchResult:
    """Result of fetching and parsing one source."""

    success: bool
    feed_url: str
    record: Optional[SourceRecord] = None
    error: Optional[FetchError] = None
    fetch_time_seconds: float = 0.0
    http_status: Optional[int] = None

    def __post_init__(self):
        """Validate fetch result."""
        if self.success and self.error:
            raise ValueError("Successful fetch cannot have an error")
        if self.success and self.record is None:
            raise ValueError("Successful fetch must carry a source record")
        if not self.success and not self.error:
            self.error = FetchError(self.feed_url, "Unknown error")

    @property
    def entries_count(self) -> int:
        return len(self.record.items) if self.record else 0


@dataclass
class FetchStats:
    """Statistics for one fetch run."""

    total_feeds: int = 0
    successful_fetches: int = 0
    failed_fetches: int = 0
    total_entries: int = 0
    total_time_seconds: float = 0.0
    errors_by_type: dict = field(default_factory=dict)

    def add_result(self, result: FetchResult) -> None:
        """Add a fetch result to statistics.

        Args:
            result: FetchResult to add
        """
        self.total_feeds += 1
        self.total_time_seconds += result.fetch_time_seconds

        if result.success:
            self.successful_fetches += 1
            self.total_entries += result.entries_count
        else:
            self.failed_fetches += 1
            error_type = result.error.kind if result.error else "unknown"
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_feeds == 0:
            return 0.0
        return self.successful_fetches / self.total_feeds


def successes(results: Iterable[FetchResult]) -> list[SourceRecord]:
    """Source records of the successful results, in result order."""
    return [result.record for result in results if result.success]


def failures(results: Iterable[FetchResult]) -> list[FetchError]:
    """Errors of the failed results, in result order."""
    return [result.error for result in results if not result.success]


class FeedFetcher:
    """Fan-out fetcher: one fetch+parse task per source URL."""

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize feed fetcher.

        Args:
            config: Fetcher configuration (defaults to a fresh FetcherConfig)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        config = config or FetcherConfig()

        self.timeout_seconds = config.timeout_seconds
        self.user_agent = config.user_agent
        self.follow_redirects = config.follow_redirects
        self.max_redirects = config.max_redirects
        self.max_workers = config.max_workers
        self.transport = transport

        self.stats = FetchStats()

    def _create_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout_seconds,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        )

    def _fetch_http(self, client: httpx.Client, url: str) -> httpx.Response:
        """Fetch URL with HTTP client.

        Raises:
            httpx.TimeoutException: On timeout
            httpx.HTTPStatusError: On HTTP error
            httpx.RequestError: On network error
        """
        response = client.get(url)
        response.raise_for_status()
        return response

    def _parse(self, url: str, content: bytes) -> feedparser.FeedParserDict:
        """Parse feed bytes, rejecting content that is not a feed."""
        parsed = feedparser.parse(content)
        if not parsed.get("version"):
            cause = parsed.get("bozo_exception")
            raise FetchError(url, f"Parse error: {cause or 'not a recognised feed'}")
        return parsed

    def fetch_feed(self, url: str, client: httpx.Client) -> FetchResult:
        """Fetch and normalize a single source.

        Args:
            url: Source URL
            client: Shared HTTP client

        Returns:
            FetchResult with a SourceRecord or a FetchError
        """
        start_time = time.time()
        http_status = None

        logger.debug(f"Fetching feed: {url}")

        try:
            response = self._fetch_http(client, url)
            http_status = response.status_code
            fetched_at = datetime.now(timezone.utc)

            parsed = self._parse(url, response.content)
            record = normalize(parsed, url, fetched_at)

            fetch_time = time.time() - start_time
            logger.info(
                f"Fetched {len(record.items)} entries from {record.title or url} "
                f"in {fetch_time:.2f}s"
            )

            return FetchResult(
                success=True,
                feed_url=url,
                record=record,
                fetch_time_seconds=fetch_time,
                http_status=http_status,
            )

        except FetchError as e:
            error = e

        except httpx.TimeoutException as e:
            error = FetchError(url, f"Timeout: {e}")

        except httpx.HTTPStatusError as e:
            http_status = e.response.status_code
            error = FetchError(url, f"HTTP {http_status}: {e}")

        except httpx.RequestError as e:
            error = FetchError(url, f"Request error: {e}")

        except Exception as e:
            error = FetchError(url, f"Unexpected error: {type(e).__name__}: {e}")

        logger.warning(f"Failed to fetch {url}: {error.reason}")

        return FetchResult(
            success=False,
            feed_url=url,
            error=error,
            fetch_time_seconds=time.time() - start_time,
            http_status=http_status,
        )

    def fetch_all(self, urls: Iterable[str]) -> list[FetchResult]:
        """Fetch every URL concurrently and wait for all of them.

        Results are returned in completion order. A failing source only
        produces a failed FetchResult; the others are unaffected.
        ``self.stats`` is reset and then covers this call only.

        Args:
            urls: Source URLs

        Returns:
            One FetchResult per URL
        """
        urls = list(urls)
        self.stats = FetchStats()
        if not urls:
            return []

        results: list[FetchResult] = []
        workers = min(self.max_workers, len(urls))

        with self._create_client() as client:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as executor:
                futures = {executor.submit(self.fetch_feed, url, client): url for url in urls}

                for future in as_completed(futures):
                    url = futures[future]
                    try:
                        result = future.result()
                    except Exception as e:
                        logger.exception(f"Unexpected error fetching {url}: {e}")
                        result = FetchResult(
                            success=False,
                            feed_url=url,
                            error=FetchError(url, f"Unexpected error: {type(e).__name__}: {e}"),
                        )
                    self.stats.add_result(result)
                    results.append(result)

        failed = len(failures(results))
        logger.info(f"Fetched {len(urls) - failed}/{len(urls)} sources ({failed} failed)")

        return results


def create_fetcher(
    config: Optional[FetcherConfig] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> FeedFetcher:
    """Create a configured FeedFetcher instance.

    Args:
        config: Optional fetcher configuration
        transport: Optional httpx transport

    Returns:
        Configured FeedFetcher instance
    """
    return FeedFetcher(config=config, transport=transport)
