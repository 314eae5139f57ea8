"""
Archive pipeline: fetch, aggregate, write and reconcile in one run.

Fetching fans out across worker threads and joins before anything else
happens; writing and reconciliation run sequentially on the calling thread.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import httpx

from feed_archiver.config import Config
from feed_archiver.core.aggregator import build_result
from feed_archiver.core.fetcher import FeedFetcher, FetchResult, failures, successes
from feed_archiver.core.models import ArchivedSource
from feed_archiver.core.naming import resolve
from feed_archiver.core.reconciler import RemovalResult, reconcile
from feed_archiver.core.renderer import FeedRenderer, to_bytes
from feed_archiver.exceptions import FetchError, WriteError
from feed_archiver.logger import get_logger
from feed_archiver.sources import load_source_urls

logger = get_logger(__name__)


@dataclass
class RunReport:
    """Summary of one archive run."""

    sources_total: int = 0
    sources_used: int = 0
    items_aggregated: int = 0
    files_written: list[str] = field(default_factory=list)
    write_errors: list[WriteError] = field(default_factory=list)
    fetch_errors: list[FetchError] = field(default_factory=list)
    removals: list[RemovalResult] = field(default_factory=list)

    @property
    def sources_failed(self) -> int:
        return len(self.fetch_errors)

    @property
    def files_removed(self) -> list[str]:
        return [removal.filename for removal in self.removals if removal.removed]


class ArchivePipeline:
    """Runs one aggregation pass over the configured sources."""

    def __init__(
        self,
        config: Optional[Config] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize pipeline.

        Args:
            config: Application configuration
            transport: Optional httpx transport passed to the fetcher
        """
        self.config = config or Config()
        self.archive_config = self.config.archive
        self.output_dir = Path(self.archive_config.output_dir)

        self.fetcher = FeedFetcher(config=self.config.fetcher, transport=transport)
        self.renderer = FeedRenderer(config=self.archive_config)

    def run(self, urls: Optional[Sequence[str]] = None) -> RunReport:
        """Execute the pipeline.

        Args:
            urls: Source URLs; read from the configured source list when omitted

        Returns:
            RunReport

        Raises:
            ConfigError: If the source list cannot be loaded
            WriteError: If the master feed or index cannot be written
        """
        if urls is None:
            urls = load_source_urls(self.archive_config.feeds_file)
        urls = list(urls)

        report = RunReport(sources_total=len(urls))
        if not urls:
            logger.warning("No source URLs configured, nothing to do")
            return report

        results = self.fetcher.fetch_all(urls)
        report.fetch_errors = failures(results)
        if report.fetch_errors:
            logger.warning(
                f"Skipping {len(report.fetch_errors)} failed sources: "
                + ", ".join(error.url for error in report.fetch_errors)
            )

        records = successes(results)
        report.sources_used = len(records)

        aggregation = build_result(records, self.archive_config.max_items)
        report.items_aggregated = len(aggregation.master_items)

        archived = [
            ArchivedSource(record=record, identifier=resolve(record.source_url, record.title))
            for record in aggregation.sources
        ]

        self._prepare_output_dir()

        master_path = self.output_dir / self.archive_config.master_filename
        self._write(master_path, to_bytes(self.renderer.render_master(aggregation.master_items)))
        report.files_written.append(master_path.name)
        logger.info(f"Master feed generated with {report.items_aggregated} items")

        for entry in archived:
            path = self.output_dir / f"{entry.identifier}{self.archive_config.extension}"
            try:
                self._write(path, to_bytes(self.renderer.render_source(entry)))
            except WriteError as e:
                logger.error(f"Failed to write archive for {entry.source_url}: {e.reason}")
                report.write_errors.append(e)
                continue
            report.files_written.append(path.name)
            logger.debug(f"Wrote archive {path.name} ({len(entry.record.items)} items)")

        index_path = self.output_dir / self.archive_config.index_filename
        self._write(index_path, to_bytes(self.renderer.render_index(archived)))
        report.files_written.append(index_path.name)

        report.removals = reconcile(
            self.output_dir,
            archived,
            config=self.archive_config,
            retained_urls=self._failed_urls(results),
        )

        logger.info(
            f"Run complete: {report.sources_used}/{report.sources_total} sources used, "
            f"{report.items_aggregated} items aggregated, "
            f"{len(report.files_written)} files written, "
            f"{len(report.files_removed)} files removed"
        )

        return report

    @staticmethod
    def _failed_urls(results: Sequence[FetchResult]) -> list[str]:
        return [result.feed_url for result in results if not result.success]

    def _prepare_output_dir(self) -> None:
        """Create the output directory and its sentinel file."""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            (self.output_dir / self.archive_config.sentinel_filename).touch(exist_ok=True)
        except OSError as e:
            raise WriteError(str(self.output_dir), f"Cannot prepare output directory: {e}") from e

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        try:
            path.write_bytes(content)
        except OSError as e:
            raise WriteError(str(path), f"Cannot write: {e}") from e


def create_pipeline(
    config: Optional[Config] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ArchivePipeline:
    """Create a configured ArchivePipeline instance."""
    return ArchivePipeline(config=config, transport=transport)
