"""Core aggregation pipeline for feed archiver.

Components, leaf-first:
    - naming: deterministic archive identifiers
    - fetcher: concurrent fetch + parse of source feeds
    - normalizer: parsed feeds to canonical records
    - aggregator: merge, sort and cap
    - renderer: RSS and OPML documents
    - reconciler: removal of stale archives
    - pipeline: one full run over all of the above
"""

from feed_archiver.core.aggregator import aggregate, build_result, cap_items, cap_source
from feed_archiver.core.fetcher import (
    FeedFetcher,
    FetchResult,
    FetchStats,
    create_fetcher,
    failures,
    successes,
)
from feed_archiver.core.models import AggregationResult, ArchivedSource, Item, SourceRecord
from feed_archiver.core.naming import resolve, slugify, url_hash
from feed_archiver.core.normalizer import normalize
from feed_archiver.core.pipeline import ArchivePipeline, RunReport, create_pipeline
from feed_archiver.core.reconciler import RemovalResult, plan_removals, reconcile
from feed_archiver.core.renderer import FeedRenderer, create_renderer, to_bytes

__all__ = [
    # Records
    "Item",
    "SourceRecord",
    "ArchivedSource",
    "AggregationResult",
    # Naming
    "resolve",
    "slugify",
    "url_hash",
    # Fetching
    "FeedFetcher",
    "FetchResult",
    "FetchStats",
    "create_fetcher",
    "successes",
    "failures",
    # Normalizing and aggregating
    "normalize",
    "aggregate",
    "cap_items",
    "cap_source",
    "build_result",
    # Rendering
    "FeedRenderer",
    "create_renderer",
    "to_bytes",
    # Reconciling
    "RemovalResult",
    "plan_removals",
    "reconcile",
    # Pipeline
    "ArchivePipeline",
    "RunReport",
    "create_pipeline",
]
