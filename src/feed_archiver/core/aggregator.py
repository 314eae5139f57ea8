"""
Aggregator merging source items into the master list.

The master list is sorted newest-first before capping. Per-source lists are
capped in their original fetch order, without re-sorting.
"""

from typing import Iterable, Sequence

from feed_archiver.core.models import AggregationResult, Item, SourceRecord
from feed_archiver.logger import get_logger

logger = get_logger(__name__)

UNLIMITED = 0


def cap_items(items: Sequence[Item], cap: int) -> list[Item]:
    """Keep the first ``cap`` items (all of them when cap is 0).

    Args:
        items: Items in their existing order
        cap: Maximum number of items, 0 for unlimited

    Returns:
        Truncated list
    """
    if cap < 0:
        raise ValueError(f"cap must be non-negative, got {cap}")
    items = list(items)
    if cap > UNLIMITED and len(items) > cap:
        return items[:cap]
    return items


def aggregate(sources: Iterable[SourceRecord], cap: int) -> list[Item]:
    """Merge items from all sources, newest first, capped.

    The sort is stable, so items with equal timestamps keep their input order.

    Args:
        sources: Source records in fetch-completion order
        cap: Maximum number of items, 0 for unlimited

    Returns:
        Sorted, capped list of items
    """
    merged = [item for source in sources for item in source.items]
    merged.sort(key=lambda item: item.published_at, reverse=True)
    return cap_items(merged, cap)


def cap_source(source: SourceRecord, cap: int) -> SourceRecord:
    """Return ``source`` with its items capped in fetch order."""
    if cap == UNLIMITED or len(source.items) <= cap:
        return source
    return source.with_items(cap_items(source.items, cap))


def build_result(sources: Sequence[SourceRecord], cap: int) -> AggregationResult:
    """Aggregate the master list and cap each source independently.

    Args:
        sources: Successfully fetched source records
        cap: Maximum items per list, 0 for unlimited

    Returns:
        AggregationResult
    """
    master_items = aggregate(sources, cap)
    capped = tuple(cap_source(source, cap) for source in sources)

    total = sum(len(source.items) for source in sources)
    logger.info(
        f"Aggregated {len(master_items)} of {total} items from {len(sources)} sources"
        + (f" (cap {cap})" if cap else " (no cap)")
    )

    return AggregationResult(master_items=tuple(master_items), sources=capped)
