"""
Reconciler removing archives whose source is no longer configured.

The decision is a pure set difference (``plan_removals``); ``reconcile`` only
scans the directory and deletes what the plan names.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from feed_archiver.config import ArchiveConfig
from feed_archiver.core.models import ArchivedSource
from feed_archiver.core.naming import url_hash
from feed_archiver.exceptions import WriteError
from feed_archiver.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RemovalResult:
    """Outcome of removing one stale archive."""

    filename: str
    error: Optional[WriteError] = None

    @property
    def removed(self) -> bool:
        return self.error is None


def expected_filenames(
    archived_sources: Iterable[ArchivedSource],
    extension: str,
    preserved: Iterable[str] = (),
) -> set[str]:
    """File names that must survive reconciliation."""
    names = {f"{archived.identifier}{extension}" for archived in archived_sources}
    names.update(preserved)
    return names


def plan_removals(
    expected: Iterable[str],
    existing: Iterable[str],
    extension: str,
    retained_hashes: Iterable[str] = (),
) -> list[str]:
    """Compute which existing files to delete.

    A file is deleted when it has the managed extension, is not expected,
    and does not carry the URL hash of a retained source.

    Args:
        expected: Names to keep
        existing: Names currently in the output directory
        extension: Managed extension, e.g. ``.xml``
        retained_hashes: URL hashes whose archives are kept whatever their title

    Returns:
        Sorted names to delete
    """
    expected = set(expected)
    suffixes = tuple(f"-{digest}{extension}" for digest in retained_hashes)

    stale = []
    for name in existing:
        if not name.endswith(extension) or name in expected:
            continue
        if suffixes and name.endswith(suffixes):
            continue
        stale.append(name)

    return sorted(stale)


def reconcile(
    output_dir: Union[str, Path],
    archived_sources: Iterable[ArchivedSource],
    config: Optional[ArchiveConfig] = None,
    retained_urls: Iterable[str] = (),
) -> list[RemovalResult]:
    """Delete archives in ``output_dir`` that belong to no current source.

    Args:
        output_dir: Output directory
        archived_sources: Sources archived in this run
        config: Archive configuration (extension and preserved names)
        retained_urls: Configured URLs whose fetch failed this run; their
            archives are kept

    Returns:
        One RemovalResult per stale file; failures are reported, not raised
    """
    config = config or ArchiveConfig()
    output_path = Path(output_dir)

    if not output_path.is_dir():
        logger.debug(f"Output directory {output_path} does not exist, nothing to reconcile")
        return []

    expected = expected_filenames(
        archived_sources, config.extension, config.preserved_filenames
    )
    existing = [entry.name for entry in output_path.iterdir() if entry.is_file()]
    stale = plan_removals(
        expected,
        existing,
        config.extension,
        retained_hashes=[url_hash(url) for url in retained_urls],
    )

    results = []
    for name in stale:
        try:
            (output_path / name).unlink()
            logger.info(f"Removed stale archive: {name}")
            results.append(RemovalResult(filename=name))
        except OSError as e:
            error = WriteError(str(output_path / name), f"Cannot remove: {e}")
            logger.error(f"Failed to remove stale archive {name}: {e}")
            results.append(RemovalResult(filename=name, error=error))

    return results
