"""
Source list loading.

The source list is a plain text file with one feed URL per line.
"""

from pathlib import Path
from typing import Iterable, Union

from feed_archiver.exceptions import ConfigError
from feed_archiver.logger import get_logger

logger = get_logger(__name__)


def parse_source_list(lines: Iterable[str]) -> list[str]:
    """Extract source URLs from lines of text.

    Blank lines are skipped and surrounding whitespace is trimmed. Duplicate
    URLs are collapsed, keeping the first occurrence.

    Args:
        lines: Raw lines

    Returns:
        Unique URLs in file order
    """
    urls = []
    seen = set()
    for line in lines:
        url = line.strip()
        if not url:
            continue
        if url in seen:
            logger.warning(f"Duplicate source ignored: {url}")
            continue
        seen.add(url)
        urls.append(url)
    return urls


def load_source_urls(path: Union[str, Path]) -> list[str]:
    """Read the source list file.

    Args:
        path: Path of the source list

    Returns:
        Unique URLs in file order (possibly empty)

    Raises:
        ConfigError: If the file is missing or cannot be read
    """
    source_file = Path(path)
    if not source_file.is_file():
        raise ConfigError(f"Source list not found: {source_file}")

    try:
        text = source_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read source list {source_file}: {e}") from e

    urls = parse_source_list(text.splitlines())
    logger.info(f"Loaded {len(urls)} sources from {source_file}")
    return urls
