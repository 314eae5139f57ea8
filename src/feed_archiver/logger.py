"""
Logging setup for feed archiver runs.

A run logs to stderr and, when enabled, to a rotating file. Fetch tasks log
from worker threads, so the file sink is queued.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from feed_archiver.config import LoggingConfig


def setup_logger(
    config: Optional[LoggingConfig] = None,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """Replace loguru's default sink with the run's sinks.

    Args:
        config: Logging section of the archiver config
        level: Overrides ``config.level`` (the CLI ``--log-level`` flag)
        log_file: Forces a file sink at this path
    """
    config = config or LoggingConfig()
    level = (level or config.level).upper()

    logger.remove()

    if config.console_enabled:
        logger.add(sys.stderr, level=level, format=config.format, colorize=True, diagnose=False)

    if log_file is None and not config.file_enabled:
        return

    path = Path(log_file or config.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        path,
        level=level,
        format=config.format,
        rotation=config.rotation,
        retention=config.retention,
        encoding="utf-8",
        enqueue=True,
        diagnose=False,
    )


def get_logger(name: Optional[str] = None):
    """Return the shared logger, bound to ``name`` when given."""
    return logger.bind(name=name) if name else logger


__all__ = ["setup_logger", "get_logger", "logger"]
