"""
Command line entry point for feed archiver.
"""

import argparse
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from feed_archiver.config import ArchiveConfig, Config, load_config
from feed_archiver.core.pipeline import ArchivePipeline
from feed_archiver.exceptions import ConfigError, WriteError
from feed_archiver.logger import logger, setup_logger


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feed-archiver",
        description="Aggregate syndication feeds into a master feed and per-source archives",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--feeds", help="Source list file, one URL per line")
    parser.add_argument("--output-dir", help="Directory receiving the generated documents")
    parser.add_argument(
        "--max-items", type=_non_negative_int, help="Max items per feed (0=unlimited)"
    )
    parser.add_argument("--repo", help="Repository identifier used in published URLs")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
        help="Log level",
    )
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return ``config`` with command line values applied."""
    overrides = {
        "feeds_file": args.feeds,
        "output_dir": args.output_dir,
        "max_items": args.max_items,
        "repo_identifier": args.repo,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return config

    archive_values = {**config.archive.model_dump(), **overrides}
    try:
        archive = ArchiveConfig(**archive_values)
    except ValidationError as e:
        raise ConfigError(f"Invalid command line option: {e}") from e
    return config.model_copy(update={"archive": archive})


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one archive pass.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        setup_logger(level=args.log_level)
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logger(config.logging, level=args.log_level)

    try:
        ArchivePipeline(config).run()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except WriteError as e:
        logger.error(f"Failed to write output: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
