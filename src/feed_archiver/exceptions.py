"""
Error taxonomy for feed archiving runs.

Errors whose blast radius is a single source or file are recovered by the
pipeline; the rest propagate to the command line and end the run.
"""

from typing import Optional


class ArchiverError(Exception):
    """Base class for all feed archiver errors."""


class ConfigError(ArchiverError):
    """Source list or configuration could not be loaded."""


class FetchError(ArchiverError):
    """A single source could not be fetched or parsed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")

    @property
    def kind(self) -> str:
        """Short error category, e.g. ``Timeout`` or ``HTTP 404``."""
        return self.reason.split(":")[0]


class WriteError(ArchiverError):
    """A file in the output directory could not be written or removed."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason or "Unknown error"
        super().__init__(f"{path}: {self.reason}")
