"""
Configuration management for Feed Archiver.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from feed_archiver.exceptions import ConfigError


class ArchiveConfig(BaseSettings):
    """Archive output configuration.

    Controls where the source list is read from, where documents are written,
    and how published archive URLs are built.
    """

    model_config = SettingsConfigDict(env_prefix="ARCHIVE_")

    # Inputs
    feeds_file: str = Field(default="feeds.txt", description="Source list, one URL per line")
    max_items: int = Field(
        default=300,
        ge=0,
        description="Max items per master feed and per archive (0=unlimited)",
    )

    # Publishing
    repo_identifier: str = Field(
        default="yourrepo",
        description="Repository identifier used to build published URLs (owner or owner/name)",
    )
    archive_path: str = Field(default="feeds", description="URL path of the archive directory")

    # Output directory layout
    output_dir: str = Field(default="feeds", description="Output directory")
    master_filename: str = Field(default="master_feed.xml", description="Master feed file name")
    index_filename: str = Field(default="feeds.opml", description="OPML index file name")
    sentinel_filename: str = Field(
        default=".gitkeep",
        description="Placeholder keeping an empty output directory tracked",
    )
    extension: str = Field(default=".xml", description="Extension of managed archive files")

    @field_validator("extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Ensure the extension has a leading dot."""
        v = v.strip()
        if not v or v == ".":
            raise ValueError("Extension must not be empty")
        return v if v.startswith(".") else f".{v}"

    @field_validator("repo_identifier", "archive_path")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        """Strip surrounding whitespace and slashes."""
        return v.strip().strip("/")

    @property
    def preserved_filenames(self) -> frozenset[str]:
        """File names the reconciler never deletes."""
        return frozenset({self.master_filename, self.index_filename, self.sentinel_filename})


class FetcherConfig(BaseSettings):
    """RSS/Atom fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    # HTTP settings
    timeout_seconds: int = Field(default=30, ge=1, le=300, description="Request timeout")
    user_agent: str = Field(
        default="Feed-Archiver/0.1.0 (+https://github.com/feed-archiver)",
        description="User-Agent header"
    )

    # Follow redirects
    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)

    # Concurrency
    max_workers: int = Field(default=16, ge=1, le=128, description="Maximum concurrent fetches")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_path: str = Field(default="logs/feed_archiver.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size")
    retention: str = Field(default="14 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FEED_ARCHIVER_",
        case_sensitive=False,
    )

    # Application
    version: str = Field(default="0.1.0", description="Application version")
    app_name: str = Field(default="Feed Archiver", description="Application name")

    # Sub-configurations
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_SECTIONS = {
    "archive": ArchiveConfig,
    "fetcher": FetcherConfig,
    "logging": LoggingConfig,
}

DEFAULT_CONFIG_PATH = Path("config/config.yaml")


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Note: Values loaded from YAML take precedence over environment variables.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    import yaml
    from pydantic import ValidationError

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise ConfigError(f"Configuration file not found: {yaml_path}")

    try:
        with yaml_file.open("r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read configuration file {yaml_path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError(f"Configuration file {yaml_path} must contain a mapping")

    main_config = {}
    nested_configs = {}

    for key, value in config_dict.items():
        if key in _SECTIONS:
            nested_configs[key] = value or {}
        else:
            main_config[key] = value

    try:
        # Nested sections still read their own env vars for unset keys
        for key, config_class in _SECTIONS.items():
            nested_configs[key] = config_class(**nested_configs.get(key, {}))

        main_config.update(nested_configs)
        return Config(**main_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {yaml_path}: {e}") from e


def load_config(yaml_path: Optional[str] = None) -> Config:
    """Build the configuration for one run.

    Args:
        yaml_path: Optional YAML file; ``config/config.yaml`` is used when it
            exists and no path is given.

    Returns:
        Config instance
    """
    if yaml_path:
        return load_config_from_yaml(yaml_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config_from_yaml(str(DEFAULT_CONFIG_PATH))
    return Config()
