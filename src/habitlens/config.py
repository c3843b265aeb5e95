"""Configuration management for habitlens.

Configuration is loaded from ~/.habitlens/config.toml with sensible defaults.

Example config file:
    [storage]
    db_path = "~/.habitlens/db.sqlite"

    [llm]
    backend = "claude"
    timeout = 120

    [analysis]
    min_tag_samples = 3
    max_tags = 3

    [logging]
    level = "INFO"
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

# Use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class StorageConfig(BaseModel):
    """Configuration for the SQLite store."""

    db_path: str = "~/.habitlens/db.sqlite"

    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()


class LLMConfig(BaseModel):
    """Configuration for the text-generation backend."""

    backend: str = ""  # empty means auto-detect
    timeout: int = Field(default=120, gt=0)


class AnalysisConfig(BaseModel):
    """Thresholds used by the analyzers."""

    min_tag_samples: int = Field(default=3, ge=1)
    max_tags: int = Field(default=3, ge=1)


class LoggingConfig(BaseModel):
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return value


class Config(BaseModel):
    """Main configuration model for habitlens."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config() -> Config:
    """Get the default configuration.

    Returns:
        Config object with default values for every section.
    """
    return Config()


def get_default_config_path() -> Path:
    return Path.home() / ".habitlens" / "config.toml"


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from a TOML file.

    If the file doesn't exist, returns the default configuration.
    Partial configurations are merged with defaults.

    Args:
        config_path: Path to the config file. Defaults to ~/.habitlens/config.toml.

    Returns:
        Config object with loaded or default values.
    """
    if config_path is None:
        config_path = get_default_config_path()

    default_config = get_default_config()

    if not config_path.exists():
        return default_config

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Could not read config %s, using defaults: %s", config_path, e)
        return default_config

    try:
        return _merge_config(default_config, data)
    except ValidationError as e:
        logger.warning("Invalid config %s, using defaults: %s", config_path, e)
        return default_config


def _merge_config(default: Config, data: dict[str, Any]) -> Config:
    """Merge loaded config data with defaults, section by section.

    Unknown sections and keys are ignored.
    """
    merged = default.model_dump()
    for section, values in data.items():
        if section in merged and isinstance(values, dict):
            merged[section].update(
                {key: value for key, value in values.items() if key in merged[section]}
            )
    return Config.model_validate(merged)


# Global config cache
_config_cache: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Loads from ~/.habitlens/config.toml on first call, then returns the cached
    instance.
    """
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def set_config(config: Config) -> None:
    """Replace the cached configuration (used by the CLI's --config flag)."""
    global _config_cache
    _config_cache = config


def _clear_config_cache() -> None:
    """Clear the config cache. Used for testing."""
    global _config_cache
    _config_cache = None
