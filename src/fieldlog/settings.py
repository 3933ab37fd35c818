"""Environment-based configuration using pydantic-settings.

Example:
    >>> from fieldlog.settings import configure
    >>> configure()  # reads FIELDLOG_* variables and .env

    # FIELDLOG_BACKEND=json
    # FIELDLOG_LEVEL=debug
    # FIELDLOG_FIELDS='["component", "request_id"]'
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .levels import Level
from .logger import get_default_logger, set_default_factory
from .writers import WriterFactory, json_writer, logging_writer, std_writer, structlog_writer
from .writers.std import StdWriterOptions

_log = logging.getLogger("fieldlog")


class FieldlogSettings(BaseSettings):
    """Default-logger configuration loaded from ``FIELDLOG_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )

    backend: Literal["structured", "json", "std", "logging"] = "structured"
    level: Literal["TRACE", "DEBUG", "INFO", "WARN", "ERROR", "FATAL", "PANIC"] = "INFO"
    timestamps: bool = True
    stream: Literal["stdout", "stderr"] = "stderr"
    logger_name: str = Field(default="fieldlog.output", description="stdlib logger used by the 'logging' backend")
    fields: list[str] = Field(default_factory=list, description="Extra fields to register on the default logger")
    frames_to_skip: NonNegativeInt | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        """Accept any case and the WARNING/CRITICAL aliases."""
        return Level.parse(v).label if isinstance(v, str) else v

    @field_validator("backend", "stream", mode="before")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> FieldlogSettings:
    """Cached settings instance."""
    return FieldlogSettings()


def clear_settings_cache() -> None:
    """Next ``get_settings()`` re-reads the environment (useful for testing)."""
    get_settings.cache_clear()


def build_factory(settings: FieldlogSettings) -> WriterFactory:
    """Writer factory for the configured backend."""
    level = Level.parse(settings.level)
    use_stdout = settings.stream == "stdout"
    match settings.backend:
        case "structured":
            return structlog_writer(level=level, output=sys.stdout if use_stdout else None,
                                    timestamps=settings.timestamps)
        case "json":
            return json_writer(level=level, output=None if use_stdout else sys.stderr,
                               timestamps=settings.timestamps)
        case "std":
            return std_writer(StdWriterOptions(level=level, disable_timestamp=not settings.timestamps,
                                               output=None if use_stdout else sys.stderr))
        case "logging":
            logger = logging.getLogger(settings.logger_name)
            logger.setLevel(level.to_logging())
            return logging_writer(logger)
        case _:
            raise ConfigurationError(f"Unknown backend: {settings.backend!r}")


def configure(settings: FieldlogSettings | None = None) -> FieldlogSettings:
    """Apply settings to the process-wide factory and the default logger."""
    settings = settings or get_settings()
    set_default_factory(build_factory(settings))
    default = get_default_logger()
    if settings.fields:
        default.register_field(*settings.fields)
    if settings.frames_to_skip is not None:
        default.frames_to_skip = settings.frames_to_skip
    _log.debug("configured backend=%s level=%s fields=%s", settings.backend, settings.level, settings.fields)
    return settings
