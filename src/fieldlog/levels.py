"""Severity levels and their mapping onto stdlib ``logging`` levels."""

from __future__ import annotations

import logging
from enum import IntEnum

from .errors import ConfigurationError


class Level(IntEnum):
    """Ordered log severity. A call is emitted only if its level >= the writer's level."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    PANIC = 6

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value: str | int | Level) -> Level:
        """Parse a level from its name ("info", "WARNING", ...) or its rank."""
        if isinstance(value, Level):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ConfigurationError(f"Unknown level rank: {value}") from None
        name = value.strip().upper()
        if (level := _ALIASES.get(name)) is not None:
            return level
        try:
            return cls[name]
        except KeyError:
            raise ConfigurationError(f"Unknown level: {value!r}") from None

    @classmethod
    def from_logging(cls, level: int) -> Level:
        """Map a stdlib ``logging`` level number. Custom numeric levels are not mapped."""
        if (mapped := _FROM_LOGGING.get(level)) is None:
            raise ConfigurationError(f"logging level {logging.getLevelName(level)!r} is not handled")
        return mapped

    def to_logging(self) -> int:
        return _TO_LOGGING[self]


_ALIASES: dict[str, Level] = {"WARNING": Level.WARN, "CRITICAL": Level.FATAL}

_FROM_LOGGING: dict[int, Level] = {
    logging.NOTSET: Level.TRACE,
    5: Level.TRACE,
    logging.DEBUG: Level.DEBUG,
    logging.INFO: Level.INFO,
    logging.WARNING: Level.WARN,
    logging.ERROR: Level.ERROR,
    logging.CRITICAL: Level.FATAL,
}

# TRACE has no stdlib counterpart; it sits just below DEBUG.
_TO_LOGGING: dict[Level, int] = {
    Level.TRACE: 5,
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
    Level.FATAL: logging.CRITICAL,
    Level.PANIC: logging.CRITICAL,
}
