"""structlog-backed key/value writer (the default backend).

Renders logfmt lines, ``time=... level=info msg="..." asset=job1 caller=...``,
with bound fields sorted after the fixed keys.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from ..errors import PanicError
from ..levels import Level
from .base import Writer, WriterFactory, format_message


# logfmt keys cannot hold whitespace or control characters
def _logfmt_key(key: str) -> str:
    return "".join("_" if c <= " " else c for c in key) or "_"


def _processors(timestamps: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [structlog.processors.add_log_level]
    if timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso", key="time"))
    processors += [
        structlog.processors.EventRenamer("msg"),
        structlog.processors.LogfmtRenderer(key_order=["time", "level", "msg"], sort_keys=True, drop_missing=True),
    ]
    return processors


class StructlogWriter:
    """Writer over a structlog bound logger. ``with_field`` rebinds, like ``bind``.

    Without an explicit ``level`` the threshold is read from the wrapped
    logger (``get_effective_level()``), falling back to INFO.
    """

    __slots__ = ("_log", "_level", "_fields")

    def __init__(self, logger: Any, level: Level | None = None) -> None:
        self._log = logger
        self._level = level
        self._fields: dict[str, Any] = {}

    def level(self) -> Level:
        if self._level is not None:
            return self._level
        if (effective := getattr(self._log, "get_effective_level", None)) is not None:
            return Level.from_logging(effective())
        return Level.INFO

    def with_field(self, key: str, value: Any) -> None:
        self._fields[key] = value
        self._log = self._log.bind(**{_logfmt_key(key): value})

    def debug(self, format: str, *args: Any) -> None:
        self._log.debug(format_message(format, args))

    def info(self, format: str, *args: Any) -> None:
        self._log.info(format_message(format, args))

    def warn(self, format: str, *args: Any) -> None:
        self._log.warning(format_message(format, args))

    def error(self, format: str, *args: Any) -> None:
        self._log.error(format_message(format, args))

    def fatal(self, format: str, *args: Any) -> None:
        self._log.critical(format_message(format, args))
        sys.exit(1)

    def panic(self, format: str, *args: Any) -> None:
        msg = format_message(format, args)
        self._log.critical(msg)
        raise PanicError(msg, self._fields)


def structlog_writer(
    logger: Any | None = None,
    *,
    level: Level | str | None = None,
    output: TextIO | None = None,
    timestamps: bool = True,
) -> WriterFactory:
    """Factory producing ``StructlogWriter`` instances.

    Args:
        logger: A structlog bound logger to build on. When omitted, a logfmt
            logger printing to ``output`` is created for each writer.
        level: Minimum level reported to the engine. Defaults to INFO for the
            built-in logger and to the given logger's own level otherwise.
        output: Stream for the built-in logger (``sys.stderr`` at write time if None)
        timestamps: Whether the built-in logger adds an ISO ``time`` key
    """
    minimum = Level.parse(level) if level is not None else None
    processors = _processors(timestamps)
    wrapper = structlog.make_filtering_bound_logger(logging.NOTSET)

    def factory() -> Writer:
        if logger is not None:
            return StructlogWriter(logger, minimum)
        bound = structlog.wrap_logger(
            structlog.PrintLogger(output or sys.stderr),
            processors=processors,
            wrapper_class=wrapper,
        )
        return StructlogWriter(bound, minimum if minimum is not None else Level.INFO)

    return factory
