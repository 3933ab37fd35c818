"""Bridge to a stdlib ``logging.Logger``.

The writer's level is the logger's effective level, so handler/logger
configuration done elsewhere in the application applies here too. Fields are
rendered ahead of the message and also exposed on the record as
``record.fields`` for formatters that want them structured.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from ..errors import PanicError
from ..levels import Level
from .base import Writer, WriterFactory, format_fields, format_message


class LoggingWriter:
    __slots__ = ("_logger", "_fields")

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self._fields: dict[str, Any] = {}

    def level(self) -> Level:
        """Effective level of the wrapped logger; custom numeric levels raise ``ConfigurationError``."""
        return Level.from_logging(self._logger.getEffectiveLevel())

    def with_field(self, key: str, value: Any) -> None:
        self._fields[key] = value

    def _log(self, level: int, format: str, args: tuple[Any, ...]) -> str:
        msg = format_message(format, args)
        prefix = format_fields(self._fields)
        self._logger.log(level, "%s", f"{prefix} {msg}" if prefix else msg, extra={"fields": dict(self._fields)})
        return msg

    def debug(self, format: str, *args: Any) -> None: self._log(logging.DEBUG, format, args)
    def info(self, format: str, *args: Any) -> None: self._log(logging.INFO, format, args)
    def warn(self, format: str, *args: Any) -> None: self._log(logging.WARNING, format, args)
    def error(self, format: str, *args: Any) -> None: self._log(logging.ERROR, format, args)

    def fatal(self, format: str, *args: Any) -> None:
        self._log(logging.CRITICAL, format, args)
        sys.exit(1)

    def panic(self, format: str, *args: Any) -> None:
        raise PanicError(self._log(logging.CRITICAL, format, args), self._fields)


def logging_writer(logger: logging.Logger | str | None = None) -> WriterFactory:
    """Factory producing ``LoggingWriter`` instances for ``logger`` (a name or instance)."""
    target = logger if isinstance(logger, logging.Logger) else logging.getLogger(logger)

    def factory() -> Writer:
        return LoggingWriter(target)

    return factory
