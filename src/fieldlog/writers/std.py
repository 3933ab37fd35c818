"""Plain console writer: ``[INFO] [asset=job1][caller=app.main] message``."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TextIO

from ..errors import PanicError
from ..levels import Level
from .base import Writer, WriterFactory, format_fields, format_message


@dataclass(frozen=True, slots=True)
class StdWriterOptions:
    """Options for ``std_writer``.

    Attributes:
        level: Minimum level reported to the engine
        disable_timestamp: Drop the ``YYYY/MM/DD HH:MM:SS`` local-time prefix
        output: Destination stream (``sys.stdout`` at write time if None)
    """

    level: Level = Level.INFO
    disable_timestamp: bool = False
    output: TextIO | None = None


class StdWriter:
    """Renders sorted ``[key=value]`` fields ahead of the message."""

    __slots__ = ("_opts", "_fields")

    def __init__(self, opts: StdWriterOptions) -> None:
        self._opts = opts
        self._fields: dict[str, str] = {}

    def level(self) -> Level:
        return self._opts.level

    def with_field(self, key: str, value: Any) -> None:
        self._fields[key] = f"{value}"

    def _print(self, label: str, format: str, args: tuple[Any, ...]) -> str:
        msg = format_message(format, args)
        line = f"[{label}] {format_fields(self._fields)} {msg}"
        if not self._opts.disable_timestamp:
            line = f"{datetime.now():%Y/%m/%d %H:%M:%S} {line}"
        print(line, file=self._opts.output or sys.stdout)
        return msg

    def debug(self, format: str, *args: Any) -> None: self._print("DEBUG", format, args)
    def info(self, format: str, *args: Any) -> None: self._print("INFO", format, args)
    def warn(self, format: str, *args: Any) -> None: self._print("WARN", format, args)
    def error(self, format: str, *args: Any) -> None: self._print("ERROR", format, args)

    def fatal(self, format: str, *args: Any) -> None:
        self._print("FATAL", format, args)
        sys.exit(1)

    def panic(self, format: str, *args: Any) -> None:
        raise PanicError(self._print("PANIC", format, args), self._fields)


def std_writer(opts: StdWriterOptions | None = None) -> WriterFactory:
    """Factory producing ``StdWriter`` instances sharing ``opts``."""
    opts = opts or StdWriterOptions()

    def factory() -> Writer:
        return StdWriter(opts)

    return factory
