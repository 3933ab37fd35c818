"""JSON Lines writer (orjson), one object per entry.

Output: ``{"level":"info","ts":"2024-01-03T10:30:45.123+00:00","msg":"...","asset":"job1"}``.
Fields follow ``msg`` in attachment order. Values orjson cannot encode are
rendered with ``str``, integers outside the 64-bit range included.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from typing import Any, TextIO

import orjson

from ..errors import PanicError
from ..levels import Level
from .base import Writer, WriterFactory, format_message

_OPTIONS = orjson.OPT_NON_STR_KEYS


def _dumps(entry: dict[str, Any]) -> bytes:
    try:
        return orjson.dumps(entry, default=str, option=_OPTIONS)
    except orjson.JSONEncodeError:
        # orjson rejects ints wider than 64 bits before consulting ``default``
        return orjson.dumps({k: _encodable(v) for k, v in entry.items()}, default=str, option=_OPTIONS)


def _encodable(value: Any) -> Any:
    try:
        orjson.dumps(value, default=str, option=_OPTIONS)
    except orjson.JSONEncodeError:
        return str(value)
    return value


class JsonWriter:
    """Accumulates fields and prints one JSON object per severity call."""

    __slots__ = ("_fields", "_level", "_output", "_timestamps")

    def __init__(self, level: Level, output: TextIO | None = None, timestamps: bool = True) -> None:
        self._fields: dict[str, Any] = {}
        self._level = level
        self._output = output
        self._timestamps = timestamps

    def level(self) -> Level:
        return self._level

    def with_field(self, key: str, value: Any) -> None:
        self._fields[key] = value

    def _write(self, level: str, format: str, args: tuple[Any, ...]) -> str:
        msg = format_message(format, args)
        entry: dict[str, Any] = {"level": level}
        if self._timestamps:
            entry["ts"] = datetime.now(UTC).isoformat(timespec="milliseconds")
        entry["msg"] = msg
        # Fixed keys win over same-named fields
        entry.update((k, v) for k, v in self._fields.items() if k not in entry)
        line = _dumps(entry).decode()
        print(line, file=self._output or sys.stdout)
        return msg

    def debug(self, format: str, *args: Any) -> None: self._write("debug", format, args)
    def info(self, format: str, *args: Any) -> None: self._write("info", format, args)
    def warn(self, format: str, *args: Any) -> None: self._write("warn", format, args)
    def error(self, format: str, *args: Any) -> None: self._write("error", format, args)

    def fatal(self, format: str, *args: Any) -> None:
        self._write("fatal", format, args)
        sys.exit(1)

    def panic(self, format: str, *args: Any) -> None:
        raise PanicError(self._write("panic", format, args), self._fields)


def json_writer(
    *,
    level: Level | str = Level.INFO,
    output: TextIO | None = None,
    timestamps: bool = True,
) -> WriterFactory:
    """Factory producing ``JsonWriter`` instances (stdout at write time if no output)."""
    minimum = Level.parse(level)

    def factory() -> Writer:
        return JsonWriter(minimum, output, timestamps)

    return factory
