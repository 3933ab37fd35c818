"""Capturing writer for unit tests.

``LogCapture`` records every entry written through its factory so tests can
assert on levels, messages and fields. While the capture is live, fatal
entries fail the current test via ``pytest.fail`` instead of ending the
process. Once the capture is closed (the test is over, yet a thread still
logs) writers fall back to printing on stdout, and fatal exits with status 2.

Example:
    >>> capture = LogCapture()
    >>> logger = Logger(capture.factory)
    >>> logger.info({"asset": "job1"}, "value is %q", "x")
    >>> capture.entries[0].message
    'value is "x"'
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from typing import Any

from .errors import PanicError
from .levels import Level
from .writers.base import Writer, format_fields, format_message


@dataclass(frozen=True, slots=True)
class CapturedEntry:
    """One recorded log entry. ``fields`` keeps attachment order."""

    level: Level
    message: str
    fields: dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        return f"[{self.level.label}] {format_fields(self.fields)} {self.message}"


class LogCapture:
    """Thread-safe recorder shared by the writers its ``factory`` produces."""

    __slots__ = ("_entries", "_lock", "_active", "level")

    def __init__(self, level: Level = Level.DEBUG) -> None:
        self._entries: list[CapturedEntry] = []
        self._lock = threading.Lock()
        self._active = True
        self.level = level

    def factory(self) -> Writer:
        return TestingWriter(self)

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        """Mark the owning test as finished."""
        self._active = False

    def record(self, entry: CapturedEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    @property
    def entries(self) -> list[CapturedEntry]:
        with self._lock:
            return list(self._entries)

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.entries]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class TestingWriter:
    """Writer recording into a ``LogCapture``."""

    __test__ = False  # not a pytest test class
    __slots__ = ("_capture", "_fields")

    def __init__(self, capture: LogCapture) -> None:
        self._capture = capture
        self._fields: dict[str, Any] = {}

    def level(self) -> Level:
        return self._capture.level

    def with_field(self, key: str, value: Any) -> None:
        self._fields[key] = value

    def _log(self, level: Level, format: str, args: tuple[Any, ...]) -> CapturedEntry:
        entry = CapturedEntry(level, format_message(format, args), dict(self._fields))
        if self._capture.active:
            self._capture.record(entry)
        else:
            print(entry.render(), file=sys.stdout)
        return entry

    def debug(self, format: str, *args: Any) -> None: self._log(Level.DEBUG, format, args)
    def info(self, format: str, *args: Any) -> None: self._log(Level.INFO, format, args)
    def warn(self, format: str, *args: Any) -> None: self._log(Level.WARN, format, args)
    def error(self, format: str, *args: Any) -> None: self._log(Level.ERROR, format, args)

    def fatal(self, format: str, *args: Any) -> None:
        entry = self._log(Level.FATAL, format, args)
        if not self._capture.active:
            sys.exit(2)
        import pytest
        pytest.fail(entry.render(), pytrace=False)

    def panic(self, format: str, *args: Any) -> None:
        entry = self._log(Level.PANIC, format, args)
        raise PanicError(entry.message, entry.fields)
