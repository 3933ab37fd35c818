"""Exceptions raised by fieldlog.

Log calls never return errors to the caller. The only exceptions that escape a
log call are the contractual ones: ``PanicError`` for the panic severity,
``SystemExit`` for fatal, and ``ConfigurationError`` when a writer and the
engine disagree about levels.
"""

from __future__ import annotations

from typing import Any


class FieldlogError(Exception):
    """Base class for fieldlog exceptions."""


class ConfigurationError(FieldlogError, ValueError):
    """Programming error: unknown level, unknown backend, adapter/engine mismatch."""


class PanicError(FieldlogError):
    """Raised by a writer after emitting a panic-severity entry.

    Attributes:
        message: The formatted log message
        fields: Fields attached to the entry when it was written
    """

    __slots__ = ("message", "fields")

    def __init__(self, message: str, fields: dict[str, Any] | None = None) -> None:
        self.message = message
        self.fields = dict(fields or {})
        super().__init__(message)
