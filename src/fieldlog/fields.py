"""Field identities and the registry of fields pulled into every log entry.

The registry is shared by every emission of a logger, so it is copy-on-write:
writers swap in a new sorted tuple under a lock, readers grab whatever tuple
is current. A reader therefore sees the registry either before or after a
mutation, never halfway through one.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator


class Field(str):
    """Name of a context value that may be attached to log entries.

    Plain strings compare equal to fields with the same text, so a context
    keyed by ``"asset"`` satisfies ``Field("asset")``.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Field({str.__repr__(self)})"


FIELD_SOURCE_FILE = Field("source_file")
FIELD_SOURCE_LINE = Field("source_line")
FIELD_CALLER = Field("caller")
FIELD_STACK_TRACE = Field("stack_trace")

DEFAULT_FIELDS: tuple[Field, ...] = (FIELD_SOURCE_FILE, FIELD_SOURCE_LINE, FIELD_CALLER, FIELD_STACK_TRACE)


class FieldRegistry:
    """Thread-safe, deduplicated, sorted set of fields.

    Example:
        >>> registry = FieldRegistry()
        >>> registry.register("component", "asset")
        >>> registry.fields()
        [Field('asset'), Field('caller'), Field('component'), Field('source_file'), ...]
    """

    __slots__ = ("_fields", "_lock")

    def __init__(self, fields: Iterable[str] = DEFAULT_FIELDS) -> None:
        self._lock = threading.Lock()
        self._fields: tuple[Field, ...] = _normalize(fields)

    def register(self, *fields: str) -> None:
        """Add fields. Already registered fields are ignored."""
        with self._lock:
            self._fields = _normalize((*self._fields, *fields))

    def unregister(self, *fields: str) -> None:
        """Remove fields. Unknown fields are ignored."""
        drop = set(fields)
        with self._lock:
            self._fields = tuple(f for f in self._fields if f not in drop)

    def register_defaults(self) -> None:
        """Add the built-in fields, keeping everything else registered."""
        self.register(*DEFAULT_FIELDS)

    def reset(self) -> None:
        """Drop every field and go back to exactly the built-in set."""
        with self._lock:
            self._fields = _normalize(DEFAULT_FIELDS)

    def snapshot(self) -> tuple[Field, ...]:
        """Current immutable view, for iteration during emission."""
        return self._fields

    def fields(self) -> list[Field]:
        """Sorted copy of the registered fields."""
        return list(self._fields)

    def __contains__(self, field: object) -> bool:
        return field in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldRegistry({[str(f) for f in self._fields]})"


def _normalize(fields: Iterable[str]) -> tuple[Field, ...]:
    return tuple(sorted({Field(f) for f in fields}))
