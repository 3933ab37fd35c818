"""Writer contract shared by every backend adapter.

A writer lives for exactly one log call: the engine gets a fresh one from a
``WriterFactory``, asks for its level, attaches fields with ``with_field``
and finishes with one severity method. Formatting belongs to the writer, so
``format``/``args`` arrive unevaluated.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Callable, Protocol, TypeAlias, runtime_checkable

import orjson

from ..levels import Level


@runtime_checkable
class Writer(Protocol):
    """Capability set a backend must provide.

    ``fatal`` must end the process after writing. ``panic`` must raise
    ``PanicError`` after writing.
    """

    def level(self) -> Level: ...
    def with_field(self, key: str, value: Any) -> None: ...
    def debug(self, format: str, *args: Any) -> None: ...
    def info(self, format: str, *args: Any) -> None: ...
    def warn(self, format: str, *args: Any) -> None: ...
    def error(self, format: str, *args: Any) -> None: ...
    def fatal(self, format: str, *args: Any) -> None: ...
    def panic(self, format: str, *args: Any) -> None: ...


WriterFactory: TypeAlias = Callable[[], Writer]


# printf-style conversion: %[(key)][flags][width][.precision][length]type
_CONVERSION = re.compile(r"%(?:\([^)]*\))?[#0 +\-]*(?:\*|\d+)?(?:\.(?:\*|\d+))?[hlL]?([diouxXeEfFgGcrsaq%])")


def format_message(format: str, args: tuple[Any, ...]) -> str:
    """Interpolate ``args`` into ``format`` with ``%`` formatting.

    - no args: ``format`` is returned verbatim (``"100%"`` stays intact)
    - ``%q``: the argument rendered as a double-quoted, escaped string
    - a single mapping argument feeds ``%(name)s`` conversions
    - a format/args mismatch renders the format followed by the arguments
    """
    if not args:
        return format
    try:
        if len(args) == 1 and isinstance(args[0], Mapping) and "%(" in format:
            return format % args[0]
        if "q" in format:
            format, args = _expand_quoted(format, args)
        return format % args
    except (TypeError, ValueError, KeyError, OverflowError):
        return " ".join([format, *(str(a) for a in args)])


def _expand_quoted(format: str, args: tuple[Any, ...]) -> tuple[str, tuple[Any, ...]]:
    quoted: set[int] = set()
    index = 0

    def rewrite(m: re.Match[str]) -> str:
        nonlocal index
        conv, kind = m.group(0), m.group(1)
        if kind == "%":
            return conv
        value_index = index + conv.count("*")
        index = value_index + 1
        if kind == "q":
            quoted.add(value_index)
            return conv[:-1] + "s"
        return conv

    format = _CONVERSION.sub(rewrite, format)
    return format, tuple(quote(a) if i in quoted else a for i, a in enumerate(args))


def quote(value: Any) -> str:
    """Double-quoted string literal with JSON escaping (``"a \\"b\\""``)."""
    return orjson.dumps(value if isinstance(value, str) else str(value)).decode()


def format_fields(fields: Mapping[str, Any]) -> str:
    """Render fields as ``[k=v][k=v]`` sorted by key."""
    return "".join(f"[{k}={fields[k]}]" for k in sorted(fields))
