"""Request-scoped key/value context read by log calls.

Two ways to carry fields into a log call:

- pass a mapping (a plain ``dict`` or an immutable ``Context``) as ``ctx``
- bind values for a whole scope with ``log_context``; they persist across
  ``await`` points and threads started with ``contextvars.copy_context``

Example:
    >>> ctx = Context(component="billing").with_value("request_id", "r-42")
    >>> fieldlog.info(ctx, "charged %d items", 3)

    >>> with log_context(request_id="r-42"):
    ...     fieldlog.info(None, "charged")  # request_id still attached
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextvars import ContextVar
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from types import TracebackType

_EMPTY: Mapping[str, Any] = MappingProxyType({})

# Ambient context for the current task/thread
_log_context: ContextVar[Mapping[str, Any]] = ContextVar("fieldlog_context", default=_EMPTY)


class Context(Mapping[str, Any]):
    """Immutable mapping. ``with_value``/``with_values`` return new contexts."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, /, **kw: Any) -> None:
        self._values: dict[str, Any] = {**(values or {}), **kw}

    def with_value(self, key: str, value: Any) -> Context:
        return Context(self._values, **{key: value})

    def with_values(self, values: Mapping[str, Any] | None = None, /, **kw: Any) -> Context:
        return Context({**self._values, **(values or {}), **kw})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Context({self._values!r})"


def current_context() -> Mapping[str, Any]:
    """Values bound by the enclosing ``log_context`` scopes (read-only)."""
    return _log_context.get()


class log_context:
    """Context manager binding fields for every log call made inside the scope."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, values: Mapping[str, Any] | None = None, /, **kw: Any) -> None:
        self._ctx: dict[str, Any] = {**(values or {}), **kw}
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set(MappingProxyType({**_log_context.get(), **self._ctx}))
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]
            self._token = None
