"""Emission engine: turns a context + message into one backend write.

For every call the engine:
1. gets a fresh writer from the logger's factory (or the process-wide one)
2. drops the call if its level is below the writer's level
3. resolves the caller location, ``frames_to_skip`` frames up
4. layers location values over the caller's context and the ambient context
5. attaches each registered field found in the layered context, abandoning
   the call if an exclusion rule matches
6. dispatches to the writer's severity method with the raw format/args

Quick Start:
    >>> import fieldlog
    >>> fieldlog.register_field("component", "asset")
    >>> ctx = fieldlog.Context(component="billing", asset="job1")
    >>> fieldlog.info(ctx, "value is %q", "x")

Independent loggers:
    >>> logger = Logger(json_writer(level="debug"))
    >>> logger.register_field("request_id")
    >>> logger.skip("request_id", "healthcheck")  # silence one noisy identity
"""

from __future__ import annotations

import logging
import sys
import traceback
from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .context import current_context
from .errors import ConfigurationError
from .fields import FIELD_CALLER, FIELD_SOURCE_FILE, FIELD_SOURCE_LINE, FIELD_STACK_TRACE, Field, FieldRegistry
from .levels import Level
from .rules import ExcludeRule, ExcludeRuleSet
from .writers import Writer, WriterFactory, structlog_writer

_log = logging.getLogger("fieldlog")

Ctx = Mapping[str, Any] | None


# ─────────────────────────────────────────────────────────────────────────────
# Caller Location & Stack Traces
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CallerLocation:
    """Where a log call was made. ``function`` is ``<module>.<qualified name>``."""

    file: str
    line: int
    function: str


def caller_location(skip: int) -> CallerLocation | None:
    """Location of the frame ``skip`` levels above the function calling this one.

    Returns None when the stack is not that deep.
    """
    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return None
    code = frame.f_code
    module = frame.f_globals.get("__name__")
    return CallerLocation(code.co_filename, frame.f_lineno, f"{module}.{code.co_qualname}" if module else code.co_qualname)


@runtime_checkable
class StackTracer(Protocol):
    """Errors that carry their own rendered stack trace."""

    def stack_trace(self) -> str: ...


def stack_trace_of(err: BaseException) -> str | None:
    """Rendered trace of ``err``, or None if it never carried one (e.g. not yet raised)."""
    if isinstance(err, StackTracer):
        return err.stack_trace() or None
    if err.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(err))


def context_with_stack_trace(ctx: Ctx, err: BaseException) -> Mapping[str, Any]:
    """``ctx`` overlaid with ``stack_trace`` when ``err`` has one. ``ctx`` is not modified."""
    base: Mapping[str, Any] = ctx if ctx is not None else {}
    if (trace := stack_trace_of(err)) is None:
        return base
    return ChainMap({FIELD_STACK_TRACE: trace}, base)  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide Writer Factory
# ─────────────────────────────────────────────────────────────────────────────

_factory: WriterFactory = structlog_writer()


def get_default_factory() -> WriterFactory:
    """Factory used by loggers constructed without one."""
    return _factory


def set_default_factory(factory: WriterFactory) -> None:
    """Replace the process-wide factory; loggers without their own pick it up on the next call."""
    global _factory
    _factory = factory
    _log.debug("default writer factory set to %r", factory)


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


class Logger:
    """Context-driven logger with its own field registry and exclusion rules.

    Args:
        factory: Writer factory; None falls back to the process-wide factory
        frames_to_skip: Stack frames between ``_emit`` and the reported caller.
            2 reports whoever called ``info()``/``error()``...; raise it by one
            for every wrapper layer placed in between.

    Example:
        >>> logger = Logger(std_writer(StdWriterOptions(disable_timestamp=True)))
        >>> logger.register_field("component")
        >>> logger.info({"component": "svc"}, "started")
        [INFO] [caller=app.main][component=svc][source_file=...][source_line=12] started
    """

    __slots__ = ("_fields", "_rules", "_factory", "_frames_to_skip")

    def __init__(self, factory: WriterFactory | None = None, *, frames_to_skip: int = 2) -> None:
        self._fields = FieldRegistry()
        self._rules = ExcludeRuleSet()
        self._factory = factory
        self._frames_to_skip = _checked_skip(frames_to_skip)

    @property
    def factory(self) -> WriterFactory | None:
        return self._factory

    @factory.setter
    def factory(self, factory: WriterFactory | None) -> None:
        self._factory = factory

    @property
    def frames_to_skip(self) -> int:
        return self._frames_to_skip

    @frames_to_skip.setter
    def frames_to_skip(self, skip: int) -> None:
        self._frames_to_skip = _checked_skip(skip)

    # ─────────────────────────────────────────────────────────────────
    # Fields & Rules
    # ─────────────────────────────────────────────────────────────────

    def register_field(self, *fields: str) -> None:
        self._fields.register(*fields)

    def unregister_field(self, *fields: str) -> None:
        self._fields.unregister(*fields)

    def registered_fields(self) -> list[Field]:
        """Sorted copy of the registered fields."""
        return self._fields.fields()

    def register_default_fields(self) -> None:
        """Re-add source_file, source_line, caller and stack_trace."""
        self._fields.register_defaults()

    def reset_fields(self) -> None:
        """Registry back to exactly the default fields."""
        self._fields.reset()

    def skip(self, field: str, value: Any) -> None:
        """Drop every call whose ``field`` equals ``value``. Replaces any earlier rule for ``field``."""
        self._rules.skip(field, value)

    def exclude_rules(self) -> list[ExcludeRule]:
        return self._rules.rules()

    def field_values(self, ctx: Ctx) -> dict[Field, Any]:
        """Registered fields present in ``ctx`` (and the ambient context)."""
        layered = ChainMap(ctx or {}, current_context())
        return {f: v for f in self._fields.snapshot() if (v := layered.get(f)) is not None}

    # ─────────────────────────────────────────────────────────────────
    # Log Calls
    # ─────────────────────────────────────────────────────────────────

    def debug(self, ctx: Ctx, format: str, *args: Any) -> None:
        self._emit(ctx, Level.DEBUG, format, args)

    def info(self, ctx: Ctx, format: str, *args: Any) -> None:
        self._emit(ctx, Level.INFO, format, args)

    def warn(self, ctx: Ctx, format: str, *args: Any) -> None:
        self._emit(ctx, Level.WARN, format, args)

    def error(self, ctx: Ctx, format: str, *args: Any) -> None:
        self._emit(ctx, Level.ERROR, format, args)

    def fatal(self, ctx: Ctx, format: str, *args: Any) -> None:
        """Log then end the process (the writer raises ``SystemExit``)."""
        self._emit(ctx, Level.FATAL, format, args)

    def panic(self, ctx: Ctx, format: str, *args: Any) -> None:
        """Log then raise ``PanicError`` from the writer."""
        self._emit(ctx, Level.PANIC, format, args)

    def log(self, ctx: Ctx, level: Level | str, format: str, *args: Any) -> None:
        self._emit(ctx, Level.parse(level), format, args)

    def error_with_stack_trace(self, ctx: Ctx, err: BaseException) -> None:
        """Log ``err`` at error level, with its stack trace when it carries one."""
        self._emit(context_with_stack_trace(ctx, err), Level.ERROR, str(err) or type(err).__name__, ())

    def _emit(self, ctx: Ctx, level: Level, format: str, args: tuple[Any, ...]) -> None:
        writer: Writer = (self._factory or _factory)()
        if level < writer.level():
            return

        location: dict[str, Any] = {}
        if (loc := caller_location(self._frames_to_skip)) is not None:
            location = {FIELD_SOURCE_FILE: loc.file, FIELD_SOURCE_LINE: loc.line, FIELD_CALLER: loc.function}
        layered = ChainMap(location, ctx or {}, current_context())

        rules = self._rules.lookup()
        for field in self._fields.snapshot():
            if (value := layered.get(field)) is None:
                continue
            if (rule := rules.get(field)) is not None and rule.matches(value):
                return
            writer.with_field(str(field), value)

        match level:
            case Level.INFO: writer.info(format, *args)
            case Level.WARN: writer.warn(format, *args)
            case Level.ERROR: writer.error(format, *args)
            case Level.FATAL: writer.fatal(format, *args)
            case Level.PANIC: writer.panic(format, *args)
            case _: writer.debug(format, *args)

    def __repr__(self) -> str:
        return f"Logger(fields={[str(f) for f in self._fields]}, rules={len(self._rules)}, frames_to_skip={self._frames_to_skip})"


# ─────────────────────────────────────────────────────────────────────────────
# Default Logger
# ─────────────────────────────────────────────────────────────────────────────

# Package-level functions add one frame between the caller and Logger methods
_DEFAULT_FRAMES_TO_SKIP = 3

_default: Logger = Logger(frames_to_skip=_DEFAULT_FRAMES_TO_SKIP)


def get_default_logger() -> Logger:
    return _default


def set_default_logger(logger: Logger) -> None:
    """Replace the logger behind the package-level functions.

    It should skip one more frame than a directly used logger (3 by default).
    """
    global _default
    _default = logger


def reset_default_logger() -> None:
    """Fresh default logger: default fields, no rules, process-wide factory (useful for testing)."""
    global _default
    _default = Logger(frames_to_skip=_DEFAULT_FRAMES_TO_SKIP)


def get_frames_to_skip() -> int:
    return _default.frames_to_skip


def set_frames_to_skip(skip: int) -> None:
    _default.frames_to_skip = skip


def register_field(*fields: str) -> None:
    _default.register_field(*fields)


def unregister_field(*fields: str) -> None:
    _default.unregister_field(*fields)


def get_registered_fields() -> list[Field]:
    return _default.registered_fields()


def register_default_fields() -> None:
    _default.register_default_fields()


def reset_fields() -> None:
    _default.reset_fields()


def skip(field: str, value: Any) -> None:
    _default.skip(field, value)


def field_values(ctx: Ctx) -> dict[Field, Any]:
    return _default.field_values(ctx)


def debug(ctx: Ctx, format: str, *args: Any) -> None:
    _default.debug(ctx, format, *args)


def info(ctx: Ctx, format: str, *args: Any) -> None:
    _default.info(ctx, format, *args)


def warn(ctx: Ctx, format: str, *args: Any) -> None:
    _default.warn(ctx, format, *args)


def error(ctx: Ctx, format: str, *args: Any) -> None:
    _default.error(ctx, format, *args)


def fatal(ctx: Ctx, format: str, *args: Any) -> None:
    _default.fatal(ctx, format, *args)


def panic(ctx: Ctx, format: str, *args: Any) -> None:
    _default.panic(ctx, format, *args)


def log(ctx: Ctx, level: Level | str, format: str, *args: Any) -> None:
    _default.log(ctx, level, format, *args)


def error_with_stack_trace(ctx: Ctx, err: BaseException) -> None:
    _default.error_with_stack_trace(ctx, err)
