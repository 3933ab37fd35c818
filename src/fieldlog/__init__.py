"""fieldlog - context-driven structured logging facade.

Call sites put key/value pairs in a context; registered fields are pulled
from it into every log line, together with the caller's file, line and
function, and handed to a pluggable backend writer (structlog, JSON lines,
plain console, stdlib ``logging`` or a test capture).

Quick Start:
    >>> import fieldlog
    >>>
    >>> fieldlog.register_field("component", "asset")
    >>> ctx = fieldlog.Context(component="scheduler", asset="job1")
    >>> fieldlog.info(ctx, "value is %q", "x")
    time=... level=info msg="value is \\"x\\"" asset=job1 caller=app.run component=scheduler ...

Choosing a backend:
    >>> from fieldlog.writers import json_writer
    >>> fieldlog.set_default_factory(json_writer(level="debug"))

Silencing a noisy identity:
    >>> fieldlog.skip("asset", "healthcheck")  # every call tagged asset=healthcheck is dropped

Independent loggers:
    >>> logger = fieldlog.Logger(json_writer())
    >>> logger.register_field("request_id")
"""

from __future__ import annotations

__version__ = "0.3.0"

# Core types
from .context import Context, current_context, log_context
from .errors import ConfigurationError, FieldlogError, PanicError
from .fields import (
    DEFAULT_FIELDS,
    FIELD_CALLER,
    FIELD_SOURCE_FILE,
    FIELD_SOURCE_LINE,
    FIELD_STACK_TRACE,
    Field,
    FieldRegistry,
)
from .levels import Level
from .rules import ExcludeRule, ExcludeRuleSet

# Engine & default logger
from .logger import (
    CallerLocation,
    Logger,
    StackTracer,
    caller_location,
    context_with_stack_trace,
    debug,
    error,
    error_with_stack_trace,
    fatal,
    field_values,
    get_default_factory,
    get_default_logger,
    get_frames_to_skip,
    get_registered_fields,
    info,
    log,
    panic,
    register_default_fields,
    register_field,
    reset_default_logger,
    reset_fields,
    set_default_factory,
    set_default_logger,
    set_frames_to_skip,
    skip,
    stack_trace_of,
    unregister_field,
    warn,
)

# Writers
from .writers import Writer, WriterFactory

__all__ = [
    # Types
    "Context", "current_context", "log_context",
    "Field", "FieldRegistry", "DEFAULT_FIELDS",
    "FIELD_SOURCE_FILE", "FIELD_SOURCE_LINE", "FIELD_CALLER", "FIELD_STACK_TRACE",
    "Level", "ExcludeRule", "ExcludeRuleSet",
    # Errors
    "FieldlogError", "ConfigurationError", "PanicError",
    # Engine
    "Logger", "CallerLocation", "caller_location",
    "StackTracer", "stack_trace_of", "context_with_stack_trace",
    "Writer", "WriterFactory", "get_default_factory", "set_default_factory",
    # Default logger
    "get_default_logger", "set_default_logger", "reset_default_logger",
    "get_frames_to_skip", "set_frames_to_skip",
    "register_field", "unregister_field", "get_registered_fields",
    "register_default_fields", "reset_fields", "skip", "field_values",
    "debug", "info", "warn", "error", "fatal", "panic", "log", "error_with_stack_trace",
]
