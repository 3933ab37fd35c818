"""Backend writers: the sinks that format and output log entries."""

from .base import Writer, WriterFactory, format_fields, format_message, quote
from .jsonl import JsonWriter, json_writer
from .std import StdWriter, StdWriterOptions, std_writer
from .stdlib import LoggingWriter, logging_writer
from .structured import StructlogWriter, structlog_writer

__all__ = [
    # Contract
    "Writer", "WriterFactory", "format_message", "format_fields", "quote",
    # Adapters
    "StructlogWriter", "structlog_writer",
    "JsonWriter", "json_writer",
    "StdWriter", "StdWriterOptions", "std_writer",
    "LoggingWriter", "logging_writer",
]
