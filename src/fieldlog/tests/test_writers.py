"""Tests for the backend writers and shared formatting helpers."""

from __future__ import annotations

import io
import logging
import re
from datetime import datetime

import orjson
import pytest
import structlog

from fieldlog import ConfigurationError, Level, Logger, PanicError, Writer
from fieldlog.testing import LogCapture, TestingWriter
from fieldlog.writers import (
    JsonWriter,
    LoggingWriter,
    StdWriter,
    StdWriterOptions,
    StructlogWriter,
    format_fields,
    format_message,
    json_writer,
    logging_writer,
    quote,
    std_writer,
    structlog_writer,
)


# ═════════════════════════════════════════════════════════════════════════════
# Formatting
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    ("format", "args", "expected"),
    [
        ("this is %q", ("info",), 'this is "info"'),
        ("%q and %d", ("a b", 3), '"a b" and 3'),
        ("%s=%q", ("k", 'say "hi"'), 'k="say \\"hi\\""'),
        ("%%q %s", ("x",), "%q x"),
        ("%5.1f%%", (2.25,), "  2.2%"),
        ("%*d|%q", (4, 7, "z"), '   7|"z"'),
        ("%(user)s logged in", ({"user": "ada"},), "ada logged in"),
        ("no verbs", ("extra", 1), "no verbs extra 1"),
        ("%d items", ("many",), "%d items many"),
        ("100%", (), "100%"),
        ("%s %q", (), "%s %q"),
        ("char %c", (10**10,), "char %c 10000000000"),
        ("n=%d", (float("inf"),), "n=%d inf"),
    ],
)
def test_format_message(format: str, args: tuple[object, ...], expected: str) -> None:
    assert format_message(format, args) == expected


def test_quote_escapes() -> None:
    assert quote("x") == '"x"'
    assert quote('a"b') == '"a\\"b"'
    assert quote("line\nbreak") == '"line\\nbreak"'
    assert quote(42) == '"42"'


def test_format_fields_sorted() -> None:
    assert format_fields({"b": 2, "a": "x"}) == "[a=x][b=2]"
    assert format_fields({}) == ""


# ═════════════════════════════════════════════════════════════════════════════
# Contract Conformance
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "factory",
    [
        structlog_writer(output=io.StringIO()),
        json_writer(output=io.StringIO()),
        std_writer(StdWriterOptions(output=io.StringIO())),
        logging_writer("fieldlog.tests.contract"),
        LogCapture().factory,
    ],
    ids=["structlog", "json", "std", "logging", "testing"],
)
def test_factories_produce_fresh_writers(factory: object) -> None:
    first, second = factory(), factory()  # type: ignore[operator]
    assert isinstance(first, Writer)
    assert first is not second
    assert isinstance(first.level(), Level)


# ═════════════════════════════════════════════════════════════════════════════
# StdWriter
# ═════════════════════════════════════════════════════════════════════════════


def test_std_writer_line() -> None:
    out = io.StringIO()
    writer = std_writer(StdWriterOptions(level=Level.INFO, disable_timestamp=True, output=out))()
    writer.with_field("component", "rockbears/log")
    writer.with_field("asset", "ExampleNewStdWrapper")
    writer.info("this is %q", "info")
    writer.warn("this is warn")

    assert out.getvalue().splitlines() == [
        '[INFO] [asset=ExampleNewStdWrapper][component=rockbears/log] this is "info"',
        "[WARN] [asset=ExampleNewStdWrapper][component=rockbears/log] this is warn",
    ]


def test_std_writer_timestamp_prefix() -> None:
    out = io.StringIO()
    writer = StdWriter(StdWriterOptions(output=out))
    writer.error("boom")
    assert re.match(r"^\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2} \[ERROR\]  boom$", out.getvalue().strip())


def test_std_writer_defaults_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    std_writer(StdWriterOptions(disable_timestamp=True))().debug("to stdout")
    assert capsys.readouterr().out == "[DEBUG]  to stdout\n"


def test_std_writer_through_logger() -> None:
    out = io.StringIO()
    logger = Logger(std_writer(StdWriterOptions(level=Level.INFO, disable_timestamp=True, output=out)))
    logger.register_field("component")
    logger.unregister_field("source_file", "source_line", "caller")
    logger.debug({"component": "svc"}, "this log should not be displayed")
    logger.info({"component": "svc"}, "shown")
    assert out.getvalue() == "[INFO] [component=svc] shown\n"


# ═════════════════════════════════════════════════════════════════════════════
# JsonWriter
# ═════════════════════════════════════════════════════════════════════════════


def test_json_writer_line() -> None:
    out = io.StringIO()
    writer = json_writer(level="debug", output=out, timestamps=False)()
    writer.with_field("asset", "ExampleNewZapWrapper")
    writer.with_field("count", 3)
    writer.info("this is %q", "info")

    line = out.getvalue()
    assert line.endswith("\n")
    assert orjson.loads(line) == {"level": "info", "msg": 'this is "info"', "asset": "ExampleNewZapWrapper", "count": 3}
    assert list(orjson.loads(line)) == ["level", "msg", "asset", "count"]
    assert writer.level() is Level.DEBUG


def test_json_writer_timestamp_and_unserializable_values() -> None:
    out = io.StringIO()
    writer = JsonWriter(Level.INFO, out)
    writer.with_field("obj", object())
    writer.with_field("msg", "cannot clobber the message")
    writer.warn("careful")

    entry = orjson.loads(out.getvalue())
    assert entry["msg"] == "careful"
    assert entry["level"] == "warn"
    assert entry["obj"].startswith("<object object")
    datetime.fromisoformat(entry["ts"])


def test_json_writer_wide_integers() -> None:
    out = io.StringIO()
    logger = Logger(json_writer(output=out, timestamps=False))
    logger.unregister_field("source_file", "source_line", "caller")
    logger.register_field("id", "ids")
    logger.info({"id": 2**70, "ids": [1, 2**64]}, "hello")

    assert orjson.loads(out.getvalue()) == {"level": "info", "msg": "hello", "id": str(2**70), "ids": str([1, 2**64])}


def test_json_writer_panic_and_fatal() -> None:
    out = io.StringIO()
    factory = json_writer(output=out, timestamps=False)
    with pytest.raises(PanicError, match="bad state"):
        factory().panic("bad %s", "state")
    with pytest.raises(SystemExit) as exc:
        factory().fatal("the end")

    assert exc.value.code == 1
    assert [orjson.loads(line)["level"] for line in out.getvalue().splitlines()] == ["panic", "fatal"]


# ═════════════════════════════════════════════════════════════════════════════
# StructlogWriter
# ═════════════════════════════════════════════════════════════════════════════


def test_structlog_writer_logfmt() -> None:
    out = io.StringIO()
    writer = structlog_writer(output=out, timestamps=False)()
    writer.with_field("component", "rockbears/log")
    writer.with_field("asset", "ExampleWithLogrus")
    writer.info("this is %q", "info")

    line = out.getvalue().strip()
    assert line.startswith("level=info msg=")
    assert "this is" in line
    assert line.endswith("asset=ExampleWithLogrus component=rockbears/log")


def test_structlog_writer_levels() -> None:
    out = io.StringIO()
    factory = structlog_writer(level="warn", output=out, timestamps=True)
    assert factory().level() is Level.WARN

    factory().warn("w")
    factory().error("e")
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("time=")
    assert "level=warning" in lines[0]
    assert "level=error" in lines[1]


def test_structlog_writer_fatal_and_panic() -> None:
    out = io.StringIO()
    factory = structlog_writer(output=out, timestamps=False)
    with pytest.raises(SystemExit) as exc:
        factory().fatal("gone")
    assert exc.value.code == 1

    writer = factory()
    writer.with_field("asset", "a1")
    with pytest.raises(PanicError) as panic:
        writer.panic("halt")
    assert panic.value.fields == {"asset": "a1"}
    assert out.getvalue().count("level=critical") == 2


def test_structlog_writer_keys_with_whitespace() -> None:
    out = io.StringIO()
    logger = Logger(structlog_writer(output=out, timestamps=False))
    logger.unregister_field("source_file", "source_line", "caller")
    logger.register_field("request id", "tab\tkey")
    logger.info({"request id": "r1", "tab\tkey": "t"}, "hello")

    assert out.getvalue().strip() == "level=info msg=hello request_id=r1 tab_key=t"


def test_structlog_writer_level_follows_given_logger() -> None:
    out = io.StringIO()
    debug_logger = structlog.wrap_logger(
        structlog.PrintLogger(out), wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )
    warn_logger = structlog.wrap_logger(
        structlog.PrintLogger(out), wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
    )

    assert structlog_writer(debug_logger)().level() is Level.DEBUG
    assert structlog_writer(warn_logger)().level() is Level.WARN
    assert structlog_writer(warn_logger, level="error")().level() is Level.ERROR
    assert structlog_writer(output=out)().level() is Level.INFO
    assert structlog_writer(output=out, level="trace")().level() is Level.TRACE


def test_structlog_writer_wraps_given_logger() -> None:
    class Recorder:
        def __init__(self, context: dict[str, object] | None = None) -> None:
            self.context = context or {}
            self.calls: list[tuple[str, str, dict[str, object]]] = []

        def bind(self, **kw: object) -> Recorder:
            child = Recorder({**self.context, **kw})
            child.calls = self.calls
            return child

        def info(self, event: str) -> None:
            self.calls.append(("info", event, self.context))

    recorder = Recorder()
    writer = StructlogWriter(recorder, Level.DEBUG)
    writer.with_field("asset", "a1")
    writer.info("%d done", 5)
    assert recorder.calls == [("info", "5 done", {"asset": "a1"})]


# ═════════════════════════════════════════════════════════════════════════════
# LoggingWriter
# ═════════════════════════════════════════════════════════════════════════════


def test_logging_writer_level_follows_logger() -> None:
    target = logging.getLogger("fieldlog.tests.level")
    target.setLevel(logging.WARNING)
    assert logging_writer(target)().level() is Level.WARN

    target.setLevel(25)
    with pytest.raises(ConfigurationError):
        logging_writer(target)().level()


def test_logging_writer_record(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="fieldlog.tests.record")
    writer = LoggingWriter(logging.getLogger("fieldlog.tests.record"))
    writer.with_field("asset", "a1")
    writer.error("failed %d times", 3)

    [record] = caplog.records
    assert record.levelno == logging.ERROR
    assert record.getMessage() == "[asset=a1] failed 3 times"
    assert record.fields == {"asset": "a1"}  # type: ignore[attr-defined]


def test_logging_writer_fatal_and_panic(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="fieldlog.tests.fatal")
    factory = logging_writer("fieldlog.tests.fatal")
    with pytest.raises(SystemExit):
        factory().fatal("stop")
    with pytest.raises(PanicError):
        factory().panic("halt")
    assert [r.levelno for r in caplog.records] == [logging.CRITICAL, logging.CRITICAL]


# ═════════════════════════════════════════════════════════════════════════════
# TestingWriter
# ═════════════════════════════════════════════════════════════════════════════


def test_testing_writer_records_while_live() -> None:
    capture = LogCapture()
    writer = capture.factory()
    writer.with_field("asset", "a1")
    writer.warn("careful %s", "now")

    [entry] = capture.entries
    assert entry.level is Level.WARN
    assert entry.render() == "[WARN] [asset=a1] careful now"
    assert isinstance(writer, TestingWriter)


def test_testing_writer_prints_after_close(capsys: pytest.CaptureFixture[str]) -> None:
    capture = LogCapture()
    capture.close()
    capture.factory().info("late line")

    assert capture.entries == []
    assert capsys.readouterr().out == "[INFO]  late line\n"


def test_testing_writer_fatal_after_close_exits(capsys: pytest.CaptureFixture[str]) -> None:
    capture = LogCapture()
    capture.close()
    with pytest.raises(SystemExit) as exc:
        capture.factory().fatal("too late")

    assert exc.value.code == 2
    assert capsys.readouterr().out == "[FATAL]  too late\n"


def test_testing_writer_fatal_while_live_fails_test() -> None:
    capture = LogCapture()
    with pytest.raises(pytest.fail.Exception, match=r"\[FATAL\] \[k=v\] stop"):
        writer = capture.factory()
        writer.with_field("k", "v")
        writer.fatal("stop")
    assert capture.messages == ["stop"]


def test_capture_clear() -> None:
    capture = LogCapture()
    capture.factory().info("one")
    capture.clear()
    assert len(capture) == 0
