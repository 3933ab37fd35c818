"""pytest fixtures for code that logs through fieldlog (auto-loaded via the ``pytest11`` entry point)."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from .logger import Logger
from .testing import LogCapture


@pytest.fixture
def log_capture() -> Iterator[LogCapture]:
    """Live capture for the duration of one test."""
    capture = LogCapture()
    yield capture
    capture.close()


@pytest.fixture
def capturing_logger(log_capture: LogCapture) -> Logger:
    """Independent ``Logger`` writing into ``log_capture``."""
    return Logger(log_capture.factory)
