"""Shared fixtures: every test starts from a fresh default logger and factory."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

import fieldlog
from fieldlog.pytest_plugin import capturing_logger, log_capture  # noqa: F401
from fieldlog.settings import clear_settings_cache


@pytest.fixture(autouse=True)
def clean_default_logger() -> Iterator[None]:
    """Reset the default logger and restore the process-wide factory around each test."""
    factory = fieldlog.get_default_factory()
    fieldlog.reset_default_logger()
    clear_settings_cache()
    yield
    fieldlog.set_default_factory(factory)
    fieldlog.reset_default_logger()
    clear_settings_cache()
