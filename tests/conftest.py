"""Shared pytest fixtures for fake-time-series tests.

Provides structlog configuration, CliRunner fixtures and fixed instants
used across unit and integration tests.
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from datetime import datetime, timezone

import pytest
import structlog
from click.testing import CliRunner

# A fixed reference instant for relative time phrases
FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Send structlog output to stderr so stdout assertions stay clean."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove FAKE_TIME_SERIES_* variables leaking in from the shell."""
    import os

    for name in list(os.environ):
        if name.startswith("FAKE_TIME_SERIES_"):
            monkeypatch.delenv(name)


@pytest.fixture
def fixed_now() -> datetime:
    """Reference instant for relative time phrases."""
    return FIXED_NOW


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Create a Click test runner with an isolated filesystem.

    Keeps a ``fake-time-series.yaml`` or ``.env`` in the repository from
    leaking into CLI tests.

    Yields:
        CliRunner instance with isolated filesystem.
    """
    with cli_runner.isolated_filesystem():
        yield cli_runner
