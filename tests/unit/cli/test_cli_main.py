"""Unit tests for the CLI entry point."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from fake_time_series import __version__
from fake_time_series_cli.main import LAZY_COMMANDS, cli

pytestmark = pytest.mark.unit


class TestMainGroup:
    """Tests for the top-level command group."""

    def test_version(self, cli_runner: CliRunner) -> None:
        """--version prints the package version."""
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "fake-time-series" in result.output
        assert __version__ in result.output

    def test_help_lists_commands(self, cli_runner: CliRunner) -> None:
        """--help lists the lazily loaded commands."""
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "generate" in result.output
        assert "send" in result.output

    def test_lazy_commands_resolve(self) -> None:
        """Every lazy command imports to a click command."""
        ctx = cli.make_context("fake-time-series", [], resilient_parsing=True)
        for name in LAZY_COMMANDS:
            assert cli.get_command(ctx, name) is not None

    def test_unknown_command(self, cli_runner: CliRunner) -> None:
        """Unknown commands are usage errors."""
        result = cli_runner.invoke(cli, ["replay"])

        assert result.exit_code == 2

    def test_log_level_option(self, isolated_runner: CliRunner) -> None:
        """--log-level and --log-json are accepted before a command."""
        result = isolated_runner.invoke(
            cli,
            [
                "--log-level",
                "debug",
                "--log-json",
                "--no-color",
                "generate",
                "--start-time",
                "2024-01-01T00:00:00Z",
                "--end-time",
                "2024-01-01T00:00:30Z",
            ],
        )

        assert result.exit_code == 0, result.output
        assert result.stdout.lstrip().startswith("{")

    def test_invalid_log_level_from_environment(
        self, isolated_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An unknown level in the environment is a usage error."""
        monkeypatch.setenv("FAKE_TIME_SERIES_LOG_LEVEL", "LOUD")

        result = isolated_runner.invoke(cli, ["generate"])

        assert result.exit_code == 2
