"""CLI entry point for fake-time-series.

This module defines the main CLI group using the LazyGroup pattern so that
``fake-time-series --help`` does not import httpx or the sink.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from fake_time_series_cli import __version__
from fake_time_series_cli.output import set_no_color

# Configure rich-click for better help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LazyGroup(rclick.RichGroup):
    """Click group that loads commands lazily.

    Commands are only imported when actually invoked, not at import time.

    Attributes:
        lazy_subcommands: Mapping of command names to module paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to module path.
                Format: {"send": "fake_time_series_cli.commands.send.send_cmd"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return sorted list of available command names."""
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, loading lazily if needed."""
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_path = self.lazy_subcommands[cmd_name]
        module_name, attr_name = module_path.rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "generate": "fake_time_series_cli.commands.generate.generate_cmd",
    "send": "fake_time_series_cli.commands.send.send_cmd",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="fake-time-series")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Minimum log level [default: FAKE_TIME_SERIES_LOG_LEVEL or INFO]",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Write logs as JSON lines.",
)
def cli(log_level: str | None, log_json: bool) -> None:
    """Fake Time Series - synthetic time-series traffic generator.

    Generate batches of timestamped events with jittered spacing and
    out-of-order batches, and optionally send them to an HTTP sink.

    **Getting Started:**

    - `fake-time-series generate` - Print a day of generated data as JSON
    - `fake-time-series send --sink-url URL` - POST the batches to a sink

    Options can also come from `fake-time-series.yaml` (or `--config`).
    Logs are written to stderr.
    """
    from pydantic import ValidationError as PydanticValidationError
    from pydantic_settings import SettingsError

    from fake_time_series.config import FakeTimeSeriesSettings
    from fake_time_series.observability import configure_logging
    from fake_time_series_cli.errors import CLIError

    try:
        settings = FakeTimeSeriesSettings()
    except (PydanticValidationError, SettingsError) as e:
        raise CLIError(f"Invalid FAKE_TIME_SERIES_* environment settings: {e}") from None

    level = log_level or settings.log_level
    try:
        configure_logging(log_level=level, json_format=log_json)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="FAKE_TIME_SERIES_LOG_LEVEL") from None


if __name__ == "__main__":
    cli()
