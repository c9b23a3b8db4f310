"""fake-time-series generate command - Print a generated run as JSON."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from fake_time_series_cli.commands.common import (
    build_generation_options,
    generation_options,
    load_config_or_exit,
)
from fake_time_series_cli.output import success


@click.command(name="generate")
@generation_options
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the JSON to a file instead of stdout.",
)
@click.pass_context
def generate_cmd(ctx: click.Context, output_path: str | None, **params: Any) -> None:
    """Generate batches of time-series data and print them as JSON.

    The JSON object holds every batch plus startTime, endTime, minInterval,
    maxInterval, totalBatches and totalMessages.

    Examples:

        fake-time-series generate

        fake-time-series generate -s "-2 hours" --min-interval 500ms --seed 42

        fake-time-series generate --shape temp=temperature -o data.json
    """
    from fake_time_series.aggregate import generate
    from fake_time_series.errors import FakeTimeSeriesError
    from fake_time_series_cli.errors import handle_core_error

    config = load_config_or_exit(params["config_path"])
    options = build_generation_options(ctx, params, config)

    try:
        result = generate(options)
    except FakeTimeSeriesError as e:
        handle_core_error(e)

    payload = result.to_json()
    if output_path is None:
        click.echo(payload)
        return

    Path(output_path).write_text(payload + "\n")
    success(
        f"Wrote {result.total_messages} messages in {result.total_batches} batches to {output_path}"
    )
