"""fake-time-series send command - POST generated batches to a sink."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import click
from pydantic import ValidationError as PydanticValidationError

from fake_time_series.config import ConfigFile, FakeTimeSeriesSettings
from fake_time_series.errors import DeliveryError, FakeTimeSeriesError
from fake_time_series.schemas import GenerationResult
from fake_time_series.sink import (
    DEFAULT_CONCURRENCY,
    DEFAULT_HEADERS,
    DEFAULT_TIMEOUT,
    HttpSink,
    SinkOptions,
    log_delivery_error,
    to_sink,
)
from fake_time_series_cli.commands.common import (
    build_generation_options,
    from_command_line,
    generation_options,
    load_config_or_exit,
)
from fake_time_series_cli.errors import CLIError, handle_core_error, handle_validation_error
from fake_time_series_cli.output import success, warning


def parse_headers(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> dict[str, str] | None:
    """Click callback: decode ``--headers`` as a JSON object of strings."""
    if value is None:
        return None
    try:
        headers = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e.msg}") from None
    if not isinstance(headers, dict):
        raise click.BadParameter("must be a JSON object")
    return {str(k): str(v) for k, v in headers.items()}


def _pick(ctx: click.Context, name: str, cli_value: Any, *fallbacks: Any) -> Any:
    if from_command_line(ctx, name):
        return cli_value
    for value in fallbacks:
        if value is not None:
            return value
    return cli_value


@click.command(name="send")
@generation_options
@click.option(
    "--sink-url",
    default=None,
    help="Endpoint receiving one POST per batch [env: FAKE_TIME_SERIES_SINK_URL]",
)
@click.option(
    "--headers",
    default=None,
    callback=parse_headers,
    help='Extra request headers as JSON, e.g. \'{"Authorization": "Bearer x"}\'.',
)
@click.option(
    "--concurrency",
    type=int,
    default=DEFAULT_CONCURRENCY,
    show_default=True,
    help="Maximum simultaneous requests.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Request timeout in seconds.",
)
@click.pass_context
def send_cmd(
    ctx: click.Context,
    sink_url: str | None,
    headers: dict[str, str] | None,
    concurrency: int,
    timeout: float,
    **params: Any,
) -> None:
    """Generate batches and POST each one to a sink as a JSON array.

    Failed deliveries are logged and counted; they do not stop the run.

    Examples:

        fake-time-series send --sink-url http://localhost:8080/ingest

        fake-time-series send --sink-url http://localhost:8080/ingest \\
            --headers '{"Authorization": "Bearer dev"}' --concurrency 4
    """
    config = load_config_or_exit(params["config_path"]) or ConfigFile()
    try:
        env = FakeTimeSeriesSettings().explicit_values()
    except PydanticValidationError as e:
        handle_validation_error(e, "environment")

    url = sink_url if sink_url else env.get("sink_url") or config.sink_url
    if not url:
        raise CLIError("Sink URL is required.")

    merged_headers = {
        **DEFAULT_HEADERS,
        **(config.headers or {}),
        **env.get("headers", {}),
        **(headers or {}),
    }
    concurrency = _pick(ctx, "concurrency", concurrency, env.get("concurrency"), config.concurrency)
    timeout = _pick(ctx, "timeout", timeout, env.get("timeout"), config.timeout)

    failures: list[DeliveryError] = []

    def record_failure(err: DeliveryError) -> None:
        failures.append(err)
        log_delivery_error(err)

    async def run() -> GenerationResult:
        async with HttpSink(url, headers=merged_headers, timeout=timeout) as sink:
            options = build_generation_options(
                ctx,
                params,
                config,
                options_cls=SinkOptions,
                fetcher=sink,
                concurrency=concurrency,
                on_error=record_failure,
            )
            return await to_sink(options)

    try:
        result = asyncio.run(run())
    except FakeTimeSeriesError as e:
        handle_core_error(e)

    success(
        f"Sent {result.total_messages} messages in {result.total_batches} batches to {url}"
    )
    if failures:
        warning(f"{len(failures)} of {result.total_batches} batches failed")
