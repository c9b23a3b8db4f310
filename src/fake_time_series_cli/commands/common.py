"""Options and option resolution shared by generate and send.

Values are layered with the command line first, then the config file, then
the library defaults. A flag only counts as given when it was typed on the
command line, so a click default never hides a config file value.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any, TypeVar

import click
from click.core import ParameterSource
from pydantic import ValidationError as PydanticValidationError

from fake_time_series.config import (
    DEFAULT_CONFIG_FILENAME,
    GENERATION_FIELDS,
    ConfigFile,
    load_config,
)
from fake_time_series.errors import ConfigurationError, FakeTimeSeriesError
from fake_time_series.generators.shapes import resolve_shape
from fake_time_series.schemas import (
    DEFAULT_BATCH_REVERSE_PROBABILITY,
    DEFAULT_BATCH_SHUFFLE_PROBABILITY,
    DEFAULT_INTERVAL_SKEW_PROBABILITY,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_MAX_INTERVAL,
    DEFAULT_MIN_INTERVAL,
    DEFAULT_START_TIME,
    GenerationOptions,
    ShapeRegistry,
)
from fake_time_series_cli.errors import (
    handle_core_error,
    handle_file_not_found,
    handle_validation_error,
    handle_yaml_error,
)

F = TypeVar("F", bound=Callable[..., Any])
OptionsT = TypeVar("OptionsT", bound=GenerationOptions)

_PROBABILITY = click.FloatRange(0.0, 1.0)

_GENERATION_OPTIONS = [
    click.option(
        "-s",
        "--start-time",
        default=DEFAULT_START_TIME,
        show_default=True,
        help="Window start: ISO timestamp, epoch ms or phrase like '-2 hours'.",
    ),
    click.option(
        "-e",
        "--end-time",
        default=None,
        help="Window end [default: now]",
    ),
    click.option(
        "--min-interval",
        default=DEFAULT_MIN_INTERVAL,
        show_default=True,
        help="Smallest gap between points (ms or '500ms', '1s', '2m').",
    ),
    click.option(
        "--max-interval",
        default=DEFAULT_MAX_INTERVAL,
        show_default=True,
        help="Largest gap between points.",
    ),
    click.option(
        "--max-batch-size",
        type=click.IntRange(min=1),
        default=DEFAULT_MAX_BATCH_SIZE,
        show_default=True,
        help="Upper bound on points per batch.",
    ),
    click.option(
        "--batch-size-randomization/--no-batch-size-randomization",
        default=True,
        show_default=True,
        help="Draw batch sizes at random instead of always using the maximum.",
    ),
    click.option(
        "--interval-randomization/--no-interval-randomization",
        default=True,
        show_default=True,
        help="Draw gaps at random instead of always using the minimum.",
    ),
    click.option(
        "--batch-reverse-probability",
        type=_PROBABILITY,
        default=DEFAULT_BATCH_REVERSE_PROBABILITY,
        show_default=True,
        help="Probability of reversing a batch.",
    ),
    click.option(
        "--batch-shuffle-probability",
        type=_PROBABILITY,
        default=DEFAULT_BATCH_SHUFFLE_PROBABILITY,
        show_default=True,
        help="Probability of shuffling a batch.",
    ),
    click.option(
        "--interval-skew-probability",
        type=_PROBABILITY,
        default=DEFAULT_INTERVAL_SKEW_PROBABILITY,
        show_default=True,
        help="Probability of drawing a gap instead of taking the largest one.",
    ),
    click.option(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible output.",
    ),
    click.option(
        "--shape",
        "shape_specs",
        multiple=True,
        metavar="NAME=REF",
        help="Shape to generate; REF is a built-in name or module:attribute. Repeatable.",
    ),
    click.option(
        "-c",
        "--config",
        "config_path",
        type=click.Path(dir_okay=False),
        default=None,
        help="Path to config file [default: ./fake-time-series.yaml if present]",
    ),
]


def generation_options(func: F) -> F:
    """Attach the generation flags to a command."""
    for option in reversed(_GENERATION_OPTIONS):
        func = option(func)
    return func


def from_command_line(ctx: click.Context, name: str) -> bool:
    """Whether parameter ``name`` was typed on the command line."""
    return ctx.get_parameter_source(name) is ParameterSource.COMMANDLINE


def load_config_or_exit(config_path: str | None) -> ConfigFile | None:
    """Load the config file, turning failures into CLI errors.

    Raises:
        CLIError: Exit code 2 for a missing explicit file, 1 otherwise.
    """
    import yaml

    try:
        return load_config(config_path)
    except FileNotFoundError:
        handle_file_not_found(str(config_path))
    except yaml.YAMLError as e:
        handle_yaml_error(e, str(config_path or DEFAULT_CONFIG_FILENAME))
    except PydanticValidationError as e:
        handle_validation_error(e, str(config_path or DEFAULT_CONFIG_FILENAME))
    except FakeTimeSeriesError as e:
        handle_core_error(e)


def parse_shape_specs(specs: tuple[str, ...], rng: random.Random) -> ShapeRegistry:
    """Resolve ``NAME=REF`` pairs from ``--shape`` into a registry.

    A bare ``REF`` uses the reference as the shape name.

    Raises:
        click.BadParameter: If a pair has an empty name or reference.
        ConfigurationError: If a reference cannot be resolved.
    """
    registry: ShapeRegistry = {}
    for pair in specs:
        name, sep, reference = pair.partition("=")
        if not sep:
            reference = name
        name, reference = name.strip(), reference.strip()
        if not name or not reference:
            raise click.BadParameter(f"expected NAME=REF, got {pair!r}", param_hint="--shape")
        registry[name] = resolve_shape(reference, rng)
    return registry


def build_generation_options(
    ctx: click.Context,
    params: dict[str, Any],
    config: ConfigFile | None,
    options_cls: type[OptionsT] = GenerationOptions,  # type: ignore[assignment]
    **extra: Any,
) -> OptionsT:
    """Merge command line, config file and defaults into an options model.

    Args:
        ctx: Current click context, used to tell typed flags from defaults
        params: Command parameters as received by the command
        config: Loaded config file, if any
        options_cls: GenerationOptions or a subclass such as SinkOptions
        **extra: Additional fields for ``options_cls``

    Returns:
        Validated options instance.

    Raises:
        CLIError: If a value is invalid or a shape cannot be resolved.
    """
    values: dict[str, Any] = config.generation_values() if config is not None else {}
    for name in GENERATION_FIELDS:
        if from_command_line(ctx, name):
            values[name] = params[name]

    rng = random.Random(values.get("seed"))  # noqa: S311 - not used for security
    try:
        if params.get("shape_specs"):
            shapes = parse_shape_specs(params["shape_specs"], rng)
        elif config is not None:
            shapes = config.build_shapes(rng)
        else:
            shapes = None
    except ConfigurationError as e:
        handle_core_error(e)

    try:
        return options_cls(**values, shapes=shapes, rng=rng, **extra)
    except PydanticValidationError as e:
        handle_validation_error(e)
