"""Shape functions and the built-in shape catalogue.

A shape is a function ``(instant) -> record`` called once per data point.
Callers normally supply their own registry. The built-in shapes below are
factories taking the run's random source, so a seeded run reproduces their
output as well.

Example:
    >>> import random
    >>> rng = random.Random(42)
    >>> shape = resolve_shape("temperature", rng)
    >>> sorted(shape(datetime(2024, 1, 1)))
    ['sensorId', 'value']
"""

from __future__ import annotations

import importlib
import math
import random
import string
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from faker import Faker

from fake_time_series.errors import ConfigurationError
from fake_time_series.schemas import ShapeFunction, ShapeRegistry

ShapeFactory = Callable[[random.Random], ShapeFunction]

_BASE36 = string.digits + string.ascii_lowercase

# Action weights for the event shape
EVENT_ACTION_WEIGHTS: dict[str, float] = {
    "page_view": 50,
    "click": 25,
    "api_call": 15,
    "login": 5,
    "logout": 3,
    "error": 2,
}


def random_value_shape(rng: random.Random) -> ShapeFunction:
    """Shape producing ``{"value": float in [0, 1)}``."""

    def shape(_: datetime) -> dict[str, Any]:
        return {"value": rng.random()}

    return shape


def temperature_shape(rng: random.Random) -> ShapeFunction:
    """Shape producing a reading from a randomly named sensor.

    Returns:
        Shape producing ``{"sensorId": str, "value": float in [0, 100)}``.
    """

    def shape(_: datetime) -> dict[str, Any]:
        sensor_id = "".join(rng.choice(_BASE36) for _ in range(13))
        return {"sensorId": sensor_id, "value": rng.random() * 100}

    return shape


def sine_shape(
    rng: random.Random,
    *,
    period: timedelta = timedelta(hours=1),
    amplitude: float = 1.0,
    noise: float = 0.05,
) -> ShapeFunction:
    """Shape following a sine wave over wall-clock time, with uniform noise.

    Args:
        rng: Random source for the noise term
        period: Length of one full cycle
        amplitude: Peak value of the wave
        noise: Half-width of the uniform noise added to each value

    Returns:
        Shape producing ``{"value": float}``.
    """
    period_seconds = period.total_seconds()

    def shape(instant: datetime) -> dict[str, Any]:
        phase = 2 * math.pi * (instant.timestamp() % period_seconds) / period_seconds
        return {"value": amplitude * math.sin(phase) + rng.uniform(-noise, noise)}

    return shape


def event_shape(rng: random.Random) -> ShapeFunction:
    """Faker-backed user activity event.

    Returns:
        Shape producing ``{"user", "ip", "action", "durationMs"}``.
    """
    fake = Faker()
    fake.seed_instance(rng.getrandbits(32))
    actions = list(EVENT_ACTION_WEIGHTS)
    weights = list(EVENT_ACTION_WEIGHTS.values())

    def shape(_: datetime) -> dict[str, Any]:
        return {
            "user": fake.user_name(),
            "ip": fake.ipv4(),
            "action": rng.choices(actions, weights=weights, k=1)[0],
            "durationMs": rng.randint(1, 2000),
        }

    return shape


BUILTIN_SHAPES: dict[str, ShapeFactory] = {
    "default": random_value_shape,
    "temperature": temperature_shape,
    "sine": sine_shape,
    "event": event_shape,
}


def default_shapes(rng: random.Random) -> ShapeRegistry:
    """Registry used when the caller supplies no shapes."""
    return {"default": random_value_shape(rng)}


def resolve_shape(reference: str, rng: random.Random) -> ShapeFunction:
    """Resolve a built-in shape name or a ``module:attribute`` reference.

    Args:
        reference: Built-in name (``"temperature"``) or import reference
            (``"my_project.shapes:cpu_load"``) naming a shape function.
        rng: Random source handed to built-in shape factories

    Returns:
        Shape function.

    Raises:
        ConfigurationError: If the reference cannot be resolved to a callable.
    """
    if reference in BUILTIN_SHAPES:
        return BUILTIN_SHAPES[reference](rng)

    if ":" in reference:
        module_name, attr_name = reference.split(":", 1)
    elif "." in reference:
        module_name, attr_name = reference.rsplit(".", 1)
    else:
        available = ", ".join(sorted(BUILTIN_SHAPES))
        raise ConfigurationError(
            f"Unknown shape '{reference}'. Built-in shapes: {available}"
        )

    try:
        module = importlib.import_module(module_name)
        shape = getattr(module, attr_name)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot import shape '{reference}'",
            internal_details=str(e),
        ) from e

    if not callable(shape):
        raise ConfigurationError(f"Shape '{reference}' is not callable")
    return shape  # type: ignore[no-any-return]
