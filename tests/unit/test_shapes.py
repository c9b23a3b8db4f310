"""Unit tests for built-in shapes and shape resolution."""

from __future__ import annotations

import random
import string
from datetime import datetime, timezone

import pytest

from fake_time_series.errors import ConfigurationError
from fake_time_series.generators.shapes import (
    BUILTIN_SHAPES,
    EVENT_ACTION_WEIGHTS,
    default_shapes,
    resolve_shape,
    sine_shape,
)

pytestmark = pytest.mark.unit

INSTANT = datetime(2024, 1, 1, 0, 15, tzinfo=timezone.utc)


def cpu_load(instant: datetime) -> dict[str, float]:
    """Shape referenced by import path in the tests below."""
    return {"cpu": instant.minute / 60}


NOT_CALLABLE = 42


class TestBuiltinShapes:
    """Tests for the built-in shape factories."""

    def test_catalogue(self) -> None:
        """The built-in catalogue lists every shape."""
        assert set(BUILTIN_SHAPES) == {"default", "temperature", "sine", "event"}

    def test_default_shapes(self) -> None:
        """The default registry holds a single random value shape."""
        shapes = default_shapes(random.Random(1))
        assert list(shapes) == ["default"]
        value = shapes["default"](INSTANT)["value"]
        assert 0 <= value < 1

    def test_temperature(self) -> None:
        """Temperature readings carry a 13-character base36 sensor id."""
        record = resolve_shape("temperature", random.Random(1))(INSTANT)
        assert len(record["sensorId"]) == 13
        assert set(record["sensorId"]) <= set(string.digits + string.ascii_lowercase)
        assert 0 <= record["value"] < 100

    def test_sine_follows_wall_clock(self) -> None:
        """A quarter period into the cycle the wave peaks."""
        shape = sine_shape(random.Random(1), noise=0.0)
        assert shape(INSTANT)["value"] == pytest.approx(1.0)
        assert shape(datetime(2024, 1, 1, tzinfo=timezone.utc))["value"] == pytest.approx(0.0)

    def test_event(self) -> None:
        """Events carry a user, an IP and a weighted action."""
        record = resolve_shape("event", random.Random(1))(INSTANT)
        assert set(record) == {"user", "ip", "action", "durationMs"}
        assert record["action"] in EVENT_ACTION_WEIGHTS
        assert 1 <= record["durationMs"] <= 2000

    def test_event_is_reproducible(self) -> None:
        """Equal seeds give equal events."""
        first = resolve_shape("event", random.Random(9))(INSTANT)
        second = resolve_shape("event", random.Random(9))(INSTANT)
        assert first == second


class TestResolveShape:
    """Tests for resolve_shape."""

    def test_colon_reference(self) -> None:
        """module:attribute references are imported."""
        shape = resolve_shape(f"{__name__}:cpu_load", random.Random(1))
        assert shape is cpu_load

    def test_dotted_reference(self) -> None:
        """module.attribute references are imported."""
        shape = resolve_shape(f"{__name__}.cpu_load", random.Random(1))
        assert shape(INSTANT) == {"cpu": 0.25}

    def test_unknown_builtin(self) -> None:
        """Unknown bare names list the built-in shapes."""
        with pytest.raises(ConfigurationError, match="Unknown shape 'wave'"):
            resolve_shape("wave", random.Random(1))

    def test_missing_module(self) -> None:
        """Unimportable references raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Cannot import shape"):
            resolve_shape("no_such_module_xyz:shape", random.Random(1))

    def test_missing_attribute(self) -> None:
        """Missing attributes raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Cannot import shape"):
            resolve_shape(f"{__name__}:no_such_shape", random.Random(1))

    def test_not_callable(self) -> None:
        """References to non-callables are rejected."""
        with pytest.raises(ConfigurationError, match="is not callable"):
            resolve_shape(f"{__name__}:NOT_CALLABLE", random.Random(1))
