"""Pydantic models for generation options, data points and results.

Options accept both snake_case and camelCase field names so the same
mapping can come from Python callers, YAML config files or the JSON
output of a previous run.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from fake_time_series.errors import ValidationError
from fake_time_series.parsing import (
    IntervalInput,
    TimeInput,
    parse_interval,
    parse_time,
)

ShapeFunction = Callable[[datetime], dict[str, Any]]
ShapeRegistry = dict[str, ShapeFunction]

DEFAULT_START_TIME = "-1 day"
DEFAULT_MIN_INTERVAL = "1s"
DEFAULT_MAX_INTERVAL = "10s"
DEFAULT_MAX_BATCH_SIZE = 10
DEFAULT_BATCH_REVERSE_PROBABILITY = 0.5
DEFAULT_BATCH_SHUFFLE_PROBABILITY = 0.4
DEFAULT_INTERVAL_SKEW_PROBABILITY = 0.8


class DataPoint(BaseModel):
    """A single generated event.

    Attributes:
        timestamp: Event time in epoch milliseconds
        key: Name of the shape that produced the event
        data: Record returned by the shape function
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    key: str
    data: dict[str, Any]


Transform = Callable[[DataPoint], Any]


class ResolvedWindow(BaseModel):
    """Generation bounds after parsing and validation.

    Attributes:
        start: Window start (aware UTC)
        end: Window end (aware UTC), strictly after start
        min_interval: Smallest step in milliseconds, > 0
        max_interval: Largest step in milliseconds, >= min_interval
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    min_interval: int
    max_interval: int


class GenerationOptions(BaseModel):
    """Options controlling batch generation.

    Times accept anything ``parse_time`` understands and intervals anything
    ``parse_interval`` understands. Field-level constraints are checked on
    construction; the window invariants are checked by ``resolve()``.

    Example:
        >>> options = GenerationOptions(
        ...     start_time="2024-01-01T00:00:00Z",
        ...     end_time="2024-01-01T00:01:00Z",
        ...     min_interval="10s",
        ...     max_interval="10s",
        ...     seed=42,
        ... )
        >>> options.resolve().max_interval
        10000
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    start_time: TimeInput = Field(
        default=DEFAULT_START_TIME,
        description="Window start (inclusive)",
    )
    end_time: TimeInput = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Window end; no point is generated past it",
    )
    min_interval: IntervalInput = Field(
        default=DEFAULT_MIN_INTERVAL,
        description="Smallest gap between consecutive points",
    )
    max_interval: IntervalInput = Field(
        default=DEFAULT_MAX_INTERVAL,
        description="Largest gap between consecutive points",
    )
    max_batch_size: int = Field(
        default=DEFAULT_MAX_BATCH_SIZE,
        ge=1,
        description="Upper bound on points per batch",
    )
    batch_size_randomization: bool = Field(
        default=True,
        description="Draw each batch size uniformly from [1, max_batch_size]",
    )
    interval_randomization: bool = Field(
        default=True,
        description="Randomize gaps instead of always using min_interval",
    )
    batch_reverse_probability: float = Field(
        default=DEFAULT_BATCH_REVERSE_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Probability of reversing a batch",
    )
    batch_shuffle_probability: float = Field(
        default=DEFAULT_BATCH_SHUFFLE_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Probability of shuffling a batch",
    )
    interval_skew_probability: float = Field(
        default=DEFAULT_INTERVAL_SKEW_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Probability of drawing a gap instead of taking the largest one",
    )
    shapes: ShapeRegistry | None = Field(
        default=None,
        description="Shape name to shape function (default: a single random value shape)",
    )
    transform: Transform | None = Field(
        default=None,
        description="Optional mapping applied to every data point before batching",
    )
    seed: int | None = Field(default=None, description="Seed for the random source")
    rng: random.Random | None = Field(
        default=None,
        exclude=True,
        description="Random source; takes precedence over seed",
    )

    @field_validator("shapes")
    @classmethod
    def validate_shapes_not_empty(cls, v: ShapeRegistry | None) -> ShapeRegistry | None:
        """Reject an empty registry; None selects the default shapes."""
        if v is not None and not v:
            raise ValueError("at least one shape is required")
        return v

    def make_rng(self) -> random.Random:
        """Return the random source for a run."""
        if self.rng is not None:
            return self.rng
        return random.Random(self.seed)  # noqa: S311 - not used for security

    def resolve(self, *, now: datetime | None = None) -> ResolvedWindow:
        """Parse times and intervals and validate the window.

        Args:
            now: Reference instant for relative time phrases.

        Returns:
            ResolvedWindow with parsed bounds.

        Raises:
            ParseError: If a time or interval cannot be parsed.
            ValidationError: If the window or intervals are inconsistent.
        """
        now = now or datetime.now(timezone.utc)
        start = parse_time(self.start_time, now=now)
        end = parse_time(self.end_time, now=now)
        if start >= end:
            raise ValidationError(
                "Start time must be before end time",
                internal_details=f"start={start.isoformat()} end={end.isoformat()}",
            )

        min_interval = parse_interval(self.min_interval)
        max_interval = parse_interval(self.max_interval)
        if min_interval <= 0 or max_interval <= 0:
            raise ValidationError(
                "Intervals must be positive",
                internal_details=f"min_interval={min_interval} max_interval={max_interval}",
            )
        if min_interval > max_interval:
            raise ValidationError(
                "Minimum interval must be less than or equal to maximum interval",
                internal_details=f"min_interval={min_interval} max_interval={max_interval}",
            )

        return ResolvedWindow(
            start=start,
            end=end,
            min_interval=min_interval,
            max_interval=max_interval,
        )


class GenerationResult(BaseModel):
    """Every batch of a run plus summary counts.

    Serializes with camelCase keys via ``to_json()``.

    Attributes:
        batches: Generated batches in generation order
        start_time: Resolved window start
        end_time: Resolved window end
        min_interval: Resolved minimum interval (ms)
        max_interval: Resolved maximum interval (ms)
        total_batches: Number of batches
        total_messages: Number of points across all batches
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    batches: list[list[Any]]
    start_time: datetime
    end_time: datetime
    min_interval: int
    max_interval: int
    total_batches: int
    total_messages: int

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize the result as JSON with camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=indent)
