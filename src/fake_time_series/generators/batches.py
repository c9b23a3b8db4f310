"""Batch generator: the core time-series synthesis algorithm.

``BatchGenerator`` walks a cursor from the window start toward the window
end, filling variable-size batches with data points spaced by randomized
intervals. Each finished batch may be reversed and/or shuffled before it is
handed out, so consumers see jittered, out-of-order traffic while every
point's timestamp stays inside the window.

The generator is a pull-based iterator: ``next_batch()`` returns the next
batch or ``None`` once the window is covered. It is finite and cannot be
restarted; build a new one from the same options to replay a seeded run.

Example:
    >>> options = GenerationOptions(
    ...     start_time="2024-01-01T00:00:00Z",
    ...     end_time="2024-01-01T00:01:00Z",
    ...     min_interval="10s",
    ...     max_interval="10s",
    ...     seed=7,
    ... )
    >>> generator = BatchGenerator(options)
    >>> batch = generator.next_batch()
    >>> all(p.timestamp % 10_000 == 0 for p in batch)
    True
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from datetime import datetime
from typing import Any

from fake_time_series.generators.shapes import default_shapes
from fake_time_series.observability import get_logger
from fake_time_series.parsing import from_epoch_ms, to_epoch_ms
from fake_time_series.schemas import DataPoint, GenerationOptions, ResolvedWindow

logger = get_logger(__name__)


class BatchGenerator(Iterator[list[Any]]):
    """Lazily produces batches of data points covering a time window.

    Options are resolved on construction, so parse and validation errors
    surface before any batch exists.

    Attributes:
        options: The options the generator was built from
        window: Resolved start, end and interval bounds
        batches_produced: Batches handed out so far
        points_produced: Points handed out so far
    """

    def __init__(self, options: GenerationOptions, *, now: datetime | None = None) -> None:
        """Resolve options and position the cursor at the window start.

        Args:
            options: Generation options
            now: Reference instant for relative time phrases

        Raises:
            ParseError: If a time or interval cannot be parsed.
            ValidationError: If the window or intervals are inconsistent.
        """
        self.options = options
        self.window: ResolvedWindow = options.resolve(now=now)
        self._rng = options.make_rng()
        self._shapes = options.shapes or default_shapes(self._rng)
        self._shape_names = list(self._shapes)
        self._end_ms = to_epoch_ms(self.window.end)
        self._current_ms = to_epoch_ms(self.window.start)
        self._exhausted = False
        self.batches_produced = 0
        self.points_produced = 0
        self._log = logger.bind(
            start=self.window.start.isoformat(),
            end=self.window.end.isoformat(),
        )

    @property
    def current_time(self) -> datetime:
        """Position of the cursor (timestamp of the last point generated)."""
        return from_epoch_ms(self._current_ms)

    @property
    def exhausted(self) -> bool:
        """True once the generator has signalled completion."""
        return self._exhausted

    def __iter__(self) -> BatchGenerator:
        return self

    def __next__(self) -> list[Any]:
        batch = self.next_batch()
        if batch is None:
            raise StopIteration
        return batch

    def next_batch(self) -> list[Any] | None:
        """Produce the next batch, or None when generation is complete.

        Returns:
            A non-empty list of data points (or transformed records), or
            None once the window is covered or no further point fits.
        """
        if self._exhausted:
            return None
        if self._current_ms >= self._end_ms:
            self._finish("window_covered")
            return None

        batch: list[Any] = self._fill_batch()
        if not batch:
            # No point fits in what is left of the window
            self._finish("no_progress")
            return None

        if self._rng.random() < self.options.batch_reverse_probability:
            batch.reverse()
        if self._rng.random() < self.options.batch_shuffle_probability:
            self._rng.shuffle(batch)

        if self.options.transform is not None:
            batch = [self.options.transform(point) for point in batch]

        self.batches_produced += 1
        self.points_produced += len(batch)
        self._log.debug(
            "batch_generated",
            batch_index=self.batches_produced - 1,
            size=len(batch),
        )
        return batch

    def _target_size(self) -> int:
        if self.options.batch_size_randomization:
            return self._rng.randint(1, self.options.max_batch_size)
        return self.options.max_batch_size

    def _next_interval(self, remaining: int) -> int:
        min_interval = self.window.min_interval
        max_interval = self.window.max_interval

        if not self.options.interval_randomization:
            return min_interval

        if self._rng.random() < self.options.interval_skew_probability:
            effective_max = min(max_interval, remaining)
            drawn = min_interval + math.floor(self._rng.random() * (effective_max - min_interval))
            return min(drawn, remaining)

        # Without skew the largest allowed step is taken
        return min(max_interval, remaining)

    def _fill_batch(self) -> list[DataPoint]:
        batch: list[DataPoint] = []

        for _ in range(self._target_size()):
            remaining = self._end_ms - self._current_ms
            if remaining < self.window.min_interval:
                break

            interval = self._next_interval(remaining)
            if interval < self.window.min_interval:
                break

            next_ms = self._current_ms + interval
            if next_ms > self._end_ms or next_ms <= self._current_ms:
                break
            self._current_ms = next_ms

            key = self._rng.choice(self._shape_names)
            data = self._shapes[key](from_epoch_ms(next_ms))
            batch.append(DataPoint(timestamp=next_ms, key=key, data=data))

        return batch

    def _finish(self, reason: str) -> None:
        self._exhausted = True
        self._log.debug(
            "generation_finished",
            reason=reason,
            batches=self.batches_produced,
            points=self.points_produced,
        )
