"""Aggregation of a full generation run into a GenerationResult."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fake_time_series.generators.batches import BatchGenerator
from fake_time_series.observability import get_logger
from fake_time_series.schemas import GenerationOptions, GenerationResult

logger = get_logger(__name__)


def generate(
    options: GenerationOptions | None = None,
    *,
    now: datetime | None = None,
    **kwargs: Any,
) -> GenerationResult:
    """Run the batch generator to completion and collect every batch.

    Args:
        options: Generation options. When omitted, options are built from
            ``kwargs`` (e.g. ``generate(start_time="-1h", seed=1)``).
        now: Reference instant for relative time phrases
        **kwargs: Option fields, used only when ``options`` is None

    Returns:
        GenerationResult with all batches and summary counts.

    Raises:
        ParseError: If a time or interval cannot be parsed.
        ValidationError: If the window or intervals are inconsistent.
    """
    if options is None:
        options = GenerationOptions(**kwargs)

    generator = BatchGenerator(options, now=now)
    batches: list[list[Any]] = []
    total_messages = 0

    batch = generator.next_batch()
    while batch is not None:
        batches.append(batch)
        total_messages += len(batch)
        batch = generator.next_batch()

    window = generator.window
    logger.info(
        "generation_completed",
        total_batches=len(batches),
        total_messages=total_messages,
        start=window.start.isoformat(),
        end=window.end.isoformat(),
    )

    return GenerationResult(
        batches=batches,
        start_time=window.start,
        end_time=window.end,
        min_interval=window.min_interval,
        max_interval=window.max_interval,
        total_batches=len(batches),
        total_messages=total_messages,
    )
