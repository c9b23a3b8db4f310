"""Synthetic time-series traffic for exercising ingestion pipelines.

This package generates batches of timestamped events over a time window,
with randomized spacing, batch sizes and in-batch ordering, and can deliver
them to an HTTP sink with bounded concurrency.

Key Components:
- parsing: Time and interval expressions ("-1 day", "10s", ISO timestamps)
- generators: The batch generator and built-in shape functions
- aggregate: Drains a generator into a GenerationResult
- sink: Concurrency-bounded dispatcher and the httpx-based HTTP sink
- config: Environment settings and YAML config files

Example:
    >>> from fake_time_series import GenerationOptions, generate
    >>>
    >>> result = generate(
    ...     GenerationOptions(
    ...         start_time="2024-01-01T00:00:00Z",
    ...         end_time="2024-01-01T00:01:00Z",
    ...         min_interval="10s",
    ...         max_interval="10s",
    ...         seed=42,
    ...     )
    ... )
    >>> result.total_messages
    6

Example with a sink:
    >>> from fake_time_series.sink import HttpSink, SinkOptions, to_sink
    >>>
    >>> async with HttpSink("http://localhost:8080/ingest") as sink:
    ...     await to_sink(SinkOptions(start_time="-1h", fetcher=sink, concurrency=5))
"""

from __future__ import annotations

from fake_time_series.aggregate import generate
from fake_time_series.errors import (
    ConfigurationError,
    DeliveryError,
    FakeTimeSeriesError,
    ParseError,
    ValidationError,
)
from fake_time_series.generators.batches import BatchGenerator
from fake_time_series.parsing import parse_interval, parse_time
from fake_time_series.schemas import (
    DataPoint,
    GenerationOptions,
    GenerationResult,
    ShapeRegistry,
)

__version__ = "0.1.0"

__all__ = [
    "BatchGenerator",
    "ConfigurationError",
    "DataPoint",
    "DeliveryError",
    "FakeTimeSeriesError",
    "GenerationOptions",
    "GenerationResult",
    "ParseError",
    "ShapeRegistry",
    "ValidationError",
    "__version__",
    "generate",
    "parse_interval",
    "parse_time",
]
