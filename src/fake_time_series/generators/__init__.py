"""Batch generation and shape functions."""

from __future__ import annotations

from fake_time_series.generators.batches import BatchGenerator
from fake_time_series.generators.shapes import (
    BUILTIN_SHAPES,
    default_shapes,
    resolve_shape,
)

__all__ = [
    "BUILTIN_SHAPES",
    "BatchGenerator",
    "default_shapes",
    "resolve_shape",
]
