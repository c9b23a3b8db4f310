"""Delivery of generated batches to external sinks."""

from __future__ import annotations

from fake_time_series.sink.dispatcher import (
    DEFAULT_CONCURRENCY,
    ConcurrencyLimiter,
    DeliveryOutcome,
    SinkOptions,
    dispatch,
    log_delivery_error,
    send,
    to_sink,
)
from fake_time_series.sink.http import DEFAULT_HEADERS, DEFAULT_TIMEOUT, HttpSink, encode_batch

__all__ = [
    "DEFAULT_CONCURRENCY",
    "DEFAULT_HEADERS",
    "DEFAULT_TIMEOUT",
    "ConcurrencyLimiter",
    "DeliveryOutcome",
    "HttpSink",
    "SinkOptions",
    "dispatch",
    "encode_batch",
    "log_delivery_error",
    "send",
    "to_sink",
]
