"""Concurrency-bounded delivery of generated batches to a sink.

Every batch is delivered exactly once through a caller-supplied fetcher.
Batches are admitted to the concurrency window in generation order; their
completion order is unconstrained. A failed delivery (non-success outcome or
an exception from the fetcher) is reported to ``on_error`` and never stops
the other deliveries. Nothing is retried.

Example:
    >>> async def fetcher(batch):
    ...     return DeliveryOutcome(ok=True, status_code=200)
    >>> options = SinkOptions(start_time="-1h", fetcher=fetcher, concurrency=4)
    >>> result = send(options)
"""

from __future__ import annotations

import asyncio
import inspect
import sys
from collections.abc import Callable
from types import TracebackType
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

from fake_time_series.aggregate import generate
from fake_time_series.errors import DeliveryError
from fake_time_series.observability import get_logger
from fake_time_series.schemas import GenerationOptions, GenerationResult

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 10

Fetcher = Callable[[list[Any]], Any]
ErrorHandler = Callable[[DeliveryError], None]


class DeliveryOutcome(BaseModel):
    """Result of delivering one batch.

    Attributes:
        ok: Whether the sink accepted the batch
        status_code: Sink status code, if any
        detail: Response body or failure description
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    status_code: int | None = None
    detail: str = ""

    @classmethod
    def from_response(cls, response: httpx.Response) -> DeliveryOutcome:
        """Build an outcome from an httpx response (2xx is success)."""
        return cls(
            ok=response.is_success,
            status_code=response.status_code,
            detail="" if response.is_success else response.text,
        )


def log_delivery_error(error: DeliveryError) -> None:
    """Default error handler: log the failure at error level.

    Writes to stderr even when logging has not been configured.
    """
    log = logger if structlog.is_configured() else structlog.wrap_logger(
        structlog.PrintLogger(file=sys.stderr)
    )
    log.error(
        "delivery_failed",
        batch_index=error.batch_index,
        status_code=error.status_code,
        detail=error.detail,
    )


class SinkOptions(GenerationOptions):
    """Generation options plus delivery settings.

    Attributes:
        fetcher: Delivers one batch. May be sync or async and may return a
            DeliveryOutcome, an httpx.Response, any object with an ``ok``
            attribute, a bool, or None (treated as success).
        concurrency: Maximum simultaneous deliveries (values below 1 act as 1)
        on_error: Called once per failed delivery (default: log the failure)
    """

    fetcher: Fetcher = Field(description="Delivers one batch to the sink")
    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        description="Maximum simultaneous deliveries",
    )
    on_error: ErrorHandler | None = Field(
        default=None,
        description="Failure callback (default: log the failure)",
    )

    @property
    def effective_concurrency(self) -> int:
        """Concurrency limit actually applied (at least 1)."""
        return max(1, self.concurrency)


class ConcurrencyLimiter:
    """Counting admission gate for in-flight deliveries.

    Wraps an ``asyncio.Semaphore``; waiters are admitted in the order they
    arrived. Also tracks how many holders are active and the peak reached.

    Example:
        >>> limiter = ConcurrencyLimiter(2)
        >>> async def work():
        ...     async with limiter:
        ...         await asyncio.sleep(0)
    """

    def __init__(self, limit: int) -> None:
        self.limit = max(1, limit)
        self._semaphore = asyncio.Semaphore(self.limit)
        self.active = 0
        self.peak = 0

    async def __aenter__(self) -> ConcurrencyLimiter:
        await self._semaphore.acquire()
        self.active += 1
        self.peak = max(self.peak, self.active)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.active -= 1
        self._semaphore.release()


def _to_outcome(value: Any) -> DeliveryOutcome:
    if value is None:
        return DeliveryOutcome(ok=True)
    if isinstance(value, DeliveryOutcome):
        return value
    if isinstance(value, httpx.Response):
        return DeliveryOutcome.from_response(value)
    if isinstance(value, bool):
        return DeliveryOutcome(ok=value)
    if hasattr(value, "ok"):
        ok = bool(value.ok)
        detail = "" if ok else str(getattr(value, "text", ""))
        return DeliveryOutcome(
            ok=ok,
            status_code=getattr(value, "status_code", None),
            detail=detail,
        )
    raise TypeError(f"Unsupported delivery outcome: {type(value).__name__}")


async def _deliver(fetcher: Fetcher, batch: list[Any]) -> DeliveryOutcome:
    value = fetcher(batch)
    if inspect.isawaitable(value):
        value = await value
    return _to_outcome(value)


async def dispatch(
    result: GenerationResult,
    *,
    fetcher: Fetcher,
    concurrency: int = DEFAULT_CONCURRENCY,
    on_error: ErrorHandler | None = None,
) -> GenerationResult:
    """Deliver every batch of an existing result.

    Args:
        result: Batches to deliver
        fetcher: Delivers one batch
        concurrency: Maximum simultaneous deliveries
        on_error: Failure callback (default: ``log_delivery_error``)

    Returns:
        The same result, once every delivery attempt has finished.

    Raises:
        Exception: The first exception raised by ``on_error``, re-raised
            after every delivery has been attempted.
    """
    handler = on_error or log_delivery_error
    limiter = ConcurrencyLimiter(concurrency)
    failures = 0

    async def deliver_one(index: int, batch: list[Any]) -> None:
        nonlocal failures
        async with limiter:
            try:
                outcome = await _deliver(fetcher, batch)
            except Exception as e:
                logger.debug("delivery_raised", batch_index=index, error=repr(e))
                outcome = DeliveryOutcome(ok=False, detail=str(e) or type(e).__name__)
        if not outcome.ok:
            failures += 1
            handler(
                DeliveryError(
                    batch_index=index,
                    status_code=outcome.status_code,
                    detail=outcome.detail,
                )
            )

    logger.info(
        "dispatch_started",
        total_batches=result.total_batches,
        concurrency=limiter.limit,
    )
    tasks = [
        asyncio.create_task(deliver_one(index, batch))
        for index, batch in enumerate(result.batches)
    ]
    settled = await asyncio.gather(*tasks, return_exceptions=True)
    logger.info(
        "dispatch_completed",
        total_batches=result.total_batches,
        failed=failures,
        peak_concurrency=limiter.peak,
    )
    # Handler errors surface only after every delivery has settled
    for outcome in settled:
        if isinstance(outcome, BaseException):
            raise outcome
    return result


async def to_sink(options: SinkOptions) -> GenerationResult:
    """Generate batches from ``options`` and deliver each one.

    Raises:
        ParseError: If a time or interval cannot be parsed.
        ValidationError: If the window or intervals are inconsistent.
    """
    result = generate(options)
    return await dispatch(
        result,
        fetcher=options.fetcher,
        concurrency=options.effective_concurrency,
        on_error=options.on_error,
    )


def send(options: SinkOptions) -> GenerationResult:
    """Blocking wrapper around ``to_sink``."""
    return asyncio.run(to_sink(options))

