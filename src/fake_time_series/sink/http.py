"""HTTP sink: POST each batch as a JSON array.

Example:
    >>> async with HttpSink("http://localhost:8080/ingest") as sink:
    ...     options = SinkOptions(start_time="-1h", fetcher=sink)
    ...     result = await to_sink(options)
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx
from pydantic import TypeAdapter

from fake_time_series.observability import get_logger
from fake_time_series.sink.dispatcher import DeliveryOutcome

logger = get_logger(__name__)

DEFAULT_HEADERS: dict[str, str] = {"Content-Type": "application/json"}
DEFAULT_TIMEOUT = 30.0

_batch_adapter: TypeAdapter[list[Any]] = TypeAdapter(list[Any])


def encode_batch(batch: list[Any]) -> bytes:
    """Serialize a batch (data points or transformed records) to JSON bytes."""
    return _batch_adapter.dump_json(batch)


class HttpSink:
    """Fetcher delivering batches to a URL through a shared httpx.AsyncClient.

    Instances are callables usable as ``SinkOptions.fetcher``. A client
    created by the sink is closed by ``aclose()`` or on context exit; a
    client passed in is left open.

    Attributes:
        url: Sink endpoint
        headers: Headers sent with every request
    """

    def __init__(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            url: Endpoint receiving the POST requests
            headers: Request headers (default: JSON content type)
            timeout: Request timeout in seconds for a sink-owned client
            client: Existing client to reuse
        """
        self.url = url
        self.headers = dict(headers) if headers is not None else dict(DEFAULT_HEADERS)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._log = logger.bind(url=url)

    async def __call__(self, batch: list[Any]) -> DeliveryOutcome:
        response = await self._client.post(
            self.url,
            content=encode_batch(batch),
            headers=self.headers,
        )
        self._log.debug("batch_posted", size=len(batch), status_code=response.status_code)
        return DeliveryOutcome.from_response(response)

    async def aclose(self) -> None:
        """Close the underlying client if the sink created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpSink:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
