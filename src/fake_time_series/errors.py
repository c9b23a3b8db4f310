"""Exception hierarchy for fake-time-series.

This module defines the exception classes used throughout the package:
- FakeTimeSeriesError: Base exception for all fake-time-series errors
- ParseError: A time or interval expression could not be resolved
- ValidationError: Resolved options violate the generation window invariants
- DeliveryError: A single batch could not be delivered to the sink
- ConfigurationError: A configuration file could not be loaded

User-facing messages are safe to display. Technical details are logged
internally via structlog and never exposed in the message itself.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class FakeTimeSeriesError(Exception):
    """Base exception for fake-time-series.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details for logging. Logged
            internally but never part of the exception message.

    Example:
        >>> raise FakeTimeSeriesError(
        ...     "Generation failed",
        ...     internal_details="shape 'temperature' raised KeyError('unit')",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "fake_time_series_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ParseError(FakeTimeSeriesError):
    """Raised when a time or interval expression cannot be parsed.

    Attributes:
        value: The offending input.

    Example:
        >>> raise ParseError("Unable to parse time: next blue moon", value="next blue moon")
    """

    def __init__(
        self,
        user_message: str,
        *,
        value: object = None,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message, internal_details=internal_details)
        self.value = value


class ValidationError(FakeTimeSeriesError):
    """Raised when resolved generation options are inconsistent.

    Use this exception when:
    - The start time is not before the end time
    - An interval is zero or negative
    - The minimum interval exceeds the maximum interval

    Always raised before the first batch is produced.
    """

    pass


class DeliveryError(FakeTimeSeriesError):
    """Describes one failed batch delivery.

    The dispatcher never raises this exception. It is handed to the
    ``on_error`` callback so the rest of the run can carry on.

    Attributes:
        batch_index: Position of the batch in generation order.
        status_code: HTTP status of the sink response, if one was received.
        detail: Response body or exception text.

    Example:
        >>> err = DeliveryError(batch_index=3, status_code=503, detail="unavailable")
        >>> str(err)
        'Delivery of batch 3 failed with status 503: unavailable'
    """

    def __init__(
        self,
        *,
        batch_index: int,
        status_code: int | None = None,
        detail: str = "",
    ) -> None:
        if status_code is None:
            message = f"Delivery of batch {batch_index} failed: {detail}"
        else:
            message = f"Delivery of batch {batch_index} failed with status {status_code}: {detail}"
        super().__init__(message)
        self.batch_index = batch_index
        self.status_code = status_code
        self.detail = detail


class ConfigurationError(FakeTimeSeriesError):
    """Raised when a configuration file cannot be loaded.

    Use this exception when:
    - The configuration file does not exist
    - The YAML cannot be parsed
    - A shape reference cannot be imported

    Attributes:
        file_path: Path to the configuration file (if known).
        field_path: Dot-separated path to the invalid field (e.g., "shapes.cpu").

    Example:
        >>> raise ConfigurationError(
        ...     "Cannot import shape reference",
        ...     file_path="fake-time-series.yaml",
        ...     field_path="shapes.cpu",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        context_parts: list[str] = []
        if file_path:
            context_parts.append(f"in {file_path}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.file_path = file_path
        self.field_path = field_path
