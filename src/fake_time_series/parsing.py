"""Time and interval expression parsing.

Converts the flexible inputs accepted by the generation options into the two
values the generator works with: an aware UTC ``datetime`` and a duration in
integer milliseconds.

Supported time inputs:
- ``datetime`` instances (naive values are taken as UTC)
- numbers and digit-only strings, read as epoch milliseconds
- keywords: ``now``, ``today``, ``yesterday``, ``tomorrow``
- relative phrases: ``-1 day``, ``+2h``, ``3 hours ago``, ``in 5 minutes``
- absolute timestamps understood by ``dateutil`` (``2024-01-01T00:00:00Z``)

Supported interval inputs:
- numbers, read as milliseconds
- ``timedelta`` instances
- duration strings such as ``500ms``, ``10s``, ``1.5 hours``, ``2d``

Example:
    >>> parse_interval("10s")
    10000
    >>> parse_time("2024-01-01T00:00:00Z")
    datetime.datetime(2024, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone

from dateutil import parser as dtparser

from fake_time_series.errors import ParseError

TimeInput = datetime | int | float | str
IntervalInput = int | float | str | timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SECOND_MS = 1000
MINUTE_MS = SECOND_MS * 60
HOUR_MS = MINUTE_MS * 60
DAY_MS = HOUR_MS * 24
WEEK_MS = DAY_MS * 7
YEAR_MS = DAY_MS * 365.25

UNIT_MS: dict[str, float] = {
    "years": YEAR_MS,
    "year": YEAR_MS,
    "yrs": YEAR_MS,
    "yr": YEAR_MS,
    "y": YEAR_MS,
    "weeks": WEEK_MS,
    "week": WEEK_MS,
    "w": WEEK_MS,
    "days": DAY_MS,
    "day": DAY_MS,
    "d": DAY_MS,
    "hours": HOUR_MS,
    "hour": HOUR_MS,
    "hrs": HOUR_MS,
    "hr": HOUR_MS,
    "h": HOUR_MS,
    "minutes": MINUTE_MS,
    "minute": MINUTE_MS,
    "mins": MINUTE_MS,
    "min": MINUTE_MS,
    "m": MINUTE_MS,
    "seconds": SECOND_MS,
    "second": SECOND_MS,
    "secs": SECOND_MS,
    "sec": SECOND_MS,
    "s": SECOND_MS,
    "milliseconds": 1,
    "millisecond": 1,
    "msecs": 1,
    "msec": 1,
    "ms": 1,
}

# Longest alternatives first so "ms" is not read as "m"
_UNIT_PATTERN = "|".join(sorted(UNIT_MS, key=len, reverse=True))

_EPOCH_MS_RE = re.compile(r"^-?\d+$")

_DURATION_RE = re.compile(
    rf"^(?P<amount>-?(?:\d+)?\.?\d+)\s*(?P<unit>{_UNIT_PATTERN})?$",
    re.IGNORECASE,
)

_RELATIVE_RE = re.compile(
    rf"^(?:(?P<sign>[+-])\s*|(?P<prefix>in)\s+)?"
    rf"(?P<duration>(?:\d+)?\.?\d+\s*(?:{_UNIT_PATTERN}))"
    rf"(?:\s+(?P<suffix>ago|from now))?$",
    re.IGNORECASE,
)

# ms-style inputs longer than this are rejected outright
_MAX_EXPRESSION_LENGTH = 100


def parse_interval(value: IntervalInput) -> int:
    """Resolve an interval expression to whole milliseconds.

    Args:
        value: Milliseconds as a number, a ``timedelta``, or a duration
            string like ``"10s"``. A string without a unit is read as
            milliseconds.

    Returns:
        Duration in milliseconds. Negative durations are returned as is;
        rejecting them is the caller's job.

    Raises:
        ParseError: If the value is not a recognised duration.
    """
    if isinstance(value, bool):
        raise ParseError(f"Unable to parse interval: {value!r}", value=value)
    if isinstance(value, timedelta):
        return value // timedelta(milliseconds=1)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ParseError(f"Unable to parse interval: {value!r}", value=value)
        return int(round(value))
    if isinstance(value, str):
        text = value.strip()
        if not text or len(text) > _MAX_EXPRESSION_LENGTH:
            raise ParseError(f"Unable to parse interval: {value!r}", value=value)
        match = _DURATION_RE.match(text)
        if match is None:
            raise ParseError(f"Unable to parse interval: {value!r}", value=value)
        amount = float(match.group("amount"))
        unit = (match.group("unit") or "ms").lower()
        return int(round(amount * UNIT_MS[unit]))
    raise ParseError(f"Unable to parse interval: {value!r}", value=value)


def parse_time(value: TimeInput, *, now: datetime | None = None) -> datetime:
    """Resolve a time expression to an aware UTC datetime.

    Args:
        value: A datetime, epoch milliseconds, or a free-form string.
        now: Reference instant for keywords and relative phrases
            (default: the current time).

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        ParseError: If the value cannot be resolved to a date.
    """
    if isinstance(value, bool):
        raise ParseError(f"Unable to parse time: {value!r}", value=value)
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ParseError(f"Unable to parse time: {value!r}", value=value)
        return from_epoch_ms(int(value))
    if not isinstance(value, str):
        raise ParseError(f"Unable to parse time: {value!r}", value=value)

    text = value.strip()
    if not text:
        raise ParseError("Unable to parse time: empty string", value=value)

    reference = _as_utc(now) if now is not None else datetime.now(timezone.utc)

    keyword = _resolve_keyword(text.lower(), reference)
    if keyword is not None:
        return keyword

    relative = _resolve_relative(text, reference)
    if relative is not None:
        return relative

    if _EPOCH_MS_RE.match(text):
        return from_epoch_ms(int(text))

    try:
        parsed = dtparser.parse(text)
    except (ValueError, OverflowError) as e:
        raise ParseError(
            f"Unable to parse time: {value}",
            value=value,
            internal_details=str(e),
        ) from e
    return _as_utc(parsed)


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    return (_as_utc(moment) - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(millis: int) -> datetime:
    """Convert integer epoch milliseconds to an aware UTC datetime."""
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except OverflowError as e:
        raise ParseError(f"Unable to parse time: {millis!r}", value=millis) from e


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _resolve_keyword(text: str, reference: datetime) -> datetime | None:
    if text == "now":
        return reference
    midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    if text == "today":
        return midnight
    if text == "yesterday":
        return midnight - timedelta(days=1)
    if text == "tomorrow":
        return midnight + timedelta(days=1)
    return None


def _resolve_relative(text: str, reference: datetime) -> datetime | None:
    match = _RELATIVE_RE.match(text)
    if match is None:
        return None

    sign = match.group("sign")
    prefix = match.group("prefix")
    suffix = match.group("suffix")
    # A bare "5 days" has no direction and is left to dateutil
    if not (sign or prefix or suffix):
        return None
    if sign and suffix:
        return None

    offset = timedelta(milliseconds=parse_interval(match.group("duration")))
    if sign == "-" or (suffix and suffix.lower() == "ago"):
        return reference - offset
    return reference + offset
