"""Centralized time API for error-relay.

This module provides consistent datetime handling throughout the application:
- UTC-aware datetimes for event timestamps and outgoing payloads
- RFC 3339 / ISO 8601 formatting for chat embeds and log records
- Go-style duration strings ("30s", "1m30s", "500ms") for the bot interval
- Injectable clock for testing

Usage:
    from error_relay.core.timing import utc_now, format_rfc3339, parse_duration

    timestamp = utc_now()  # datetime with UTC timezone
    record["timestamp"] = format_rfc3339(timestamp)
    interval = parse_duration("1m30s")  # 90.0
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, datetime


# Injectable clock for testing - returns naive UTC datetime
def _default_clock() -> datetime:
    """Return current naive UTC time."""
    return datetime.now(UTC).replace(tzinfo=None)


_clock: Callable[[], datetime] = _default_clock


def set_clock(clock: Callable[[], datetime]) -> None:
    """Set custom clock for testing.

    Args:
        clock: Function returning naive UTC datetime

    """
    global _clock
    _clock = clock


def reset_clock() -> None:
    """Reset clock to default (real time)."""
    global _clock
    _clock = _default_clock


def utc_now() -> datetime:
    """Get current UTC time with timezone info.

    Returns:
        Timezone-aware datetime in UTC

    """
    return _clock().replace(tzinfo=UTC)


# -----------------------------------------------------------------------------
# Formatting functions
# -----------------------------------------------------------------------------


def format_iso(dt: datetime | None = None) -> str:
    """Format datetime as ISO 8601 string.

    Args:
        dt: Datetime to format, defaults to utc_now()

    Returns:
        ISO 8601 formatted string

    """
    if dt is None:
        dt = utc_now()
    return dt.isoformat()


def format_rfc3339(dt: datetime | None = None) -> str:
    """Format datetime as second-precision RFC 3339 UTC string.

    Args:
        dt: Datetime to format, defaults to utc_now(). Naive values are
            taken as UTC.

    Returns:
        String like "2025-01-31T12:00:05Z"

    """
    if dt is None:
        dt = utc_now()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


# -----------------------------------------------------------------------------
# Duration parsing
# -----------------------------------------------------------------------------

_SECONDS_PER_UNIT: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a Go-style duration string into seconds.

    A duration is an optional sign followed by one or more decimal numbers,
    each with a unit suffix: "300ms", "-1.5h", "2h45m". Valid units are
    "ns", "us" (or "µs"), "ms", "s", "m", "h". The bare string "0" is also
    accepted.

    Args:
        value: Duration string.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If value is not a valid duration string.

    Examples:
        >>> parse_duration("30s")
        30.0
        >>> parse_duration("1m30s")
        90.0
        >>> parse_duration("250ms")
        0.25

    """
    text = value.strip()
    if not text:
        raise ValueError("invalid duration: empty string")

    sign = 1.0
    if text[0] in "+-":
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        number, unit = match.groups()
        total += float(number) * _SECONDS_PER_UNIT[unit]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration: {value!r}")

    return sign * total
