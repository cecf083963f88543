"""Interval and timestamp helpers.

All timestamps inside the engine are integer milliseconds since the Unix epoch (UTC).
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timedelta, timezone

SEC_AS_MILI = 1000
MINUTE_AS_MILI = 60 * SEC_AS_MILI
DAY_AS_MILI = 24 * 60 * MINUTE_AS_MILI

_INTERVAL_PATTERN = re.compile(r"^(\d+)([smhdwM])$")
_UNIT_MS = {
    "s": SEC_AS_MILI,
    "m": MINUTE_AS_MILI,
    "h": 60 * MINUTE_AS_MILI,
    "d": DAY_AS_MILI,
    "w": 7 * DAY_AS_MILI,
    "M": 30 * DAY_AS_MILI,
}


def interval_to_ms(interval: str) -> int:
    """Convert interval string (e.g., '4h', '1d') to milliseconds."""
    match = _INTERVAL_PATTERN.match(interval.strip()) if isinstance(interval, str) else None
    if match is None:
        raise ValueError(f"Unknown interval: {interval!r}")
    value = int(match.group(1))
    if value <= 0:
        raise ValueError(f"Interval must be positive: {interval!r}")
    return value * _UNIT_MS[match.group(2)]


def build_interval(interval: str) -> timedelta:
    """Parse an exchange-style interval ('1m', '15m', '4h', '1d', '1w', '1M')."""
    return timedelta(milliseconds=interval_to_ms(interval))


def generate_ts() -> int:
    """Current time in milliseconds."""
    return int(time.time() * 1000)


def floor_mili_ts(ts: int, period: int) -> int:
    """Floor a millisecond timestamp to a multiple of period."""
    return ts - (ts % period)


def ms_to_datetime(ts: int) -> datetime:
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def string_to_timestamp(value: str) -> int:
    """Parse an ISO-8601 date or datetime string (naive means UTC) to milliseconds.

    Raises:
        ValueError: If the string is not a recognised date.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime_to_ms(datetime.fromisoformat(text))
