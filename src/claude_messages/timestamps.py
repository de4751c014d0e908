"""Normalize the timestamp encodings found in Claude Code logs.

Log producers have written Unix seconds, Unix milliseconds and ISO 8601
strings over time. All of them become timezone-aware datetimes here.
"""

from datetime import datetime, timezone

from .config import UNIX_SECONDS_THRESHOLD
from .core import INVALID_TIME


def normalize_timestamp(value, now: datetime | None = None) -> datetime:
    """Convert a raw ``timestamp`` field to an aware datetime.

    Missing (or falsy) values mean "now". Unparseable values return
    INVALID_TIME instead of raising.
    """
    if not value:
        return now or datetime.now(timezone.utc)

    if isinstance(value, bool):
        return INVALID_TIME

    if isinstance(value, (int, float)):
        return _from_number(value)

    if isinstance(value, str):
        return _parse_string(value.strip())

    return INVALID_TIME


def _from_number(value: float) -> datetime:
    millis = value * 1000 if value < UNIX_SECONDS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return INVALID_TIME


def _parse_string(value: str) -> datetime:
    # Digit-only strings are epoch values written by some log producers, not
    # dates; they get the same seconds/milliseconds rule as real numbers.
    try:
        return _from_number(float(value))
    except ValueError:
        pass

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return INVALID_TIME

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
