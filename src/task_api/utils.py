from __future__ import annotations

from datetime import datetime, timedelta, timezone

# Wire precision for every timestamp the API stores or returns.
_ONE_MS = timedelta(milliseconds=1)


def _truncate_ms(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


# PUBLIC_INTERFACE
def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC value truncated to milliseconds.

    Naive values are taken to already be in UTC (this is how they come back
    from SQLite, which does not keep offsets).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return _truncate_ms(value)


# PUBLIC_INTERFACE
def utcnow() -> datetime:
    """Current time as an aware UTC datetime at millisecond precision."""
    return _truncate_ms(datetime.now(timezone.utc))


# PUBLIC_INTERFACE
def next_timestamp(previous: datetime) -> datetime:
    """
    Return a fresh "updated at" value that is strictly later than `previous`
    at millisecond precision, even when called within the same millisecond.
    """
    now = utcnow()
    floor = to_utc(previous) + _ONE_MS
    return now if now >= floor else floor


# PUBLIC_INTERFACE
def format_timestamp(value: datetime) -> str:
    """
    Format a datetime as ISO 8601 UTC with three fractional digits and a 'Z'
    suffix, e.g. '2024-12-31T23:59:59.000Z'.
    """
    return to_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")
