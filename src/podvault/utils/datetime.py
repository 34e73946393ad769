"""Timezone helpers.

SQLite has no timezone-aware column type, so values cross the database
boundary as naive UTC and are re-tagged with UTC on the way out.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Convert a datetime to naive UTC for storage.

    Naive inputs are assumed to already be UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime read back from storage."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
