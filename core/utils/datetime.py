"""Datetime utilities for common operations."""

from datetime import datetime, timedelta, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    Some backends (SQLite) hand timestamps back without tzinfo even though
    every value is written in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_before(reference: datetime, days: int) -> datetime:
    """Return the instant `days` whole days before `reference`."""
    return reference - timedelta(days=days)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a timestamp as ISO-8601 in UTC, passing None through."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
