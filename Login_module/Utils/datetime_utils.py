"""
DateTime utility functions - all operations use UTC.
Database storage, expiry checks and API responses all use UTC.
"""
from datetime import datetime, timezone
from typing import Optional


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware UTC.
    Naive datetimes (e.g. read back from SQLite) are assumed to already be UTC.

    Args:
        dt: Datetime object (timezone-aware or naive)

    Returns:
        UTC datetime object, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_utc_isoformat(dt: Optional[datetime]) -> Optional[str]:
    """
    Convert datetime to UTC and return as ISO format string.
    Used for API responses.
    """
    utc_dt = to_utc(dt)
    if utc_dt is None:
        return None
    return utc_dt.isoformat()


def now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)
