"""Timestamp utilities. All stored and logged times are timezone-aware UTC."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Example:
        >>> ensure_utc(datetime(2025, 11, 4, 12, 0)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO 8601 UTC with microseconds and a 'Z' suffix.

    This is the storage format for every timestamp column.

    Example:
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00.000000Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a string written by format_timestamp() back into a UTC datetime."""
    if not value:
        return None

    cleaned = value.rstrip("Z")
    try:
        dt = datetime.strptime(cleaned, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(cleaned, "%Y-%m-%dT%H:%M:%S")
    return dt.replace(tzinfo=timezone.utc)


def format_date(dt: Optional[datetime]) -> str:
    """Short day/month/year date used in USSD screens (today if dt is None)."""
    return (ensure_utc(dt) or utc_now()).strftime("%d/%m/%Y")
