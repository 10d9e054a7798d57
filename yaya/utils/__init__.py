"""Small shared helpers for timestamps and phone numbers."""

from .phone import normalize_phone
from .timestamps import ensure_utc, format_date, format_timestamp, utc_now

__all__ = [
    "normalize_phone",
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "format_date",
]
