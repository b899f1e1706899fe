"""
Utility functions for the application.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Return a timezone-aware UTC datetime.

    The record system and SQLite both hand back naive timestamps which we
    treat as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Strip tzinfo after converting to UTC, for DATETIME columns without zone."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)
