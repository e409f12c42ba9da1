"""
Utilities Package

Date/time helpers shared by the models and services.

The store may hand back naive datetimes (SQLite drops the offset even for
DateTime(timezone=True) columns). All comparisons go through as_utc() so
naive and aware values can be mixed safely; naive values are taken as UTC.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Return `value` as an aware UTC datetime, treating naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
