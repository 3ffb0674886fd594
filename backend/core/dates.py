"""
Date helpers shared by billing, credits and goal tracking.
"""

import calendar
from datetime import UTC, date, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def from_timestamp(value: int | float | None) -> datetime | None:
    """Convert a Unix timestamp from the payment processor to an aware datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def first_day_of_next_month(now: datetime) -> datetime:
    if now.month == 12:
        return datetime(now.year + 1, 1, 1, tzinfo=UTC)
    return datetime(now.year, now.month + 1, 1, tzinfo=UTC)


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]
