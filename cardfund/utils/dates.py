"""Calendar helpers for billing periods.

All timestamps are naive UTC, matching what the database columns store.
"""

from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(UTC).replace(tzinfo=None)


def first_day_of_month(day: date) -> date:
    """First calendar day of the month containing ``day``."""
    return day.replace(day=1)


def first_day_of_next_month(day: date) -> date:
    """First calendar day of the month after the one containing ``day``.

    Example: 2025-12-17 -> 2026-01-01
    """
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def start_of_month(moment: datetime) -> datetime:
    """Midnight on the first day of the month containing ``moment``."""
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

