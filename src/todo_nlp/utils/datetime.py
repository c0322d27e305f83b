"""Datetime utilities shared by the parser passes.

Due dates are calendar dates in the user's local time, so everything here
works with naive local datetimes and plain ``date`` objects.
"""

from datetime import date, datetime, timedelta
from typing import Optional


def now_local() -> datetime:
    """Return the current local datetime (naive)."""
    return datetime.now()


def format_clock(hour: int, minute: Optional[int] = 0) -> str:
    """Format an hour/minute pair as a zero-padded ``HH:MM`` string.
    
    Args:
        hour: Hour of day, 0-23
        minute: Minute of hour; ``None`` is treated as 0
        
    Returns:
        The clock string, e.g. ``"09:05"``
    """
    return f"{hour:02d}:{(minute or 0):02d}"


def is_valid_clock(hour: int, minute: int = 0) -> bool:
    """Check that hour and minute describe a real time of day."""
    return 0 <= hour < 24 and 0 <= minute < 60


def add_months(day: date, months: int) -> date:
    """Add months to a date, clamping the day to the target month's length."""
    month = day.month - 1 + months
    year = day.year + month // 12
    month = month % 12 + 1
    for candidate in (day.day, 30, 29, 28):
        try:
            return day.replace(year=year, month=month, day=min(day.day, candidate))
        except ValueError:
            continue
    return day.replace(year=year, month=month, day=28)


def next_weekday(reference: date, weekday: int) -> date:
    """Get the next date falling on ``weekday`` (0=Monday), today included."""
    days_ahead = (weekday - reference.weekday()) % 7
    return reference + timedelta(days=days_ahead)


def safe_date(year: int, month: int, day: int) -> Optional[date]:
    """Build a date, returning None for impossible calendar dates."""
    try:
        return date(year, month, day)
    except ValueError:
        return None
