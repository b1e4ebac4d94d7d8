"""Utility functions for date manipulation."""

from datetime import date, datetime, timedelta

import pytz

from src.common.config.settings import settings


def today() -> date:
    """Returns the current date in the configured business timezone."""
    return datetime.now(pytz.timezone(settings.TIMEZONE)).date()


def now() -> datetime:
    """Returns a timezone-aware timestamp in the configured business timezone."""
    return datetime.now(pytz.timezone(settings.TIMEZONE))


def parse_date(value: date | str | None) -> date | None:
    """Accepts a date, an ISO date string (YYYY-MM-DD) or an ISO datetime string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def add_months(start: date, months: int) -> date:
    """
    Calendar-month addition that lets day-of-month overflow roll into the next month.

    2025-01-31 + 1 month -> 2025-03-03, 2024-01-31 + 1 month -> 2024-03-02.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=start.day - 1)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def format_date_for_db(value: date | str | None) -> str | None:
    """Formats a date or ISO date string for MySQL DATE."""
    try:
        parsed = parse_date(value)
    except (ValueError, TypeError):
        return None
    return parsed.strftime("%Y-%m-%d") if parsed else None
