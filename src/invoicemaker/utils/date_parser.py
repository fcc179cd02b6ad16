"""Date parsing utilities."""

import re
from datetime import date, datetime, time, timedelta, UTC
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_AGO_PATTERN = re.compile(r"^(\d+)\s+(day|week|month|year)s?\s+ago$")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute and relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", "1/15/24", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "3 days ago",
      "6 months ago", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    match = _AGO_PATTERN.match(date_str)
    if match:
        amount = int(match.group(1))
        unit = match.group(2)
        return today - relativedelta(**{f"{unit}s": amount})

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(date_str: str) -> datetime:
    """Parse a date string into an aware UTC datetime at midnight.

    Args:
        date_str: Any string accepted by :func:`parse_date`

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If date string cannot be parsed
    """
    return datetime.combine(parse_date(date_str), time.min, tzinfo=UTC)
