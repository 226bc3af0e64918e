"""Date parsing utilities."""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from tallybook.utils.months import month_of, parse_month


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative words "today", "yesterday", "tomorrow", and
    "last/this/next month|year".

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

    for prefix, offset in (("last ", -1), ("this ", 0), ("next ", 1)):
        if date_str.startswith(prefix):
            period = date_str[len(prefix):]
            if period == "month":
                return (today + relativedelta(months=offset)).replace(day=1)
            if period == "year":
                return today.replace(month=1, day=1) + relativedelta(years=offset)

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month_arg(month_str: str) -> str:
    """Parse a CLI month argument ("2024-03", "this month", "2024-03-15").

    Raises:
        ValueError: If the value is neither a month nor a date
    """
    stripped = month_str.strip()
    try:
        return parse_month(stripped)
    except ValueError:
        return month_of(parse_date(stripped))
