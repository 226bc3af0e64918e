"""Month-key arithmetic.

Months are ``YYYY-MM`` strings; they sort lexicographically in calendar
order, which the aggregation code relies on.
"""

from datetime import date, datetime
from typing import Iterable, Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

MonthLike = Union[str, date]


def month_of(value: date) -> str:
    """Return the ``YYYY-MM`` key of a date."""
    return f"{value.year:04d}-{value.month:02d}"


def month_start(month: str) -> date:
    """Return the first day of a ``YYYY-MM`` month."""
    year, mon = month.split("-")[:2]
    return date(int(year), int(mon), 1)


def parse_month(text: str) -> str:
    """Parse ``YYYY-MM`` or any dateutil-parseable date into a month key.

    Raises:
        ValueError: If the text is not a recognisable month or date
    """
    if text is None:
        raise ValueError("Empty month string")
    text = text.strip()
    parts = text.split("-")
    if len(parts) == 2 and all(part.isdigit() for part in parts):
        year, mon = int(parts[0]), int(parts[1])
        if 1 <= mon <= 12:
            return f"{year:04d}-{mon:02d}"
        raise ValueError(f"Invalid month '{text}'")
    try:
        return month_of(date_parser.parse(text).date())
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse month '{text}': {e}")


def add_months(value: MonthLike, months: int) -> str:
    """Shift a month key (or a date) by a number of months."""
    if isinstance(value, datetime):
        value = value.date()
    start = value.replace(day=1) if isinstance(value, date) else month_start(value)
    return month_of(start + relativedelta(months=months))


def next_month(month: str) -> str:
    """Return the month after ``month``."""
    return add_months(month, 1)


def month_range(start: str, end: str) -> list[str]:
    """Inclusive list of months from ``start`` to ``end``; empty if reversed."""
    result = []
    current = start
    while current <= end:
        result.append(current)
        current = next_month(current)
    return result


def filter_months(
    months: Iterable[str], start: Optional[str] = None, end: Optional[str] = None
) -> list[str]:
    """Keep months inside an optional [start, end] window."""
    return [
        m
        for m in months
        if (start is None or m >= start) and (end is None or m <= end)
    ]


def is_paid_late(month_due: Optional[str], month_paid: Optional[str]) -> bool:
    """True when settlement happened after the month it was due."""
    if not month_due or not month_paid:
        return False
    return month_paid > month_due


def is_overdue(month_due: Optional[str], status: str, current_month: str) -> bool:
    """True when a still-pending item was due before ``current_month``."""
    if not month_due or status in ("paid", "received"):
        return False
    return month_due < current_month
