"""Tests for date, month and amount parsing."""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from tallybook.utils.amount_parser import parse_amount, parse_optional_amount
from tallybook.utils.date_parser import parse_date, parse_month_arg


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    result = parse_date("today")
    assert result == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    result = parse_date("yesterday")
    assert result == date.today() - timedelta(days=1)


def test_parse_tomorrow():
    """Test parsing 'tomorrow'."""
    result = parse_date("Tomorrow")
    assert result == date.today() + timedelta(days=1)


def test_parse_last_month():
    """Test parsing 'last month'."""
    result = parse_date("last month")
    # Should be first day of last month
    today = date.today()
    if today.month == 1:
        expected = date(today.year - 1, 12, 1)
    else:
        expected = date(today.year, today.month - 1, 1)
    assert result == expected


def test_parse_this_month():
    """Test parsing 'this month'."""
    result = parse_date("this month")
    today = date.today()
    assert result == date(today.year, today.month, 1)


def test_parse_next_year():
    """Test parsing 'next year'."""
    result = parse_date("next year")
    assert result == date(date.today().year + 1, 1, 1)


def test_parse_invalid_date():
    """Test parsing garbage."""
    with pytest.raises(ValueError):
        parse_date("not a date at all")


def test_parse_month_arg_accepts_month_key():
    assert parse_month_arg("2024-3") == "2024-03"
    assert parse_month_arg(" 2024-11 ") == "2024-11"


def test_parse_month_arg_accepts_dates():
    assert parse_month_arg("2024-03-15") == "2024-03"
    assert parse_month_arg("March 15, 2024") == "2024-03"


def test_parse_month_arg_rejects_bad_month():
    with pytest.raises(ValueError):
        parse_month_arg("no such month")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", Decimal("123.45")),
        ("$1,234.56", Decimal("1234.56")),
        ("(50.00)", Decimal("-50.00")),
        ("-$7", Decimal("-7")),
    ],
)
def test_parse_amount_formats(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_rejects_non_numbers(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_parse_optional_amount_blank_is_none():
    assert parse_optional_amount(None) is None
    assert parse_optional_amount("  ") is None
    assert parse_optional_amount("0") == Decimal("0")
