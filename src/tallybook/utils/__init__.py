"""Utility functions for tallybook."""

from tallybook.utils.date_parser import parse_date, parse_month_arg
from tallybook.utils.amount_parser import parse_amount
from tallybook.utils.money import round2, to_amount

__all__ = ["parse_date", "parse_month_arg", "parse_amount", "round2", "to_amount"]
