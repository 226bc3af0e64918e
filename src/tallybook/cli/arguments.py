"""CLI helpers for parsing option values or exiting with an error."""

from datetime import date
from decimal import Decimal

import click

from tallybook.database.base import Database
from tallybook.domain.entities import Category
from tallybook.domain.errors import NotFoundError
from tallybook.utils.amount_parser import parse_amount
from tallybook.utils.category_resolver import resolve_category
from tallybook.utils.date_parser import parse_date, parse_month_arg


def date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def month_or_exit(ctx: click.Context, value: str, label: str = "month") -> str:
    try:
        return parse_month_arg(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)


def category_or_exit(ctx: click.Context, db: Database, value: str) -> Category:
    """Resolve category name or ID, or exit with a CLI error."""
    try:
        return resolve_category(db, value)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def format_money(value: Decimal | None) -> str:
    """Render an amount as $1,234.56 with a leading minus for negatives."""
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
