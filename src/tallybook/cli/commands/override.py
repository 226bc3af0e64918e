"""Manual override commands for P&L and cash-flow cells."""

import click
from tallybook.cli.arguments import amount_or_exit, category_or_exit, format_money, month_or_exit
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService
from tallybook.domain.overrides import TAX_OVERRIDE_CATEGORY_ID

TAX_ROW_NAMES = ("tax", "income-tax")


@click.group()
def override_group():
    """Pin individual P&L or cash-flow cells to a manual amount."""
    pass


def _target(ctx, db, category: str) -> int:
    if category.lower() in TAX_ROW_NAMES:
        return TAX_OVERRIDE_CATEGORY_ID
    return category_or_exit(ctx, db, category).id


def _apply(ctx, category_id: int, month: str, amount, cash_flow: bool) -> None:
    service = LedgerService(ctx.obj["db"])
    try:
        if cash_flow:
            if category_id == TAX_OVERRIDE_CATEGORY_ID:
                click.echo("Error: The tax row exists only on the P&L", err=True)
                ctx.exit(1)
            service.set_cash_flow_override(category_id, month, amount)
        else:
            service.set_pl_override(category_id, month, amount)
    except DomainError as e:
        handle_domain_error(ctx, e)


@override_group.command("set")
@click.argument("category")
@click.argument("month")
@click.argument("amount")
@click.option("--cash-flow", is_flag=True, help="Override the cash-flow view instead of the P&L")
@click.pass_context
def set_override(ctx, category: str, month: str, amount: str, cash_flow: bool):
    """Set CATEGORY's value in MONTH to AMOUNT.

    Use "tax" as the category to override the P&L income-tax row. An
    amount of 0 is a real override and zeroes the cell.

    Examples:
        tallybook override set Rent 2024-03 1200
        tallybook override set tax 2024-03 0
    """
    db = ctx.obj["db"]
    category_id = _target(ctx, db, category)
    target_month = month_or_exit(ctx, month)
    value = amount_or_exit(ctx, amount)
    _apply(ctx, category_id, target_month, value, cash_flow)
    click.echo(f"Override set: {category} {target_month} = {format_money(value)}")


@override_group.command("clear")
@click.argument("category")
@click.argument("month")
@click.option("--cash-flow", is_flag=True, help="Clear a cash-flow override instead of a P&L one")
@click.pass_context
def clear_override(ctx, category: str, month: str, cash_flow: bool):
    """Revert CATEGORY in MONTH to the computed value."""
    db = ctx.obj["db"]
    category_id = _target(ctx, db, category)
    target_month = month_or_exit(ctx, month)
    _apply(ctx, category_id, target_month, None, cash_flow)
    click.echo(f"Override cleared: {category} {target_month}")


def register_commands(cli):
    """Register override commands with main CLI."""
    cli.add_command(override_group, name="override")
