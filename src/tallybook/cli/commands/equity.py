"""Paid-in capital commands."""

import click
from dataclasses import replace
from tallybook.cli.arguments import amount_or_exit, date_or_exit, format_money
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService
from tallybook.utils.money import round2


@click.group()
def equity_group():
    """Manage common stock and additional paid-in capital."""
    pass


@equity_group.command("set")
@click.option("--par", help="Par value per share")
@click.option("--shares", type=int, help="Number of shares issued")
@click.option("--apic", help="Additional paid-in capital")
@click.option("--seed-expected", help="Date the stock purchase is expected")
@click.option("--seed-received", help="Date the stock purchase was received")
@click.option("--apic-expected", help="Date the APIC is expected")
@click.option("--apic-received", help="Date the APIC was received")
@click.pass_context
def set_equity(
    ctx,
    par: str | None,
    shares: int | None,
    apic: str | None,
    seed_expected: str | None,
    seed_received: str | None,
    apic_expected: str | None,
    apic_received: str | None,
):
    """Update equity settings; options not given keep their stored value.

    Examples:
        tallybook equity set --par 0.01 --shares 1000000 --seed-received 2024-01-05
        tallybook equity set --apic 50000 --apic-expected 2024-06-01
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    changes = {}
    if par is not None:
        changes["par_value"] = amount_or_exit(ctx, par, "par value")
    if shares is not None:
        changes["share_count"] = shares
    if apic is not None:
        changes["apic"] = amount_or_exit(ctx, apic, "APIC")
    for field, value in (
        ("seed_expected_date", seed_expected),
        ("seed_received_date", seed_received),
        ("apic_expected_date", apic_expected),
        ("apic_received_date", apic_received),
    ):
        if value is not None:
            changes[field] = date_or_exit(ctx, value, field.replace("_", " "))

    config = replace(db.get_equity_config(), **changes)
    try:
        service.set_equity_config(config)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    common_stock = round2(config.par_value * config.share_count)
    click.echo(f"Common stock: {format_money(common_stock)} ({config.share_count} shares)")
    click.echo(f"APIC: {format_money(config.apic)}")


def register_commands(cli):
    """Register equity commands with main CLI."""
    cli.add_command(equity_group, name="equity")
