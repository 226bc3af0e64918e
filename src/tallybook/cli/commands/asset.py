"""Fixed asset commands."""

import click
from tallybook.cli.arguments import amount_or_exit, category_or_exit, date_or_exit, format_money
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.depreciation import accumulated_depreciation_as_of
from tallybook.domain.entities import DepreciationMethod
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService
from tallybook.domain.reports import ReportService
from tallybook.utils.money import ZERO, round2


@click.group()
def asset_group():
    """Manage fixed assets and their depreciation."""
    pass


@asset_group.command("add")
@click.argument("name")
@click.option("--cost", required=True, help="Purchase cost")
@click.option("--life", "life_months", type=int, default=0, help="Useful life in months")
@click.option("--purchased", default="today", help="Purchase date")
@click.option("--salvage", default="0", help="Salvage value (default: 0)")
@click.option(
    "--method",
    type=click.Choice([m.value for m in DepreciationMethod], case_sensitive=False),
    default=DepreciationMethod.STRAIGHT_LINE.value,
    help="Depreciation method (default: straight_line)",
)
@click.option("--depreciation-start", help="Depreciation start date (default: purchase date)")
@click.option("--not-depreciable", is_flag=True, help="Carry at cost (land and similar)")
@click.option("--purchase-category", help="Book a pending payable for the cost in this category")
@click.option("--notes", help="Notes")
@click.pass_context
def add_asset(
    ctx,
    name: str,
    cost: str,
    life_months: int,
    purchased: str,
    salvage: str,
    method: str,
    depreciation_start: str | None,
    not_depreciable: bool,
    purchase_category: str | None,
    notes: str | None,
) -> None:
    """Record a fixed asset.

    Examples:
        tallybook asset add "Delivery van" --cost 10000 --life 36 --salvage 1000 --purchased 2024-01-15
        tallybook asset add "Laptop" --cost 2400 --life 24 --method double_declining
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    purchase_date = date_or_exit(ctx, purchased, "purchase date")
    start_date = date_or_exit(ctx, depreciation_start, "depreciation start") if depreciation_start else None
    category_id = category_or_exit(ctx, db, purchase_category).id if purchase_category else None

    try:
        asset_id = service.add_fixed_asset(
            name=name,
            purchase_cost=amount_or_exit(ctx, cost, "cost"),
            useful_life_months=life_months,
            purchase_date=purchase_date,
            salvage_value=amount_or_exit(ctx, salvage, "salvage value"),
            depreciation_method=DepreciationMethod(method.lower()),
            depreciation_start_date=start_date,
            is_depreciable=not not_depreciable,
            notes=notes,
            purchase_category_id=category_id,
        )
        click.echo(f"Created asset '{name}' (ID: {asset_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("list")
@click.pass_context
def list_assets(ctx):
    """List fixed assets."""
    db = ctx.obj["db"]
    assets = db.list_fixed_assets()
    if not assets:
        click.echo("No fixed assets found.")
        return

    click.echo(f"\n{'ID':<6} {'Name':<28} {'Purchased':<12} {'Cost':>12} {'Salvage':>10} {'Life':>6} {'Method':<18}")
    click.echo("-" * 98)
    for asset in assets:
        method = asset.depreciation_method.value if asset.is_depreciable else "not depreciable"
        click.echo(
            f"{asset.id:<6} {asset.name:<28} {str(asset.purchase_date or ''):<12} "
            f"{format_money(asset.purchase_cost):>12} {format_money(asset.salvage_value):>10} "
            f"{asset.useful_life_months:>6} {method:<18}"
        )


@asset_group.command("schedule")
@click.argument("asset_id", type=int)
@click.pass_context
def show_schedule(ctx, asset_id: int):
    """Show the monthly depreciation schedule of an asset."""
    db = ctx.obj["db"]
    reports = ReportService(db)

    try:
        schedule = reports.depreciation_schedule(asset_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    if not schedule:
        click.echo("Asset has no depreciation schedule.")
        return

    asset = db.get_fixed_asset(asset_id)
    click.echo(f"\nDepreciation schedule: {asset.name}")
    click.echo(f"{'Month':<8} {'Depreciation':>14} {'Accumulated':>14} {'Book value':>14}")
    click.echo("-" * 53)
    total = ZERO
    for month, amount in schedule.items():
        accumulated = accumulated_depreciation_as_of(asset, month)
        total = round2(total + amount)
        click.echo(
            f"{month:<8} {format_money(amount):>14} {format_money(accumulated):>14} "
            f"{format_money(round2(asset.purchase_cost - accumulated)):>14}"
        )
    click.echo("-" * 53)
    click.echo(f"{'TOTAL':<8} {format_money(total):>14}")


@asset_group.command("delete")
@click.argument("asset_id", type=int)
@click.pass_context
def delete_asset(ctx, asset_id: int) -> None:
    """Delete an asset and its generated purchase payable."""
    db = ctx.obj["db"]
    service = LedgerService(db)
    try:
        service.delete_fixed_asset(asset_id)
        click.echo(f"Deleted asset {asset_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register asset commands with main CLI."""
    cli.add_command(asset_group, name="asset")
