"""Break-even analysis commands."""

import click
from dataclasses import replace
from tallybook.cli.arguments import amount_or_exit, format_money, month_or_exit
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService
from tallybook.domain.reports import ReportService
from tallybook.domain.entities import Timeline


@click.group()
def breakeven_group():
    """Configure and view the break-even analysis."""
    pass


@breakeven_group.command("config")
@click.option("--consumer/--no-consumer", default=None, help="Enable the consumer channel")
@click.option("--price", help="Consumer average price per unit")
@click.option("--unit-cogs", help="Consumer average COGS per unit")
@click.option("--b2b/--no-b2b", default=None, help="Enable the B2B channel")
@click.option("--b2b-units", type=int, help="Committed B2B units per month")
@click.option("--b2b-rate", help="B2B rate per unit")
@click.option("--b2b-cogs", help="B2B COGS per unit")
@click.option("--budget/--no-budget", default=None, help="Include budget expenses in fixed costs")
@click.option("--depreciation/--no-depreciation", default=None, help="Include asset depreciation")
@click.option("--interest/--no-interest", default=None, help="Include loan interest")
@click.option("--asset-purchases/--no-asset-purchases", default=None, help="Spread asset purchases over the timeline")
@click.option("--increment", type=int, help="Chart step on the unit axis")
@click.option("--start", help="Timeline start month (YYYY-MM)")
@click.option("--end", help="Timeline end month (YYYY-MM)")
@click.pass_context
def configure(
    ctx,
    consumer,
    price,
    unit_cogs,
    b2b,
    b2b_units,
    b2b_rate,
    b2b_cogs,
    budget,
    depreciation,
    interest,
    asset_purchases,
    increment,
    start,
    end,
):
    """Update break-even settings; options not given keep their stored value.

    Examples:
        tallybook breakeven config --price 50 --unit-cogs 20
        tallybook breakeven config --b2b --b2b-units 100 --b2b-rate 25 --b2b-cogs 10
    """
    db = ctx.obj["db"]
    service = LedgerService(db)
    config = db.get_break_even_config()

    consumer_changes = {}
    if consumer is not None:
        consumer_changes["enabled"] = consumer
    if price is not None:
        consumer_changes["avg_price"] = amount_or_exit(ctx, price, "price")
    if unit_cogs is not None:
        consumer_changes["avg_cogs"] = amount_or_exit(ctx, unit_cogs, "unit COGS")

    b2b_changes = {}
    if b2b is not None:
        b2b_changes["enabled"] = b2b
    if b2b_units is not None:
        b2b_changes["monthly_units"] = b2b_units
    if b2b_rate is not None:
        b2b_changes["rate_per_unit"] = amount_or_exit(ctx, b2b_rate, "B2B rate")
    if b2b_cogs is not None:
        b2b_changes["cogs_per_unit"] = amount_or_exit(ctx, b2b_cogs, "B2B COGS")

    changes = {
        "consumer": replace(config.consumer, **consumer_changes),
        "b2b": replace(config.b2b, **b2b_changes),
    }
    for field, value in (
        ("include_budget_expenses", budget),
        ("include_depreciation", depreciation),
        ("include_loan_interest", interest),
        ("include_asset_purchases", asset_purchases),
        ("unit_increment", increment),
    ):
        if value is not None:
            changes[field] = value
    if start is not None or end is not None:
        current = config.timeline or Timeline()
        changes["timeline"] = Timeline(
            start=month_or_exit(ctx, start, "timeline start") if start else current.start,
            end=month_or_exit(ctx, end, "timeline end") if end else current.end,
        )

    try:
        service.set_break_even_config(replace(config, **changes))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo("Break-even settings saved")


@breakeven_group.command("show")
@click.pass_context
def show(ctx):
    """Solve the break-even on average monthly fixed costs."""
    reports = ReportService(ctx.obj["db"], tax_mode=ctx.obj["settings"].tax_mode)
    result = reports.break_even()

    click.echo(f"\nMonthly fixed costs:        {format_money(result.monthly_fixed_costs):>14}")
    click.echo(f"B2B monthly contribution:   {format_money(result.b2b_monthly_contribution):>14}")
    click.echo(f"Remaining fixed costs:      {format_money(result.remaining_fixed_costs):>14}")
    click.echo(f"Consumer margin per unit:   {format_money(result.consumer_contribution_margin):>14}")
    if not result.is_valid:
        click.echo(f"\nNo break-even point: {result.reason}")
        return
    click.echo(f"Consumer units needed:      {result.consumer_units_needed:>14}")
    click.echo(f"B2B units:                  {result.b2b_units:>14}")
    click.echo(f"Break-even units:           {result.break_even_units:>14}")
    click.echo(f"Break-even revenue:         {format_money(result.break_even_revenue):>14}")
    if result.weighted_contribution_margin_percent is not None:
        click.echo(f"Weighted margin:            {result.weighted_contribution_margin_percent:>13}%")


@breakeven_group.command("chart")
@click.pass_context
def chart(ctx):
    """Print the cost and revenue lines over the whole timeline."""
    reports = ReportService(ctx.obj["db"], tax_mode=ctx.obj["settings"].tax_mode)
    points = reports.break_even_chart()

    click.echo(f"\n{'Units':>8} {'Revenue':>14} {'Fixed':>14} {'Variable':>14} {'Total cost':>14} {'Profit':>14}")
    click.echo("-" * 83)
    for point in points:
        click.echo(
            f"{point.consumer_units:>8} {format_money(point.revenue):>14} {format_money(point.fixed_cost):>14} "
            f"{format_money(point.variable_cost):>14} {format_money(point.total_cost):>14} "
            f"{format_money(point.profit):>14}"
        )


@breakeven_group.command("timeline")
@click.pass_context
def timeline(ctx):
    """Per-month break-even targets against actual revenue."""
    reports = ReportService(ctx.obj["db"], tax_mode=ctx.obj["settings"].tax_mode)
    progress = reports.break_even_progress()
    if not progress:
        click.echo("No timeline months. Set one with 'breakeven config --start/--end'.")
        return

    click.echo(f"\n{'Month':<8} {'Target':>14} {'Actual':>14} {'Progress':>9} {'Met':<4}")
    click.echo("-" * 53)
    for point in progress:
        percent = f"{point.percent_of_target}%" if point.percent_of_target is not None else "-"
        click.echo(
            f"{point.month:<8} {format_money(point.required_revenue):>14} "
            f"{format_money(point.actual_revenue):>14} {percent:>9} {'yes' if point.is_met else 'no':<4}"
        )


def register_commands(cli):
    """Register break-even commands with main CLI."""
    cli.add_command(breakeven_group, name="breakeven")
