"""Financial report commands."""

import click
from datetime import date
from tallybook.cli.arguments import format_money, month_or_exit
from tallybook.domain.entities import TaxMode
from tallybook.domain.ledger import LedgerService
from tallybook.domain.reports import ReportService
from tallybook.utils.months import filter_months, month_of

LABEL_WIDTH = 28
CELL_WIDTH = 13


@click.group()
def report_group():
    """View the P&L, balance sheet and cash flow."""
    pass


def _reports(ctx, tax_mode: str | None = None) -> ReportService:
    mode = TaxMode(tax_mode.lower()) if tax_mode else ctx.obj["settings"].tax_mode
    return ReportService(ctx.obj["db"], tax_mode=mode)


def _line(label: str, values) -> str:
    cells = "".join(f"{format_money(v):>{CELL_WIDTH}}" for v in values)
    return f"{label[:LABEL_WIDTH]:<{LABEL_WIDTH}}{cells}"


def _row_line(row, months, projected=frozenset()) -> str:
    cells = []
    for month in months:
        text = format_money(row.value(month)) if month in row.values else ""
        if month in row.overridden_months:
            text += "*"
        elif month in projected:
            text += "~"
        cells.append(f"{text:>{CELL_WIDTH}}")
    return f"  {row.category_name[:LABEL_WIDTH - 2]:<{LABEL_WIDTH - 2}}" + "".join(cells)


@report_group.command("pl")
@click.option("--start", help="First month to show (YYYY-MM)")
@click.option("--end", help="Last month to show (YYYY-MM)")
@click.option("--tax-mode", type=click.Choice([m.value for m in TaxMode], case_sensitive=False), help="Override the stored tax mode")
@click.pass_context
def profit_and_loss(ctx, start: str | None, end: str | None, tax_mode: str | None):
    """Accrual P&L by month. Overridden cells are marked with *."""
    start_month = month_or_exit(ctx, start, "start month") if start else None
    end_month = month_or_exit(ctx, end, "end month") if end else None
    spreadsheet = _reports(ctx, tax_mode).pl_spreadsheet(as_of=end_month)
    months = filter_months(spreadsheet.months, start_month, end_month)
    if not months:
        click.echo("No P&L activity found.")
        return

    totals = [spreadsheet.totals_for(m) for m in months]
    header = "".join(f"{m:>{CELL_WIDTH}}" for m in months)
    click.echo(f"\n{'':<{LABEL_WIDTH}}{header}")
    click.echo("-" * (LABEL_WIDTH + CELL_WIDTH * len(months)))

    click.echo("Revenue")
    for row in spreadsheet.revenue:
        click.echo(_row_line(row, months))
    click.echo(_line("Total revenue", [t.revenue for t in totals]))
    click.echo("Cost of goods sold")
    for row in spreadsheet.cogs:
        click.echo(_row_line(row, months))
    click.echo(_line("Gross profit", [t.gross_profit for t in totals]))
    click.echo("Operating expenses")
    for row in spreadsheet.opex + spreadsheet.depreciation_categories:
        click.echo(_row_line(row, months))
    if any(t.asset_depreciation for t in totals):
        click.echo(_line("  Asset depreciation", [t.asset_depreciation for t in totals]))
    if any(t.loan_interest for t in totals):
        click.echo(_line("  Loan interest", [t.loan_interest for t in totals]))
    click.echo(_line("Total operating expenses", [t.total_opex for t in totals]))
    click.echo("-" * (LABEL_WIDTH + CELL_WIDTH * len(months)))
    click.echo(_line("Net income before tax", [t.net_income_before_tax for t in totals]))
    click.echo(_line(f"Income tax ({spreadsheet.tax_mode.value})", [t.tax for t in totals]))
    click.echo(_line("Net income", [t.net_income for t in totals]))


@report_group.command("balance-sheet")
@click.option("--as-of", help="Month to report (YYYY-MM, default: this month)")
@click.option("--tax-mode", type=click.Choice([m.value for m in TaxMode], case_sensitive=False), help="Override the stored tax mode")
@click.option("--detail", is_flag=True, help="Break receivables and payables down by category")
@click.pass_context
def balance_sheet(ctx, as_of: str | None, tax_mode: str | None, detail: bool):
    """Balance sheet as of a month, with the A = L + E check."""
    month = month_or_exit(ctx, as_of, "as-of month") if as_of else month_of(date.today())
    reports = _reports(ctx, tax_mode)
    sheet = reports.balance_sheet(month)

    click.echo(f"\nBalance sheet as of {sheet.as_of_month}")
    click.echo("=" * 48)
    click.echo("ASSETS")
    click.echo(_line("  Cash", [sheet.cash]))
    click.echo(_line("  Accounts receivable", [sheet.accounts_receivable]))
    if detail:
        for line in reports.receivables_by_category(month):
            click.echo(_line(f"    {line.category_name}", [line.total]))
    for asset in sheet.assets:
        click.echo(_line(f"  {asset.name}", [asset.net_book_value]))
    if sheet.assets:
        click.echo(_line("  Fixed assets at cost", [sheet.total_fixed_asset_cost]))
        click.echo(_line("  Accumulated depreciation", [-sheet.total_accumulated_depreciation]))
    click.echo(_line("Total assets", [sheet.total_assets]))
    click.echo("-" * 48)
    click.echo("LIABILITIES")
    click.echo(_line("  Accounts payable", [sheet.accounts_payable]))
    if detail:
        for line in reports.payables_by_category(month):
            click.echo(_line(f"    {line.category_name}", [line.total]))
    click.echo(_line("  Sales tax payable", [sheet.sales_tax_payable]))
    for loan in sheet.loans:
        click.echo(_line(f"  {loan.name}", [loan.balance]))
    click.echo(_line("Total liabilities", [sheet.total_liabilities]))
    click.echo("EQUITY")
    click.echo(_line("  Common stock", [sheet.common_stock]))
    click.echo(_line("  Additional paid-in capital", [sheet.apic]))
    click.echo(_line("  Retained earnings", [sheet.retained_earnings]))
    click.echo(_line("Total equity", [sheet.total_equity]))
    click.echo(_line("Total liabilities & equity", [sheet.total_liabilities_and_equity]))
    click.echo("-" * 48)
    if sheet.is_balanced:
        click.echo("Balanced")
    else:
        click.echo(f"OUT OF BALANCE by {format_money(sheet.difference)}")


@report_group.command("retained-earnings")
@click.option("--as-of", help="Month to report (YYYY-MM, default: this month)")
@click.option("--tax-mode", type=click.Choice([m.value for m in TaxMode], case_sensitive=False), help="Override the stored tax mode")
@click.pass_context
def retained_earnings(ctx, as_of: str | None, tax_mode: str | None):
    """Cumulative after-tax net income through a month."""
    month = month_or_exit(ctx, as_of, "as-of month") if as_of else month_of(date.today())
    value = _reports(ctx, tax_mode).retained_earnings(month)
    click.echo(f"Retained earnings as of {month}: {format_money(value)}")


@report_group.command("cash-flow")
@click.option("--current-month", help="Project empty later months from the average up to this month (YYYY-MM)")
@click.pass_context
def cash_flow(ctx, current_month: str | None):
    """Cash in and out by the month money moved.

    Overridden cells are marked with * and projected cells with ~.
    """
    current = month_or_exit(ctx, current_month, "current month") if current_month else None
    spreadsheet = _reports(ctx).cash_flow(current)
    months = list(spreadsheet.months)
    if not months:
        click.echo("No settled transactions found.")
        return

    header = "".join(f"{m:>{CELL_WIDTH}}" for m in months)
    click.echo(f"\n{'':<{LABEL_WIDTH}}{header}")
    click.echo("-" * (LABEL_WIDTH + CELL_WIDTH * len(months)))
    for label, kind in (("Cash in", "receivable"), ("Cash out", "payable")):
        click.echo(label)
        for row in spreadsheet.rows:
            if row.transaction_type.value == kind:
                click.echo(_row_line(row, months, row.projected_months))
    click.echo("-" * (LABEL_WIDTH + CELL_WIDTH * len(months)))
    click.echo(_line("Net cash flow", [t.net for t in spreadsheet.totals]))
    click.echo(_line("Ending cash", [t.ending_cash for t in spreadsheet.totals]))


@report_group.command("summary")
@click.option("--month", help="Only this entry month (YYYY-MM)")
@click.pass_context
def summary(ctx, month: str | None):
    """Settled and pending totals per entry month."""
    target = month_or_exit(ctx, month) if month else None
    rows = _reports(ctx).monthly_summary(target)
    if not rows:
        click.echo("No transactions found.")
        return

    click.echo(f"\n{'Month':<8} {'Received':>13} {'Paid':>13} {'Pending in':>13} {'Pending out':>13} {'Entries':>8}")
    click.echo("-" * 72)
    for row in rows:
        click.echo(
            f"{row.month:<8} {format_money(row.received):>13} {format_money(row.paid):>13} "
            f"{format_money(row.pending_receivables):>13} {format_money(row.pending_payables):>13} "
            f"{row.total_entries:>8}"
        )


@report_group.command("tax-mode")
@click.argument("mode", required=False, type=click.Choice([m.value for m in TaxMode], case_sensitive=False))
@click.pass_context
def tax_mode(ctx, mode: str | None):
    """Show or store the default income-tax mode."""
    db = ctx.obj["db"]
    if mode is None:
        click.echo(f"Tax mode: {db.get_tax_mode().value}")
        return
    LedgerService(db).set_tax_mode(TaxMode(mode.lower()))
    click.echo(f"Tax mode set to {mode.lower()}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
