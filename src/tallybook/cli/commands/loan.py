"""Loan commands."""

import click
from tallybook.cli.arguments import amount_or_exit, date_or_exit, format_money
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.amortization import schedule_totals, total_payments
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService
from tallybook.domain.reports import ReportService
from tallybook.utils.amount_parser import parse_amount


@click.group()
def loan_group():
    """Manage loans and their payment schedules."""
    pass


@loan_group.command("add")
@click.argument("name")
@click.option("--principal", required=True, help="Amount borrowed")
@click.option("--rate", required=True, help="Annual interest rate in percent (e.g., 6.5)")
@click.option("--term", "term_months", type=int, required=True, help="Term in months")
@click.option("--start", "start", default="today", help="Start (funding) date")
@click.option("--payments-per-year", type=int, default=12, help="Payment frequency (default: 12)")
@click.option("--first-payment", help="Date of the first payment (default: one period after start)")
@click.option("--notes", help="Notes")
@click.pass_context
def add_loan(
    ctx,
    name: str,
    principal: str,
    rate: str,
    term_months: int,
    start: str,
    payments_per_year: int,
    first_payment: str | None,
    notes: str | None,
) -> None:
    """Record a loan.

    Examples:
        tallybook loan add "Equipment loan" --principal 12000 --rate 0 --term 12 --start 2024-01-01
        tallybook loan add "SBA" --principal 50000 --rate 6.5 --term 60 --first-payment 2024-03-01
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    start_date = date_or_exit(ctx, start, "start date")
    first_date = date_or_exit(ctx, first_payment, "first payment date") if first_payment else None

    try:
        loan_id = service.add_loan(
            name=name,
            principal=amount_or_exit(ctx, principal, "principal"),
            annual_rate_percent=amount_or_exit(ctx, rate, "rate"),
            term_months=term_months,
            start_date=start_date,
            payments_per_year=payments_per_year,
            first_payment_date=first_date,
            notes=notes,
        )
        click.echo(f"Created loan '{name}' (ID: {loan_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@loan_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include inactive loans")
@click.pass_context
def list_loans(ctx, show_all: bool):
    """List loans."""
    db = ctx.obj["db"]
    loans = db.list_loans(active_only=not show_all)
    if not loans:
        click.echo("No loans found.")
        return

    click.echo(f"\n{'ID':<6} {'Name':<28} {'Principal':>12} {'Rate %':>8} {'Term':>6} {'Payments':>9} {'Start':<12}")
    click.echo("-" * 87)
    for loan in loans:
        click.echo(
            f"{loan.id:<6} {loan.name:<28} {format_money(loan.principal):>12} "
            f"{loan.annual_rate_percent:>8} {loan.term_months:>6} {total_payments(loan):>9} "
            f"{str(loan.start_date or ''):<12}"
        )


@loan_group.command("schedule")
@click.argument("loan_id", type=int)
@click.pass_context
def show_schedule(ctx, loan_id: int):
    """Show the amortization schedule, with skipped and overridden payments marked."""
    db = ctx.obj["db"]
    reports = ReportService(db)

    try:
        schedule = reports.amortization_schedule(loan_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    if not schedule:
        click.echo("Loan has no payment schedule.")
        return

    click.echo(f"\n{'#':<5} {'Month':<8} {'Payment':>12} {'Principal':>12} {'Interest':>10} {'Balance':>12} {'Note':<10}")
    click.echo("-" * 75)
    for entry in schedule:
        note = "skipped" if entry.skipped else "override" if entry.overridden else ""
        click.echo(
            f"{entry.number:<5} {entry.month:<8} {format_money(entry.payment):>12} "
            f"{format_money(entry.principal):>12} {format_money(entry.interest):>10} "
            f"{format_money(entry.ending_balance):>12} {note:<10}"
        )
    totals = schedule_totals(schedule)
    click.echo("-" * 75)
    click.echo(
        f"{'TOTAL':<14} {format_money(totals['payment']):>12} "
        f"{format_money(totals['principal']):>12} {format_money(totals['interest']):>10}"
    )
    if totals["interest_accrued"] != totals["interest"]:
        click.echo(f"Interest accrued including skipped payments: {format_money(totals['interest_accrued'])}")


@loan_group.command("skip")
@click.argument("loan_id", type=int)
@click.argument("payment_number", type=int)
@click.pass_context
def toggle_skip(ctx, loan_id: int, payment_number: int):
    """Skip a payment (its interest is added to the balance), or un-skip it."""
    db = ctx.obj["db"]
    service = LedgerService(db)
    try:
        skipped = service.toggle_skipped_payment(loan_id, payment_number)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    state = "skipped" if skipped else "restored"
    click.echo(f"Payment {payment_number} of loan {loan_id} {state}")


@loan_group.command("override")
@click.argument("loan_id", type=int)
@click.argument("payment_number", type=int)
@click.argument("amount", required=False)
@click.option("--clear", is_flag=True, help="Remove the override")
@click.pass_context
def override_payment(ctx, loan_id: int, payment_number: int, amount: str | None, clear: bool):
    """Replace the amount of one payment.

    Examples:
        tallybook loan override 1 3 2500
        tallybook loan override 1 3 --clear
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    if clear == (amount is not None):
        click.echo("Error: Give either an amount or --clear", err=True)
        ctx.exit(1)

    try:
        value = None if clear else parse_amount(amount)
        service.set_payment_override(loan_id, payment_number, value)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    if clear:
        click.echo(f"Cleared override on payment {payment_number} of loan {loan_id}")
    else:
        click.echo(f"Payment {payment_number} of loan {loan_id} set to {format_money(value)}")


@loan_group.command("delete")
@click.argument("loan_id", type=int)
@click.pass_context
def delete_loan(ctx, loan_id: int) -> None:
    """Delete a loan with its skips and overrides."""
    db = ctx.obj["db"]
    service = LedgerService(db)
    try:
        service.delete_loan(loan_id)
        click.echo(f"Deleted loan {loan_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register loan commands with main CLI."""
    cli.add_command(loan_group, name="loan")
