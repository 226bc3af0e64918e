"""Transaction management commands."""

import click
from datetime import date
from tallybook.cli.arguments import (
    amount_or_exit,
    category_or_exit,
    date_or_exit,
    format_money,
    month_or_exit,
)
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.entities import TransactionStatus, TransactionType
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService
from tallybook.utils.months import is_overdue, is_paid_late, month_of


@click.group()
def transaction_group():
    """Manage payables and receivables."""
    pass


@transaction_group.command("add")
@click.option("--date", "entry_date", default="today", help="Entry date (YYYY-MM-DD or relative like 'today')")
@click.option("--category", required=True, help="Category name or ID")
@click.option("--amount", required=True, help="Amount (e.g., 123.45)")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice(["payable", "receivable"], case_sensitive=False),
    required=True,
    help="Payable (money out) or receivable (money in)",
)
@click.option(
    "--status",
    type=click.Choice(["pending", "paid", "received"], case_sensitive=False),
    default="pending",
    help="Settlement status (default: pending)",
)
@click.option("--month-due", help="Accrual month (YYYY-MM, default: entry month)")
@click.option("--month-paid", help="Cash month (YYYY-MM, settled entries only)")
@click.option("--pretax", help="Pre-tax amount of a sale that includes sales tax")
@click.option("--processed", help="Date the payment cleared")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(
    ctx,
    entry_date: str,
    category: str,
    amount: str,
    transaction_type: str,
    status: str,
    month_due: str | None,
    month_paid: str | None,
    pretax: str | None,
    processed: str | None,
    notes: str | None,
) -> None:
    """Record a payable or receivable.

    Examples:
        tallybook transaction add --category Sales --amount 1000 --type receivable
        tallybook transaction add --category Rent --amount 1500 --type payable --status paid --month-due 2024-03
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    txn_date = date_or_exit(ctx, entry_date)
    cat = category_or_exit(ctx, db, category)
    txn_amount = amount_or_exit(ctx, amount)
    pretax_amount = amount_or_exit(ctx, pretax, "pre-tax amount") if pretax else None
    due = month_or_exit(ctx, month_due, "month due") if month_due else None
    paid = month_or_exit(ctx, month_paid, "month paid") if month_paid else None
    processed_date = date_or_exit(ctx, processed, "processed date") if processed else None

    try:
        txn_id = service.add_transaction(
            entry_date=txn_date,
            category_id=cat.id,
            amount=txn_amount,
            transaction_type=TransactionType(transaction_type.lower()),
            status=TransactionStatus(status.lower()),
            month_due=due,
            month_paid=paid,
            pretax_amount=pretax_amount,
            date_processed=processed_date,
            notes=notes,
        )
        click.echo(f"Created transaction {txn_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("settle")
@click.argument("transaction_id", type=int)
@click.option("--processed", help="Date the payment cleared (default: today)")
@click.option("--month-paid", help="Cash month (YYYY-MM, default: processed month)")
@click.pass_context
def settle_transaction(ctx, transaction_id: int, processed: str | None, month_paid: str | None) -> None:
    """Mark a payable paid or a receivable received."""
    db = ctx.obj["db"]
    service = LedgerService(db)

    processed_date = date_or_exit(ctx, processed or "today", "processed date")
    paid = month_or_exit(ctx, month_paid, "month paid") if month_paid else None

    try:
        service.mark_settled(transaction_id, date_processed=processed_date, month_paid=paid)
        click.echo(f"Settled transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--month", help="Only entries due in this month (YYYY-MM)")
@click.option("--category", help="Category name or ID")
@click.option(
    "--status",
    type=click.Choice(["pending", "paid", "received"], case_sensitive=False),
    help="Only entries with this status",
)
@click.pass_context
def list_transactions(ctx, month: str | None, category: str | None, status: str | None):
    """View ledger entries with optional filters.

    Late payments are flagged LATE and unpaid entries past their due month
    are flagged OVERDUE.
    """
    db = ctx.obj["db"]

    month_due = month_or_exit(ctx, month) if month else None
    category_id = category_or_exit(ctx, db, category).id if category else None
    transactions = db.list_transactions(
        month_due=month_due,
        category_id=category_id,
        status=TransactionStatus(status.lower()) if status else None,
    )

    if not transactions:
        click.echo("No transactions found.")
        return

    names = {cat.id: cat.name for cat in db.list_categories()}
    current_month = month_of(date.today())

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 104)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Category':<24} {'Type':<11} {'Amount':>12} "
        f"{'Status':<9} {'Due':<8} {'Paid':<8} {'Flag':<8}"
    )
    click.echo("-" * 104)
    for txn in transactions:
        flag = ""
        if is_paid_late(txn.month_due, txn.month_paid):
            flag = "LATE"
        elif is_overdue(txn.month_due, txn.status.value, current_month):
            flag = "OVERDUE"
        click.echo(
            f"{txn.id:<6} {str(txn.entry_date):<12} {names.get(txn.category_id, ''):<24} "
            f"{txn.transaction_type.value:<11} {format_money(txn.amount):>12} "
            f"{txn.status.value:<9} {txn.month_due or '':<8} {txn.month_paid or '':<8} {flag:<8}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int) -> None:
    """Delete a transaction."""
    db = ctx.obj["db"]
    service = LedgerService(db)

    try:
        service.delete_transaction(transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
