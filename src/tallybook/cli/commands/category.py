"""Category management commands."""

import click
from tallybook.cli.arguments import amount_or_exit, format_money
from tallybook.cli.error_handling import handle_domain_error
from tallybook.domain.entities import TransactionType
from tallybook.domain.errors import DomainError
from tallybook.domain.ledger import LedgerService


def category_flags(cat) -> str:
    flags = []
    if cat.is_cogs:
        flags.append("cogs")
    if cat.is_depreciation:
        flags.append("depreciation")
    if cat.is_sales_tax:
        flags.append("sales-tax")
    if cat.hidden_from_pl:
        flags.append("hidden")
    if cat.is_monthly:
        flags.append("monthly")
    return ", ".join(flags)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories with their P&L flags."""
    db = ctx.obj["db"]
    service = LedgerService(db)

    categories = service.list_categories()
    if not categories:
        click.echo("No categories found. Create one with 'category create'.")
        return

    click.echo(f"\n{'ID':<6} {'Name':<30} {'Flags':<40} {'Default':>12}")
    click.echo("-" * 92)
    for cat in categories:
        default = format_money(cat.default_amount) if cat.default_amount is not None else ""
        click.echo(f"{cat.id:<6} {cat.name:<30} {category_flags(cat):<40} {default:>12}")


@category_group.command("create")
@click.argument("name")
@click.option("--cogs", is_flag=True, help="Cost of goods sold")
@click.option("--depreciation", is_flag=True, help="Manual depreciation row (values come from overrides)")
@click.option("--sales-tax", is_flag=True, help="Sales tax owed; kept off the P&L")
@click.option("--hidden", is_flag=True, help="Hide from the P&L (loan proceeds, asset purchases)")
@click.option("--monthly", is_flag=True, help="Recurring monthly budget item")
@click.option("--default-amount", help="Monthly budget amount")
@click.option(
    "--default-type",
    type=click.Choice(["payable", "receivable"], case_sensitive=False),
    help="Direction of the default amount",
)
@click.pass_context
def create_category(
    ctx,
    name: str,
    cogs: bool,
    depreciation: bool,
    sales_tax: bool,
    hidden: bool,
    monthly: bool,
    default_amount: str | None,
    default_type: str | None,
):
    """Create a new category.

    Examples:
        tallybook category create "Sales"
        tallybook category create "Materials" --cogs
        tallybook category create "Rent" --monthly --default-amount 1500 --default-type payable
    """
    db = ctx.obj["db"]
    service = LedgerService(db)

    amount = amount_or_exit(ctx, default_amount, "default amount") if default_amount else None

    try:
        category_id = service.create_category(
            name=name,
            is_cogs=cogs,
            is_depreciation=depreciation,
            is_sales_tax=sales_tax,
            hidden_from_pl=hidden,
            is_monthly=monthly,
            default_amount=amount,
            default_type=TransactionType(default_type.lower()) if default_type else None,
        )
        click.echo(f"Created category '{name}' (ID: {category_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
