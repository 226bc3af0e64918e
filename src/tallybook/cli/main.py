"""Main CLI entry point."""

import click
from tallybook.config import load_settings
from tallybook.database.factories import create_sqlite_database
from tallybook.logging_config import configure_logging

# Import and register all commands at module level
from tallybook.cli.commands import (
    asset,
    breakeven,
    category,
    equity,
    loan,
    override,
    report,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TALLYBOOK_DB_PATH environment variable)",
    envvar="TALLYBOOK_DB_PATH",
)
@click.pass_context
def cli(ctx, db_path: str | None):
    """Tallybook - accrual bookkeeping for a small business.

    Record payables and receivables, fixed assets and loans, then view the
    P&L, balance sheet, cash flow and break-even analysis built from them.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    configure_logging(settings.log_level, settings.log_json)
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
category.register_commands(cli)
transaction.register_commands(cli)
asset.register_commands(cli)
loan.register_commands(cli)
override.register_commands(cli)
equity.register_commands(cli)
breakeven.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
