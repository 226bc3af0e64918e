"""Shared pytest fixtures for tallybook tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from tallybook.database.factories import create_sqlite_database
from tallybook.domain.entities import (
    Category,
    EquityConfig,
    FixedAsset,
    LedgerSnapshot,
    Loan,
    TaxMode,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from tallybook.domain.ledger import LedgerService
from tallybook.domain.reports import ReportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def sample_categories(ledger_service):
    """Create one category of each P&L kind and return their IDs by name."""
    return {
        "Sales": ledger_service.create_category("Sales"),
        "Materials": ledger_service.create_category("Materials", is_cogs=True),
        "Rent": ledger_service.create_category(
            "Rent",
            is_monthly=True,
            default_amount=Decimal("1500"),
            default_type=TransactionType.PAYABLE,
        ),
        "Depreciation": ledger_service.create_category("Depreciation", is_depreciation=True),
        "Sales Tax": ledger_service.create_category("Sales Tax", is_sales_tax=True),
        "Equipment": ledger_service.create_category("Equipment", hidden_from_pl=True),
    }


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def make_txn(
    txn_id,
    category_id,
    amount,
    transaction_type=TransactionType.PAYABLE,
    status=TransactionStatus.PENDING,
    month_due="2024-01",
    month_paid=None,
    pretax_amount=None,
):
    """Build a Transaction entity with sensible defaults."""
    year, month = month_due.split("-")
    return Transaction(
        id=txn_id,
        entry_date=date(int(year), int(month), 1),
        category_id=category_id,
        amount=Decimal(str(amount)),
        transaction_type=transaction_type,
        status=status,
        month_due=month_due,
        month_paid=month_paid,
        pretax_amount=Decimal(str(pretax_amount)) if pretax_amount is not None else None,
    )


@pytest.fixture
def categories():
    """Plain category entities keyed by role."""
    return {
        "sales": Category(id=1, name="Sales"),
        "cogs": Category(id=2, name="Materials", is_cogs=True),
        "rent": Category(id=3, name="Rent"),
        "depreciation": Category(id=4, name="Depreciation", is_depreciation=True),
        "sales_tax": Category(id=5, name="Sales Tax", is_sales_tax=True),
        "hidden": Category(id=6, name="Asset Purchases", hidden_from_pl=True),
    }


@pytest.fixture
def balanced_books(categories):
    """A small business's first quarter, recorded so that A = L + E every month.

    - January: $10,000 of stock sold and received; a $12,000 0% loan funded
      and the cash received; a $3,600 asset bought and paid for.
    - February: a $2,000 sale with $100 sales tax collected, still pending;
      $500 materials paid; $1,000 rent due but unpaid; first loan payment.
    - March: the February sale is collected and the rent is paid late.
    """
    hidden = categories["hidden"].id
    transactions = (
        # Loan proceeds and the asset purchase stay off the P&L
        make_txn(1, hidden, "12000.00", TransactionType.RECEIVABLE, TransactionStatus.RECEIVED, "2024-01", "2024-01"),
        make_txn(2, hidden, "3600.00", TransactionType.PAYABLE, TransactionStatus.PAID, "2024-01", "2024-01"),
        make_txn(3, hidden, "10000.00", TransactionType.RECEIVABLE, TransactionStatus.RECEIVED, "2024-01", "2024-01"),
        make_txn(4, categories["sales"].id, "2100.00", TransactionType.RECEIVABLE, TransactionStatus.RECEIVED, "2024-02", "2024-03", pretax_amount="2000.00"),
        make_txn(5, categories["sales_tax"].id, "100.00", TransactionType.PAYABLE, TransactionStatus.PENDING, "2024-02"),
        make_txn(6, categories["cogs"].id, "500.00", TransactionType.PAYABLE, TransactionStatus.PAID, "2024-02", "2024-02"),
        make_txn(7, categories["rent"].id, "1000.00", TransactionType.PAYABLE, TransactionStatus.PAID, "2024-02", "2024-03"),
        # Loan principal repayments are balance-sheet only; interest is 0%
        make_txn(8, hidden, "1000.00", TransactionType.PAYABLE, TransactionStatus.PAID, "2024-02", "2024-02"),
        make_txn(9, hidden, "1000.00", TransactionType.PAYABLE, TransactionStatus.PAID, "2024-03", "2024-03"),
    )
    asset = FixedAsset(
        id=1,
        name="Oven",
        purchase_cost=Decimal("3600.00"),
        purchase_date=date(2024, 1, 10),
        useful_life_months=36,
    )
    loan = Loan(
        id=1,
        name="Equipment loan",
        principal=Decimal("12000.00"),
        annual_rate_percent=Decimal("0"),
        term_months=12,
        start_date=date(2024, 1, 1),
    )
    equity = EquityConfig(
        par_value=Decimal("1.00"),
        share_count=10000,
        seed_received_date=date(2024, 1, 5),
    )
    return LedgerSnapshot(
        transactions=transactions,
        categories=tuple(categories.values()),
        fixed_assets=(asset,),
        loans=(loan,),
        equity_config=equity,
        tax_mode=TaxMode.PASSTHROUGH,
    )
