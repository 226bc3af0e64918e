"""Tests for transaction commands."""

from decimal import Decimal

from tallybook.cli.main import cli
from tallybook.domain.entities import TransactionStatus


def _add(cli_runner, temp_db, *extra):
    return cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "transaction", "add", *extra],
    )


def test_transaction_add(cli_runner, temp_db, sample_categories):
    """Test recording a receivable with sales tax."""
    result = _add(
        cli_runner,
        temp_db,
        "--date",
        "2024-02-10",
        "--category",
        "Sales",
        "--amount",
        "1,050.00",
        "--pretax",
        "1000",
        "--type",
        "receivable",
    )

    assert result.exit_code == 0
    assert "Created transaction" in result.output
    txn = temp_db.list_transactions()[0]
    assert txn.amount == Decimal("1050.00")
    assert txn.pretax_amount == Decimal("1000.00")
    assert txn.month_due == "2024-02"


def test_transaction_add_by_category_id(cli_runner, temp_db, sample_categories):
    """Test that a category can be given by ID."""
    result = _add(
        cli_runner,
        temp_db,
        "--date",
        "2024-02-10",
        "--category",
        str(sample_categories["Rent"]),
        "--amount",
        "1500",
        "--type",
        "payable",
        "--status",
        "paid",
        "--month-paid",
        "2024-03",
    )

    assert result.exit_code == 0
    txn = temp_db.list_transactions()[0]
    assert txn.category_id == sample_categories["Rent"]
    assert txn.status == TransactionStatus.PAID
    assert txn.month_paid == "2024-03"


def test_transaction_add_unknown_category(cli_runner, temp_db):
    """Test that an unknown category is an error."""
    result = _add(
        cli_runner, temp_db, "--category", "Nope", "--amount", "5", "--type", "payable"
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_transaction_add_invalid_amount(cli_runner, temp_db, sample_categories):
    """Test that a malformed amount is rejected."""
    result = _add(
        cli_runner, temp_db, "--category", "Sales", "--amount", "abc", "--type", "receivable"
    )

    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_transaction_add_mismatched_status(cli_runner, temp_db, sample_categories):
    """Test that a received payable is rejected."""
    result = _add(
        cli_runner,
        temp_db,
        "--category",
        "Rent",
        "--amount",
        "5",
        "--type",
        "payable",
        "--status",
        "received",
    )

    assert result.exit_code == 1
    assert "Error" in result.output


def test_transaction_settle(cli_runner, temp_db, sample_categories):
    """Test settling a pending payable."""
    _add(
        cli_runner,
        temp_db,
        "--date",
        "2024-01-05",
        "--category",
        "Rent",
        "--amount",
        "1500",
        "--type",
        "payable",
    )
    txn_id = temp_db.list_transactions()[0].id

    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "transaction",
            "settle",
            str(txn_id),
            "--processed",
            "2024-02-03",
        ],
    )

    assert result.exit_code == 0
    assert f"Settled transaction {txn_id}" in result.output
    temp_db.disconnect()
    txn = temp_db.get_transaction(txn_id)
    assert txn.status == TransactionStatus.PAID
    assert txn.month_paid == "2024-02"


def test_transaction_settle_missing(cli_runner, temp_db):
    """Test settling an unknown transaction."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "settle", "99"]
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_transaction_list_flags_late_payments(cli_runner, temp_db, sample_categories):
    """Test that a payment made after its due month is flagged LATE."""
    _add(
        cli_runner,
        temp_db,
        "--date",
        "2024-01-05",
        "--category",
        "Rent",
        "--amount",
        "1500",
        "--type",
        "payable",
        "--status",
        "paid",
        "--month-paid",
        "2024-02",
    )

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "list"]
    )

    assert result.exit_code == 0
    assert "Found 1 transaction(s)" in result.output
    assert "LATE" in result.output


def test_transaction_list_filters(cli_runner, temp_db, sample_categories):
    """Test that filters that match nothing report no transactions."""
    _add(
        cli_runner,
        temp_db,
        "--date",
        "2024-01-05",
        "--category",
        "Rent",
        "--amount",
        "1500",
        "--type",
        "payable",
    )

    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "transaction", "list", "--month", "2024-02"],
    )

    assert result.exit_code == 0
    assert "No transactions found." in result.output


def test_transaction_delete(cli_runner, temp_db, sample_categories):
    """Test deleting a transaction."""
    _add(
        cli_runner, temp_db, "--category", "Sales", "--amount", "5", "--type", "receivable"
    )
    txn_id = temp_db.list_transactions()[0].id

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "transaction", "delete", str(txn_id)]
    )

    assert result.exit_code == 0
    assert temp_db.list_transactions() == []
