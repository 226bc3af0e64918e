"""Tests for database mappers."""

import json
import pytest
from datetime import date
from decimal import Decimal

from tallybook.database.models import (
    Category as ORMCategory,
    FixedAsset as ORMFixedAsset,
    Loan as ORMLoan,
    LoanPaymentOverride as ORMLoanPaymentOverride,
    LoanSkippedPayment as ORMLoanSkippedPayment,
    Transaction as ORMTransaction,
)
from tallybook.database.mappers import (
    break_even_config_from_json,
    break_even_config_to_json,
    category_to_domain,
    equity_config_from_json,
    equity_config_to_json,
    fixed_asset_to_domain,
    loan_to_domain,
    transaction_to_domain,
)
from tallybook.domain.entities import (
    B2BChannel,
    BreakEvenConfig,
    Category,
    ConsumerChannel,
    DepreciationMethod,
    EquityConfig,
    FixedAsset,
    Loan,
    Timeline,
    Transaction,
    TransactionStatus,
    TransactionType,
)


class TestCategoryMapper:
    """Tests for Category mapper."""

    def test_category_to_domain(self):
        """Test converting ORM Category to domain Category."""
        orm_category = ORMCategory(
            id=1,
            name="Rent",
            is_cogs=False,
            is_depreciation=False,
            is_sales_tax=False,
            hidden_from_pl=False,
            is_monthly=True,
            default_amount=Decimal("1500.00"),
            default_type="payable",
            sort_order=3,
        )
        domain_category = category_to_domain(orm_category)

        assert isinstance(domain_category, Category)
        assert domain_category.id == 1
        assert domain_category.name == "Rent"
        assert domain_category.is_monthly is True
        assert domain_category.default_amount == Decimal("1500.00")
        assert domain_category.default_type == TransactionType.PAYABLE
        assert domain_category.sort_order == 3
        assert domain_category.is_opex

    def test_category_to_domain_without_defaults(self):
        """Test converting an ORM Category whose optional fields are unset."""
        orm_category = ORMCategory(id=2, name="Materials", is_cogs=True)
        domain_category = category_to_domain(orm_category)

        assert domain_category.is_cogs is True
        assert domain_category.hidden_from_pl is False
        assert domain_category.default_amount is None
        assert domain_category.default_type is None
        assert domain_category.sort_order == 0


class TestTransactionMapper:
    """Tests for Transaction mapper."""

    def test_transaction_to_domain(self):
        """Test converting ORM Transaction to domain Transaction."""
        orm_transaction = ORMTransaction(
            id=1,
            entry_date=date(2024, 1, 15),
            category_id=4,
            amount=Decimal("105.00"),
            pretax_amount=Decimal("100.00"),
            transaction_type="receivable",
            status="received",
            date_processed=date(2024, 2, 3),
            month_due="2024-01",
            month_paid="2024-02",
            notes="Invoice 7",
        )
        domain_transaction = transaction_to_domain(orm_transaction)

        assert isinstance(domain_transaction, Transaction)
        assert domain_transaction.id == 1
        assert domain_transaction.entry_date == date(2024, 1, 15)
        assert domain_transaction.amount == Decimal("105.00")
        assert domain_transaction.pretax_amount == Decimal("100.00")
        assert domain_transaction.transaction_type == TransactionType.RECEIVABLE
        assert domain_transaction.status == TransactionStatus.RECEIVED
        assert domain_transaction.month_paid == "2024-02"
        assert domain_transaction.is_settled
        assert domain_transaction.notes == "Invoice 7"

    def test_transaction_to_domain_with_none_fields(self):
        """Test converting ORM Transaction with None optional fields."""
        orm_transaction = ORMTransaction(
            id=2,
            entry_date=date(2024, 1, 15),
            category_id=None,
            amount=Decimal("50.00"),
            transaction_type="payable",
            status="pending",
        )
        domain_transaction = transaction_to_domain(orm_transaction)

        assert domain_transaction.category_id is None
        assert domain_transaction.pretax_amount is None
        assert domain_transaction.month_paid is None
        assert domain_transaction.source_type is None
        assert not domain_transaction.is_settled


class TestFixedAssetMapper:
    """Tests for FixedAsset mapper."""

    def test_fixed_asset_to_domain(self):
        orm_asset = ORMFixedAsset(
            id=1,
            name="Oven",
            purchase_cost=Decimal("3600.00"),
            useful_life_months=36,
            purchase_date=date(2024, 1, 10),
            salvage_value=Decimal("0"),
            depreciation_method="double_declining",
            is_depreciable=True,
            linked_transaction_id=9,
        )
        asset = fixed_asset_to_domain(orm_asset)

        assert isinstance(asset, FixedAsset)
        assert asset.purchase_cost == Decimal("3600.00")
        assert asset.depreciation_method == DepreciationMethod.DOUBLE_DECLINING
        assert asset.linked_transaction_id == 9
        assert asset.depreciation_start_date is None


class TestLoanMapper:
    """Tests for Loan mapper."""

    def test_loan_to_domain_collects_side_tables(self):
        orm_loan = ORMLoan(
            id=1,
            name="Van loan",
            principal=Decimal("10000.00"),
            annual_rate=Decimal("6.5"),
            term_months=24,
            payments_per_year=12,
            start_date=date(2024, 1, 1),
            is_active=True,
        )
        orm_loan.skipped_payments = [ORMLoanSkippedPayment(payment_number=3)]
        orm_loan.payment_overrides = [
            ORMLoanPaymentOverride(payment_number=5, override_amount=Decimal("1000.00"))
        ]
        loan = loan_to_domain(orm_loan)

        assert isinstance(loan, Loan)
        assert loan.annual_rate_percent == Decimal("6.5")
        assert loan.skipped_payments == frozenset({3})
        assert loan.payment_overrides == {5: Decimal("1000.00")}
        assert loan.is_active is True


class TestSettingsJson:
    """Tests for the JSON-encoded settings stored in app_meta."""

    def test_break_even_config_survives_storage(self):
        config = BreakEvenConfig(
            consumer=ConsumerChannel(enabled=True, avg_price=Decimal("45.50"), avg_cogs=Decimal("12")),
            b2b=B2BChannel(enabled=True, monthly_units=40, rate_per_unit=Decimal("20"), cogs_per_unit=Decimal("8")),
            include_asset_purchases=True,
            unit_increment=25,
            timeline=Timeline(start="2024-01", end=None),
        )
        assert break_even_config_from_json(break_even_config_to_json(config)) == config

    def test_amounts_are_stored_as_strings(self):
        data = json.loads(break_even_config_to_json(BreakEvenConfig()))
        assert data["consumer"]["avg_price"] == "0"

    @pytest.mark.parametrize("raw", [None, "", "{not json", "[1, 2]"])
    def test_break_even_config_defaults_on_bad_data(self, raw):
        assert break_even_config_from_json(raw) == BreakEvenConfig()

    def test_partial_break_even_config_keeps_defaults(self):
        config = break_even_config_from_json('{"include_depreciation": false}')

        assert config.include_depreciation is False
        assert config.include_budget_expenses is True
        assert config.unit_increment == 10

    def test_equity_config_survives_storage(self):
        config = EquityConfig(
            par_value=Decimal("0.0001"),
            share_count=10000000,
            apic=Decimal("49000"),
            seed_received_date=date(2024, 1, 5),
        )
        assert equity_config_from_json(equity_config_to_json(config)) == config

    @pytest.mark.parametrize("raw", [None, "oops", '"a string"'])
    def test_equity_config_defaults_on_bad_data(self, raw):
        assert equity_config_from_json(raw) == EquityConfig()
