"""Mapper functions to convert between domain models and SQLAlchemy models.

Settings objects have no table of their own; they are stored as JSON in
``app_meta`` and converted here as well.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from tallybook.domain import entities as domain
from tallybook.database.models import (
    Category as ORMCategory,
    FixedAsset as ORMFixedAsset,
    Loan as ORMLoan,
    Transaction as ORMTransaction,
)
from tallybook.utils.money import to_amount


def _decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else to_amount(value)


def _date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        is_cogs=bool(orm_category.is_cogs),
        is_depreciation=bool(orm_category.is_depreciation),
        is_sales_tax=bool(orm_category.is_sales_tax),
        hidden_from_pl=bool(orm_category.hidden_from_pl),
        is_monthly=bool(orm_category.is_monthly),
        default_amount=_decimal(orm_category.default_amount),
        default_type=(
            domain.TransactionType(orm_category.default_type)
            if orm_category.default_type
            else None
        ),
        folder_id=orm_category.folder_id,
        sort_order=orm_category.sort_order or 0,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        entry_date=orm_transaction.entry_date,
        category_id=orm_transaction.category_id,
        amount=to_amount(orm_transaction.amount),
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        status=domain.TransactionStatus(orm_transaction.status),
        month_due=orm_transaction.month_due,
        month_paid=orm_transaction.month_paid,
        pretax_amount=_decimal(orm_transaction.pretax_amount),
        date_processed=orm_transaction.date_processed,
        source_type=orm_transaction.source_type,
        source_id=orm_transaction.source_id,
        notes=orm_transaction.notes,
    )


def fixed_asset_to_domain(orm_asset: ORMFixedAsset) -> domain.FixedAsset:
    """Convert SQLAlchemy FixedAsset model to domain FixedAsset entity."""
    return domain.FixedAsset(
        id=orm_asset.id,
        name=orm_asset.name,
        purchase_cost=to_amount(orm_asset.purchase_cost),
        purchase_date=orm_asset.purchase_date,
        useful_life_months=orm_asset.useful_life_months or 0,
        salvage_value=to_amount(orm_asset.salvage_value),
        depreciation_method=domain.DepreciationMethod(orm_asset.depreciation_method),
        depreciation_start_date=orm_asset.depreciation_start_date,
        is_depreciable=bool(orm_asset.is_depreciable),
        linked_transaction_id=orm_asset.linked_transaction_id,
        notes=orm_asset.notes,
    )


def loan_to_domain(orm_loan: ORMLoan) -> domain.Loan:
    """Convert SQLAlchemy Loan model (with side tables) to domain Loan entity."""
    return domain.Loan(
        id=orm_loan.id,
        name=orm_loan.name,
        principal=to_amount(orm_loan.principal),
        annual_rate_percent=to_amount(orm_loan.annual_rate),
        term_months=orm_loan.term_months,
        start_date=orm_loan.start_date,
        payments_per_year=orm_loan.payments_per_year or 12,
        first_payment_date=orm_loan.first_payment_date,
        skipped_payments=frozenset(skip.payment_number for skip in orm_loan.skipped_payments),
        payment_overrides={
            override.payment_number: to_amount(override.override_amount)
            for override in orm_loan.payment_overrides
        },
        is_active=bool(orm_loan.is_active),
        notes=orm_loan.notes,
    )


def break_even_config_to_json(config: domain.BreakEvenConfig) -> str:
    """Serialize a BreakEvenConfig for the app_meta table."""
    timeline = None
    if config.timeline is not None:
        timeline = {"start": config.timeline.start, "end": config.timeline.end}
    return json.dumps(
        {
            "consumer": {
                "enabled": config.consumer.enabled,
                "avg_price": str(config.consumer.avg_price),
                "avg_cogs": str(config.consumer.avg_cogs),
            },
            "b2b": {
                "enabled": config.b2b.enabled,
                "monthly_units": config.b2b.monthly_units,
                "rate_per_unit": str(config.b2b.rate_per_unit),
                "cogs_per_unit": str(config.b2b.cogs_per_unit),
            },
            "include_budget_expenses": config.include_budget_expenses,
            "include_depreciation": config.include_depreciation,
            "include_loan_interest": config.include_loan_interest,
            "include_asset_purchases": config.include_asset_purchases,
            "unit_increment": config.unit_increment,
            "timeline": timeline,
        }
    )


def break_even_config_from_json(raw: Optional[str]) -> domain.BreakEvenConfig:
    """Parse a stored BreakEvenConfig; missing or corrupt data yields defaults."""
    try:
        data = json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    defaults = domain.BreakEvenConfig()
    consumer = data.get("consumer") or {}
    b2b = data.get("b2b") or {}
    timeline = data.get("timeline")
    return domain.BreakEvenConfig(
        consumer=domain.ConsumerChannel(
            enabled=bool(consumer.get("enabled", defaults.consumer.enabled)),
            avg_price=to_amount(consumer.get("avg_price")),
            avg_cogs=to_amount(consumer.get("avg_cogs")),
        ),
        b2b=domain.B2BChannel(
            enabled=bool(b2b.get("enabled", defaults.b2b.enabled)),
            monthly_units=int(to_amount(b2b.get("monthly_units"))),
            rate_per_unit=to_amount(b2b.get("rate_per_unit")),
            cogs_per_unit=to_amount(b2b.get("cogs_per_unit")),
        ),
        include_budget_expenses=bool(
            data.get("include_budget_expenses", defaults.include_budget_expenses)
        ),
        include_depreciation=bool(data.get("include_depreciation", defaults.include_depreciation)),
        include_loan_interest=bool(
            data.get("include_loan_interest", defaults.include_loan_interest)
        ),
        include_asset_purchases=bool(
            data.get("include_asset_purchases", defaults.include_asset_purchases)
        ),
        unit_increment=int(data.get("unit_increment") or defaults.unit_increment),
        timeline=(
            domain.Timeline(start=timeline.get("start"), end=timeline.get("end"))
            if isinstance(timeline, dict)
            else None
        ),
    )


def equity_config_to_json(config: domain.EquityConfig) -> str:
    """Serialize an EquityConfig for the app_meta table."""

    def iso(value: Optional[date]) -> Optional[str]:
        return value.isoformat() if value else None

    return json.dumps(
        {
            "common_stock_par": str(config.par_value),
            "common_stock_shares": config.share_count,
            "apic": str(config.apic),
            "seed_expected_date": iso(config.seed_expected_date),
            "seed_received_date": iso(config.seed_received_date),
            "apic_expected_date": iso(config.apic_expected_date),
            "apic_received_date": iso(config.apic_received_date),
        }
    )


def equity_config_from_json(raw: Optional[str]) -> domain.EquityConfig:
    """Parse a stored EquityConfig; missing or corrupt data yields zeros."""
    try:
        data = json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        data = {}
    if not isinstance(data, dict):
        return domain.EquityConfig()
    return domain.EquityConfig(
        par_value=to_amount(data.get("common_stock_par")),
        share_count=int(to_amount(data.get("common_stock_shares"))),
        apic=to_amount(data.get("apic")),
        seed_expected_date=_date(data.get("seed_expected_date")),
        seed_received_date=_date(data.get("seed_received_date")),
        apic_expected_date=_date(data.get("apic_expected_date")),
        apic_received_date=_date(data.get("apic_received_date")),
    )
