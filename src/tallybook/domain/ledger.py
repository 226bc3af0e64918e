"""Ledger domain service: validated writes to the books."""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from tallybook.database.base import Database
from tallybook.domain.amortization import total_payments, validate_loan
from tallybook.domain.breakeven import validate_break_even_config
from tallybook.domain.depreciation import validate_fixed_asset
from tallybook.domain.entities import (
    BreakEvenConfig,
    Category,
    DepreciationMethod,
    EquityConfig,
    FixedAsset,
    Loan,
    TaxMode,
    Timeline,
    TransactionStatus,
    TransactionType,
)
from tallybook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    duplicate_category,
    loan_not_found,
    payment_out_of_range,
    transaction_not_found,
)
from tallybook.domain.overrides import TAX_OVERRIDE_CATEGORY_ID
from tallybook.utils.money import ZERO, round2, to_amount
from tallybook.utils.months import month_of, parse_month

logger = structlog.get_logger(__name__)

ASSET_PURCHASE_SOURCE = "asset_purchase"


def resolve_month_paid(
    status: TransactionStatus,
    month_paid: Optional[str],
    date_processed: Optional[date],
    entry_date: date,
) -> Optional[str]:
    """Cash month of an entry in the given status.

    Pending entries have no cash month. Settled entries keep an explicit
    ``month_paid``, else take the month of ``date_processed``, else the
    entry month.
    """
    if status == TransactionStatus.PENDING:
        return None
    if month_paid:
        return parse_month(month_paid)
    return month_of(date_processed or entry_date)


def _check_status(transaction_type: TransactionType, status: TransactionStatus) -> None:
    if transaction_type == TransactionType.PAYABLE and status == TransactionStatus.RECEIVED:
        raise ValidationError("A payable can be pending or paid, not received")
    if transaction_type == TransactionType.RECEIVABLE and status == TransactionStatus.PAID:
        raise ValidationError("A receivable can be pending or received, not paid")


class LedgerService:
    """Service for recording categories, entries, assets, loans and settings."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    # Categories
    def create_category(
        self,
        name: str,
        is_cogs: bool = False,
        is_depreciation: bool = False,
        is_sales_tax: bool = False,
        hidden_from_pl: bool = False,
        is_monthly: bool = False,
        default_amount: Optional[Decimal] = None,
        default_type: Optional[TransactionType] = None,
    ) -> int:
        """Create a category.

        Args:
            name: Category name, unique
            is_cogs: Bucket payables as cost of goods sold
            is_depreciation: Row fed only by manual P&L overrides
            is_sales_tax: Payables are sales tax owed, not expenses
            hidden_from_pl: Keep the category off the P&L entirely
            is_monthly: Recurring budget item
            default_amount: Budget amount for monthly categories
            default_type: Direction of the default amount

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a category with that name exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        if self.db.get_category_by_name(name) is not None:
            raise ConflictError(duplicate_category(name))
        if sum((is_cogs, is_depreciation, is_sales_tax)) > 1:
            logger.warning("category_conflicting_flags", name=name)
        return self.db.create_category(
            name=name,
            is_cogs=is_cogs,
            is_depreciation=is_depreciation,
            is_sales_tax=is_sales_tax,
            hidden_from_pl=hidden_from_pl,
            is_monthly=is_monthly,
            default_amount=round2(default_amount) if default_amount is not None else None,
            default_type=default_type,
        )

    def list_categories(self) -> list[Category]:
        return self.db.list_categories()

    def _require_category(self, category_id: int) -> Category:
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    # Transactions
    def add_transaction(
        self,
        entry_date: date,
        category_id: Optional[int],
        amount: Decimal,
        transaction_type: TransactionType,
        status: TransactionStatus = TransactionStatus.PENDING,
        month_due: Optional[str] = None,
        month_paid: Optional[str] = None,
        pretax_amount: Optional[Decimal] = None,
        date_processed: Optional[date] = None,
        notes: Optional[str] = None,
        source_type: Optional[str] = None,
        source_id: Optional[int] = None,
    ) -> int:
        """Record a ledger entry.

        ``month_due`` defaults to the entry month. ``month_paid`` is cleared
        for pending entries and filled in for settled ones (see
        :func:`resolve_month_paid`).

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the category doesn't exist
            ValidationError: On a negative amount or a status that does not
                fit the transaction type
        """
        if category_id is not None:
            self._require_category(category_id)
        amount = round2(to_amount(amount))
        if amount < ZERO:
            raise ValidationError("Amount cannot be negative")
        _check_status(transaction_type, status)

        due = parse_month(month_due) if month_due else month_of(entry_date)
        paid = resolve_month_paid(status, month_paid, date_processed, entry_date)
        txn_id = self.db.create_transaction(
            entry_date=entry_date,
            category_id=category_id,
            amount=amount,
            transaction_type=transaction_type,
            status=status,
            month_due=due,
            month_paid=paid,
            pretax_amount=round2(pretax_amount) if pretax_amount is not None else None,
            date_processed=date_processed if status != TransactionStatus.PENDING else None,
            source_type=source_type,
            source_id=source_id,
            notes=notes,
        )
        logger.info(
            "transaction_added",
            transaction_id=txn_id,
            type=transaction_type.value,
            status=status.value,
            month_due=due,
            month_paid=paid,
        )
        return txn_id

    def mark_settled(
        self,
        transaction_id: int,
        date_processed: Optional[date] = None,
        month_paid: Optional[str] = None,
    ) -> None:
        """Mark an entry paid (payables) or received (receivables).

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        status = (
            TransactionStatus.PAID
            if txn.transaction_type == TransactionType.PAYABLE
            else TransactionStatus.RECEIVED
        )
        paid = resolve_month_paid(status, month_paid, date_processed, txn.entry_date)
        self.db.update_transaction_status(transaction_id, status, paid, date_processed)

    def mark_pending(self, transaction_id: int) -> None:
        """Return an entry to pending, clearing its cash month."""
        if self.db.get_transaction(transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        self.db.update_transaction_status(transaction_id, TransactionStatus.PENDING, None, None)

    def delete_transaction(self, transaction_id: int) -> None:
        self.db.delete_transaction(transaction_id)

    # Fixed assets
    def add_fixed_asset(
        self,
        name: str,
        purchase_cost: Decimal,
        useful_life_months: int,
        purchase_date: date,
        salvage_value: Decimal = ZERO,
        depreciation_method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE,
        depreciation_start_date: Optional[date] = None,
        is_depreciable: bool = True,
        notes: Optional[str] = None,
        purchase_category_id: Optional[int] = None,
    ) -> int:
        """Record a fixed asset.

        With ``purchase_category_id`` a pending payable for the purchase
        cost is booked in that category and linked to the asset. The
        category should be hidden from the P&L so the purchase reaches the
        income statement only through depreciation.

        Returns:
            Asset ID

        Raises:
            ValidationError: If the asset could not be depreciated
            NotFoundError: If the purchase category doesn't exist
        """
        candidate = FixedAsset(
            id=0,
            name=name.strip(),
            purchase_cost=round2(to_amount(purchase_cost)),
            purchase_date=purchase_date,
            useful_life_months=int(useful_life_months or 0),
            salvage_value=round2(to_amount(salvage_value)),
            depreciation_method=depreciation_method,
            depreciation_start_date=depreciation_start_date,
            is_depreciable=is_depreciable,
            notes=notes,
        )
        if not candidate.name:
            raise ValidationError("Asset name cannot be empty")
        validate_fixed_asset(candidate)
        if purchase_category_id is not None:
            self._require_category(purchase_category_id)

        asset_id = self.db.create_fixed_asset(
            name=candidate.name,
            purchase_cost=candidate.purchase_cost,
            useful_life_months=candidate.useful_life_months,
            purchase_date=purchase_date,
            salvage_value=candidate.salvage_value,
            depreciation_method=depreciation_method,
            depreciation_start_date=depreciation_start_date,
            is_depreciable=is_depreciable,
            notes=notes,
        )
        if purchase_category_id is not None:
            txn_id = self.add_transaction(
                entry_date=purchase_date,
                category_id=purchase_category_id,
                amount=candidate.purchase_cost,
                transaction_type=TransactionType.PAYABLE,
                notes=f"Purchase: {candidate.name}",
                source_type=ASSET_PURCHASE_SOURCE,
                source_id=asset_id,
            )
            self.db.link_transaction_to_asset(asset_id, txn_id)
        logger.info("fixed_asset_added", asset_id=asset_id, method=depreciation_method.value)
        return asset_id

    def delete_fixed_asset(self, asset_id: int) -> None:
        self.db.delete_fixed_asset(asset_id)

    # Loans
    def add_loan(
        self,
        name: str,
        principal: Decimal,
        annual_rate_percent: Decimal,
        term_months: int,
        start_date: date,
        payments_per_year: int = 12,
        first_payment_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Record a loan.

        Returns:
            Loan ID

        Raises:
            ValidationError: If the terms cannot produce a schedule
        """
        candidate = Loan(
            id=0,
            name=name.strip(),
            principal=round2(to_amount(principal)),
            annual_rate_percent=to_amount(annual_rate_percent),
            term_months=int(term_months),
            start_date=start_date,
            payments_per_year=int(payments_per_year),
            first_payment_date=first_payment_date,
        )
        if not candidate.name:
            raise ValidationError("Loan name cannot be empty")
        validate_loan(candidate)
        loan_id = self.db.create_loan(
            name=candidate.name,
            principal=candidate.principal,
            annual_rate_percent=candidate.annual_rate_percent,
            term_months=candidate.term_months,
            start_date=start_date,
            payments_per_year=candidate.payments_per_year,
            first_payment_date=first_payment_date,
            notes=notes,
        )
        logger.info("loan_added", loan_id=loan_id, payments=total_payments(candidate))
        return loan_id

    def _require_payment(self, loan_id: int, payment_number: int) -> Loan:
        loan = self.db.get_loan(loan_id)
        if loan is None:
            raise NotFoundError(loan_not_found(loan_id))
        total = total_payments(loan)
        if not 1 <= payment_number <= total:
            raise ValidationError(payment_out_of_range(loan_id, payment_number, total))
        return loan

    def toggle_skipped_payment(self, loan_id: int, payment_number: int) -> bool:
        """Skip a payment, or un-skip it if already skipped.

        Returns:
            True when the payment is now skipped

        Raises:
            NotFoundError: If the loan doesn't exist
            ValidationError: If the payment number is outside the schedule
        """
        self._require_payment(loan_id, payment_number)
        skipped = self.db.toggle_skipped_payment(loan_id, payment_number)
        logger.info("loan_payment_skip_toggled", loan_id=loan_id, payment=payment_number, skipped=skipped)
        return skipped

    def set_payment_override(
        self, loan_id: int, payment_number: int, amount: Optional[Decimal]
    ) -> None:
        """Replace the amount of one payment; None restores the level payment."""
        self._require_payment(loan_id, payment_number)
        if amount is not None:
            amount = round2(to_amount(amount))
            if amount < ZERO:
                raise ValidationError("Payment override cannot be negative")
        self.db.set_payment_override(loan_id, payment_number, amount)

    def delete_loan(self, loan_id: int) -> None:
        self.db.delete_loan(loan_id)

    # Overrides
    def set_pl_override(self, category_id: int, month: str, amount: Optional[Decimal]) -> None:
        """Pin a P&L cell to ``amount``; None clears it back to computed.

        ``category_id`` -1 addresses the income-tax row.
        """
        if category_id != TAX_OVERRIDE_CATEGORY_ID:
            self._require_category(category_id)
        month = parse_month(month)
        self.db.set_pl_override(category_id, month, round2(amount) if amount is not None else None)
        logger.info("pl_override_set", category_id=category_id, month=month, cleared=amount is None)

    def set_cash_flow_override(
        self, category_id: int, month: str, amount: Optional[Decimal]
    ) -> None:
        """Pin a cash-flow cell to ``amount``; None clears it."""
        self._require_category(category_id)
        month = parse_month(month)
        self.db.set_cash_flow_override(
            category_id, month, round2(amount) if amount is not None else None
        )

    # Settings
    def set_equity_config(self, config: EquityConfig) -> None:
        """Store paid-in capital settings.

        Raises:
            ValidationError: On negative par value, share count or APIC
        """
        if to_amount(config.par_value) < ZERO or config.share_count < 0 or to_amount(config.apic) < ZERO:
            raise ValidationError("Equity amounts cannot be negative")
        self.db.set_equity_config(config)

    def set_break_even_config(self, config: BreakEvenConfig) -> None:
        """Store break-even inputs after validation."""
        validate_break_even_config(config)
        self.db.set_break_even_config(config)

    def update_break_even_config(self, **changes) -> BreakEvenConfig:
        """Apply top-level field changes to the stored config and save it."""
        config = replace(self.db.get_break_even_config(), **changes)
        self.set_break_even_config(config)
        return config

    def set_timeline(self, start: Optional[str], end: Optional[str]) -> None:
        timeline = Timeline(
            start=parse_month(start) if start else None,
            end=parse_month(end) if end else None,
        )
        if timeline.start and timeline.end and timeline.start > timeline.end:
            raise ValidationError("Timeline start must not be after its end")
        self.db.set_timeline(timeline)

    def set_tax_mode(self, mode: TaxMode) -> None:
        self.db.set_tax_mode(mode)
