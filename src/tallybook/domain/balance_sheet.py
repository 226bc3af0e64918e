"""Balance-sheet figures as of a month.

An item is outstanding as of a month when it was due by then and either is
still pending or was settled in a later month.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from tallybook.domain.amortization import loan_balance_as_of
from tallybook.domain.depreciation import (
    accumulated_depreciation_as_of,
    is_owned_as_of,
)
from tallybook.domain.entities import (
    Category,
    EquityConfig,
    LedgerSnapshot,
    TaxMode,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from tallybook.domain.profit_loss import get_retained_earnings_as_of
from tallybook.utils.money import ZERO, round2, sum_amounts, to_amount, within_tolerance
from tallybook.utils.months import month_of

logger = structlog.get_logger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class AssetLine:
    asset_id: int
    name: str
    purchase_cost: Decimal
    accumulated_depreciation: Decimal
    net_book_value: Decimal


@dataclass(frozen=True)
class LoanLine:
    loan_id: int
    name: str
    balance: Decimal


@dataclass(frozen=True)
class CategoryBalance:
    category_id: int
    category_name: str
    total: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """Assets, liabilities and equity as of ``as_of_month``."""

    as_of_month: str
    cash: Decimal
    accounts_receivable: Decimal
    assets: tuple[AssetLine, ...]
    total_fixed_asset_cost: Decimal
    total_accumulated_depreciation: Decimal
    net_fixed_assets: Decimal
    total_assets: Decimal
    accounts_payable: Decimal
    sales_tax_payable: Decimal
    loans: tuple[LoanLine, ...]
    total_loan_balance: Decimal
    total_liabilities: Decimal
    common_stock: Decimal
    apic: Decimal
    retained_earnings: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal

    @property
    def difference(self) -> Decimal:
        return round2(self.total_assets - self.total_liabilities_and_equity)

    @property
    def is_balanced(self) -> bool:
        return within_tolerance(
            self.total_assets, self.total_liabilities_and_equity, BALANCE_TOLERANCE
        )


def is_outstanding(txn: Transaction, as_of: str) -> bool:
    """Due by ``as_of`` and not yet settled at that point."""
    if txn.month_due is None or txn.month_due > as_of:
        return False
    if txn.status == TransactionStatus.PENDING:
        return True
    return txn.month_paid is not None and txn.month_paid > as_of


def cash_as_of(transactions: Iterable[Transaction], as_of: str) -> Decimal:
    """Received receivables less paid payables settled by ``as_of``."""
    cash = ZERO
    for txn in transactions:
        if txn.month_paid is None or txn.month_paid > as_of:
            continue
        if txn.transaction_type == TransactionType.RECEIVABLE and txn.status == TransactionStatus.RECEIVED:
            cash = round2(cash + to_amount(txn.amount))
        elif txn.transaction_type == TransactionType.PAYABLE and txn.status == TransactionStatus.PAID:
            cash = round2(cash - to_amount(txn.amount))
    return cash


def accounts_receivable_as_of(transactions: Iterable[Transaction], as_of: str) -> Decimal:
    return sum_amounts(
        txn.amount
        for txn in transactions
        if txn.transaction_type == TransactionType.RECEIVABLE and is_outstanding(txn, as_of)
    )


def _payables(
    transactions: Iterable[Transaction],
    categories: dict[int, Category],
    as_of: str,
    sales_tax: bool,
) -> list[Transaction]:
    selected = []
    for txn in transactions:
        if txn.transaction_type != TransactionType.PAYABLE or txn.category_id is None:
            continue
        category = categories.get(txn.category_id)
        if category is None or category.is_sales_tax != sales_tax:
            continue
        if is_outstanding(txn, as_of):
            selected.append(txn)
    return selected


def accounts_payable_as_of(
    transactions: Iterable[Transaction], categories: dict[int, Category], as_of: str
) -> Decimal:
    """Outstanding payables outside sales-tax categories."""
    return sum_amounts(txn.amount for txn in _payables(transactions, categories, as_of, False))


def sales_tax_payable_as_of(
    transactions: Iterable[Transaction], categories: dict[int, Category], as_of: str
) -> Decimal:
    """Outstanding payables in sales-tax categories."""
    return sum_amounts(txn.amount for txn in _payables(transactions, categories, as_of, True))


def _by_category(
    transactions: Iterable[Transaction], categories: dict[int, Category]
) -> list[CategoryBalance]:
    totals: dict[int, Decimal] = {}
    for txn in transactions:
        if txn.category_id is None or txn.category_id not in categories:
            continue
        totals[txn.category_id] = round2(totals.get(txn.category_id, ZERO) + to_amount(txn.amount))
    lines = [
        CategoryBalance(category_id=cid, category_name=categories[cid].name, total=total)
        for cid, total in totals.items()
        if total > ZERO
    ]
    return sorted(lines, key=lambda line: line.category_name)


def ar_by_category(
    transactions: Iterable[Transaction], categories: dict[int, Category], as_of: str
) -> list[CategoryBalance]:
    """Outstanding receivables per category (positive totals, by name)."""
    outstanding = [
        txn
        for txn in transactions
        if txn.transaction_type == TransactionType.RECEIVABLE and is_outstanding(txn, as_of)
    ]
    return _by_category(outstanding, categories)


def ap_by_category(
    transactions: Iterable[Transaction], categories: dict[int, Category], as_of: str
) -> list[CategoryBalance]:
    """Outstanding non-sales-tax payables per category (positive totals, by name)."""
    return _by_category(_payables(transactions, categories, as_of, False), categories)


def _effective_month(received: Optional[date], expected: Optional[date]) -> Optional[str]:
    effective = received or expected
    return month_of(effective) if effective is not None else None


def equity_as_of(equity: EquityConfig, as_of: str) -> tuple[Decimal, Decimal]:
    """Common stock and APIC recognised as of a month.

    Each amount counts from the month it was received, or expected when no
    receipt date is recorded; with neither date it always counts.
    """
    seed_month = _effective_month(equity.seed_received_date, equity.seed_expected_date)
    apic_month = _effective_month(equity.apic_received_date, equity.apic_expected_date)

    common_stock = ZERO
    if seed_month is None or seed_month <= as_of:
        common_stock = round2(to_amount(equity.par_value) * Decimal(int(equity.share_count or 0)))
    apic = ZERO
    if apic_month is None or apic_month <= as_of:
        apic = round2(equity.apic)
    return common_stock, apic


def build_balance_sheet(
    snapshot: LedgerSnapshot, as_of: str, tax_mode: Optional[TaxMode] = None
) -> BalanceSheet:
    """Assemble the balance sheet and check assets = liabilities + equity.

    An imbalance beyond one cent is logged as a data-integrity warning;
    it is not an error because out-of-order edits can cause it transiently.
    """
    categories = snapshot.category_index()
    transactions = snapshot.transactions

    cash = cash_as_of(transactions, as_of)
    receivable = accounts_receivable_as_of(transactions, as_of)

    asset_lines = []
    for asset in snapshot.fixed_assets:
        if not is_owned_as_of(asset, as_of):
            continue
        cost = round2(asset.purchase_cost)
        accumulated = accumulated_depreciation_as_of(asset, as_of)
        asset_lines.append(
            AssetLine(
                asset_id=asset.id,
                name=asset.name,
                purchase_cost=cost,
                accumulated_depreciation=accumulated,
                net_book_value=round2(cost - accumulated),
            )
        )
    total_cost = sum_amounts(line.purchase_cost for line in asset_lines)
    total_accumulated = sum_amounts(line.accumulated_depreciation for line in asset_lines)
    net_fixed_assets = round2(total_cost - total_accumulated)
    total_assets = sum_amounts((cash, receivable, net_fixed_assets))

    payable = accounts_payable_as_of(transactions, categories, as_of)
    sales_tax = sales_tax_payable_as_of(transactions, categories, as_of)
    loan_lines = tuple(
        LoanLine(loan_id=loan.id, name=loan.name, balance=loan_balance_as_of(loan, as_of))
        for loan in snapshot.active_loans()
    )
    total_loans = sum_amounts(line.balance for line in loan_lines)
    total_liabilities = sum_amounts((payable, sales_tax, total_loans))

    common_stock, apic = equity_as_of(snapshot.equity_config, as_of)
    retained = get_retained_earnings_as_of(snapshot, as_of, tax_mode)
    total_equity = sum_amounts((common_stock, apic, retained))

    sheet = BalanceSheet(
        as_of_month=as_of,
        cash=cash,
        accounts_receivable=receivable,
        assets=tuple(asset_lines),
        total_fixed_asset_cost=total_cost,
        total_accumulated_depreciation=total_accumulated,
        net_fixed_assets=net_fixed_assets,
        total_assets=total_assets,
        accounts_payable=payable,
        sales_tax_payable=sales_tax,
        loans=loan_lines,
        total_loan_balance=total_loans,
        total_liabilities=total_liabilities,
        common_stock=common_stock,
        apic=apic,
        retained_earnings=retained,
        total_equity=total_equity,
        total_liabilities_and_equity=round2(total_liabilities + total_equity),
    )
    if not sheet.is_balanced:
        logger.warning(
            "balance_sheet_out_of_balance",
            as_of=as_of,
            total_assets=str(sheet.total_assets),
            total_liabilities_and_equity=str(sheet.total_liabilities_and_equity),
            difference=str(sheet.difference),
        )
    return sheet
