"""Accrual-basis profit and loss.

Transactions are bucketed by ``month_due``. Computed fixed-asset
depreciation and loan interest are merged in as operating expenses, and
manual P&L overrides replace individual ``(category, month)`` cells.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

import structlog

from tallybook.domain.amortization import loan_interest_by_month
from tallybook.domain.depreciation import asset_depreciation_by_month
from tallybook.domain.entities import (
    Category,
    LedgerSnapshot,
    TaxMode,
    Transaction,
    TransactionType,
)
from tallybook.domain.overrides import TAX_OVERRIDE_CATEGORY_ID, OverrideTable
from tallybook.utils.money import ZERO, round2, sum_amounts, to_amount

logger = structlog.get_logger(__name__)

CORPORATE_TAX_RATE = Decimal("0.21")

CellKey = tuple[int, str]


@dataclass(frozen=True)
class PLRow:
    """One category line of the P&L spreadsheet."""

    category_id: int
    category_name: str
    computed: dict[str, Decimal] = field(default_factory=dict)
    values: dict[str, Decimal] = field(default_factory=dict)
    overridden_months: frozenset[str] = frozenset()

    def value(self, month: str) -> Decimal:
        return self.values.get(month, ZERO)


@dataclass(frozen=True)
class PLMonthTotals:
    """Section totals and net income for one month."""

    month: str
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    category_opex: Decimal
    manual_depreciation: Decimal
    asset_depreciation: Decimal
    loan_interest: Decimal
    total_opex: Decimal
    net_income_before_tax: Decimal
    tax: Decimal
    tax_overridden: bool
    net_income: Decimal


@dataclass(frozen=True)
class PLSpreadsheet:
    """Month-indexed P&L tables ready for spreadsheet rendering."""

    months: tuple[str, ...]
    revenue: tuple[PLRow, ...]
    cogs: tuple[PLRow, ...]
    opex: tuple[PLRow, ...]
    depreciation_categories: tuple[PLRow, ...]
    asset_depreciation_by_month: dict[str, Decimal]
    loan_interest_by_month: dict[str, Decimal]
    totals: tuple[PLMonthTotals, ...]
    tax_mode: TaxMode

    def totals_for(self, month: str) -> Optional[PLMonthTotals]:
        for totals in self.totals:
            if totals.month == month:
                return totals
        return None

    def row(self, category_id: int) -> Optional[PLRow]:
        for section in (self.revenue, self.cogs, self.opex, self.depreciation_categories):
            for row in section:
                if row.category_id == category_id:
                    return row
        return None


def is_revenue(txn: Transaction, category: Category) -> bool:
    return (
        txn.transaction_type == TransactionType.RECEIVABLE
        and not category.is_cogs
        and not category.hidden_from_pl
    )


def is_cogs(txn: Transaction, category: Category) -> bool:
    return category.is_cogs and not category.hidden_from_pl


def is_opex(txn: Transaction, category: Category) -> bool:
    return txn.transaction_type == TransactionType.PAYABLE and category.is_opex


def revenue_amount(txn: Transaction) -> Decimal:
    """Pre-tax amount when recorded, so collected sales tax stays out of revenue."""
    if txn.pretax_amount is not None:
        return to_amount(txn.pretax_amount)
    return to_amount(txn.amount)


def aggregate(
    transactions: Iterable[Transaction],
    categories: dict[int, Category],
    predicate: Callable[[Transaction, Category], bool],
    amount: Callable[[Transaction], Decimal] = lambda txn: to_amount(txn.amount),
    as_of: Optional[str] = None,
) -> dict[CellKey, Decimal]:
    """Sum matching transactions per ``(category_id, month_due)``."""
    cells: dict[CellKey, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.month_due is None or txn.category_id is None:
            continue
        if as_of is not None and txn.month_due > as_of:
            continue
        category = categories.get(txn.category_id)
        if category is None or not predicate(txn, category):
            continue
        key = (txn.category_id, txn.month_due)
        cells[key] = round2(cells[key] + amount(txn))
    return dict(cells)


def sort_categories(categories: Iterable[Category]) -> list[Category]:
    return sorted(categories, key=lambda cat: (cat.sort_order, cat.name))


def build_rows(
    category_ids: Iterable[int],
    categories: dict[int, Category],
    cells: dict[CellKey, Decimal],
    months: Sequence[str],
    overrides: OverrideTable,
) -> tuple[PLRow, ...]:
    """Turn aggregated cells into rows, applying overrides month by month."""
    rows = []
    for category in sort_categories(categories[cid] for cid in set(category_ids)):
        computed = {m: cells[(category.id, m)] for m in months if (category.id, m) in cells}
        values = {}
        overridden = set()
        for month in months:
            lookup = overrides.lookup(category.id, month)
            if lookup.is_value:
                values[month] = lookup.amount
                overridden.add(month)
            elif month in computed:
                values[month] = computed[month]
        rows.append(
            PLRow(
                category_id=category.id,
                category_name=category.name,
                computed=computed,
                values=values,
                overridden_months=frozenset(overridden),
            )
        )
    return tuple(rows)


def section_total(rows: Iterable[PLRow], month: str) -> Decimal:
    return sum_amounts(row.value(month) for row in rows)


def month_totals(
    month: str,
    revenue: Sequence[PLRow],
    cogs: Sequence[PLRow],
    opex: Sequence[PLRow],
    depreciation: Sequence[PLRow],
    asset_depreciation: dict[str, Decimal],
    loan_interest: dict[str, Decimal],
    overrides: OverrideTable,
    tax_mode: TaxMode,
) -> PLMonthTotals:
    """Section totals, tax and net income of one month."""
    month_revenue = section_total(revenue, month)
    month_cogs = section_total(cogs, month)
    category_opex = section_total(opex, month)
    manual_depreciation = section_total(depreciation, month)
    asset_depr = asset_depreciation.get(month, ZERO)
    interest = loan_interest.get(month, ZERO)
    total_opex = sum_amounts((category_opex, manual_depreciation, asset_depr, interest))
    nibt = round2(month_revenue - month_cogs - total_opex)

    tax = ZERO
    tax_overridden = False
    if tax_mode == TaxMode.CORPORATE:
        auto_tax = round2(max(ZERO, nibt) * CORPORATE_TAX_RATE)
        lookup = overrides.lookup(TAX_OVERRIDE_CATEGORY_ID, month)
        tax_overridden = lookup.is_value
        tax = round2(lookup.amount) if tax_overridden else auto_tax

    return PLMonthTotals(
        month=month,
        revenue=month_revenue,
        cogs=month_cogs,
        gross_profit=round2(month_revenue - month_cogs),
        category_opex=category_opex,
        manual_depreciation=manual_depreciation,
        asset_depreciation=asset_depr,
        loan_interest=interest,
        total_opex=total_opex,
        net_income_before_tax=nibt,
        tax=tax,
        tax_overridden=tax_overridden,
        net_income=round2(nibt - tax),
    )


def get_pl_spreadsheet(
    snapshot: LedgerSnapshot,
    as_of: Optional[str] = None,
    tax_mode: Optional[TaxMode] = None,
) -> PLSpreadsheet:
    """Build the accrual P&L over every month with activity.

    Args:
        snapshot: Ledger data
        as_of: Only include months up to and including this one
        tax_mode: Defaults to the snapshot's tax mode

    Returns:
        PLSpreadsheet whose months are the union of transaction due
        months, computed depreciation months and loan interest months.
    """
    tax_mode = tax_mode or snapshot.tax_mode
    categories = snapshot.category_index()
    transactions = snapshot.transactions
    overrides = snapshot.pl_overrides

    for category in categories.values():
        if category.has_conflicting_flags:
            logger.warning(
                "category_conflicting_flags",
                category_id=category.id,
                is_cogs=category.is_cogs,
                is_depreciation=category.is_depreciation,
                is_sales_tax=category.is_sales_tax,
            )

    revenue_cells = aggregate(transactions, categories, is_revenue, revenue_amount, as_of)
    cogs_cells = aggregate(transactions, categories, is_cogs, as_of=as_of)
    opex_cells = aggregate(transactions, categories, is_opex, as_of=as_of)

    asset_depreciation = asset_depreciation_by_month(snapshot.fixed_assets, as_of)
    loan_interest = loan_interest_by_month(snapshot.active_loans(), as_of)

    months = {
        txn.month_due
        for txn in transactions
        if txn.month_due is not None and (as_of is None or txn.month_due <= as_of)
    }
    months.update(asset_depreciation)
    months.update(loan_interest)
    ordered_months = tuple(sorted(months))

    opex_ids = {cid for cid, _ in opex_cells}
    depreciation_ids = {cid for cid, cat in categories.items() if cat.is_depreciation}
    claimed = {cid for cid, _ in revenue_cells} | {cid for cid, _ in cogs_cells} | opex_ids
    for cid in overrides.category_ids():
        category = categories.get(cid)
        if category is None or cid in claimed or cid in depreciation_ids:
            continue
        if category.is_opex:
            opex_ids.add(cid)

    revenue = build_rows({cid for cid, _ in revenue_cells}, categories, revenue_cells, ordered_months, overrides)
    cogs = build_rows({cid for cid, _ in cogs_cells}, categories, cogs_cells, ordered_months, overrides)
    opex = build_rows(opex_ids, categories, opex_cells, ordered_months, overrides)
    depreciation = build_rows(depreciation_ids, categories, {}, ordered_months, overrides)

    totals = tuple(
        month_totals(
            month, revenue, cogs, opex, depreciation,
            asset_depreciation, loan_interest, overrides, tax_mode,
        )
        for month in ordered_months
    )

    return PLSpreadsheet(
        months=ordered_months,
        revenue=revenue,
        cogs=cogs,
        opex=opex,
        depreciation_categories=depreciation,
        asset_depreciation_by_month=asset_depreciation,
        loan_interest_by_month=loan_interest,
        totals=totals,
        tax_mode=tax_mode,
    )


def get_retained_earnings_as_of(
    snapshot: LedgerSnapshot, as_of: str, tax_mode: Optional[TaxMode] = None
) -> Decimal:
    """Cumulative after-tax net income through ``as_of``.

    Replays every month with activity in ascending order and rounds the
    running total after each month.
    """
    spreadsheet = get_pl_spreadsheet(snapshot, as_of=as_of, tax_mode=tax_mode)
    cumulative = ZERO
    for totals in spreadsheet.totals:
        cumulative = round2(cumulative + totals.net_income_before_tax - totals.tax)
    return cumulative


def revenue_by_month(spreadsheet: PLSpreadsheet) -> dict[str, Decimal]:
    """Total revenue per month after overrides."""
    return {totals.month: totals.revenue for totals in spreadsheet.totals}


def budget_expenses_by_month(
    snapshot: LedgerSnapshot, spreadsheet: PLSpreadsheet, months: Iterable[str]
) -> dict[str, Decimal]:
    """Operating budget per month.

    The P&L operating-expense rows, plus the default amount of every
    monthly payable category that has no value of its own that month.
    """
    monthly_defaults = [
        cat
        for cat in snapshot.categories
        if cat.is_monthly
        and cat.is_opex
        and cat.default_type == TransactionType.PAYABLE
        and cat.default_amount is not None
    ]
    rows = {row.category_id: row for row in spreadsheet.opex}

    budget = {}
    for month in months:
        total = section_total(spreadsheet.opex, month)
        for category in monthly_defaults:
            row = rows.get(category.id)
            if row is None or month not in row.values:
                total = round2(total + to_amount(category.default_amount))
        budget[month] = total
    return budget
