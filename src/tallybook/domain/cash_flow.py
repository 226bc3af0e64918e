"""Cash-basis views, keyed by the month money actually moved."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from tallybook.domain.entities import (
    LedgerSnapshot,
    TransactionStatus,
    TransactionType,
)
from tallybook.utils.money import ZERO, round2, sum_amounts, to_amount
from tallybook.utils.months import month_of


@dataclass(frozen=True)
class CashFlowRow:
    category_id: int
    category_name: str
    transaction_type: TransactionType
    computed: dict[str, Decimal] = field(default_factory=dict)
    values: dict[str, Decimal] = field(default_factory=dict)
    overridden_months: frozenset[str] = frozenset()
    projected_months: frozenset[str] = frozenset()

    def value(self, month: str) -> Decimal:
        return self.values.get(month, ZERO)


@dataclass(frozen=True)
class CashFlowMonth:
    month: str
    cash_in: Decimal
    cash_out: Decimal
    net: Decimal
    ending_cash: Decimal


@dataclass(frozen=True)
class CashFlowSpreadsheet:
    months: tuple[str, ...]
    rows: tuple[CashFlowRow, ...]
    totals: tuple[CashFlowMonth, ...]


@dataclass(frozen=True)
class MonthlySummary:
    month: str
    received: Decimal
    paid: Decimal
    pending_receivables: Decimal
    pending_payables: Decimal
    total_entries: int


def projected_average(computed: dict[str, Decimal], months, current_month: str) -> Decimal:
    """Average of the non-zero cells on or before ``current_month``."""
    past = [computed.get(m, ZERO) for m in months if m <= current_month]
    past = [value for value in past if value > 0]
    if not past:
        return ZERO
    return round2(sum_amounts(past) / len(past))


def get_cash_flow_spreadsheet(
    snapshot: LedgerSnapshot, current_month: Optional[str] = None
) -> CashFlowSpreadsheet:
    """Per-category, per-type totals of settled transactions by ``month_paid``.

    Cash-flow overrides are keyed by category and month and replace the
    computed cell of every row of that category.

    Args:
        snapshot: Books to read
        current_month: When given, empty cells in later months are filled
            with the row's average of non-zero months up to this one, and
            listed in ``projected_months``. Overrides still win.
    """
    categories = snapshot.category_index()
    overrides = snapshot.cash_flow_overrides
    cells: dict[tuple[int, TransactionType, str], Decimal] = {}
    months = set()

    for txn in snapshot.transactions:
        if txn.status == TransactionStatus.PENDING or txn.month_paid is None:
            continue
        months.add(txn.month_paid)
        if txn.category_id is None or txn.category_id not in categories:
            continue
        key = (txn.category_id, txn.transaction_type, txn.month_paid)
        cells[key] = round2(cells.get(key, ZERO) + to_amount(txn.amount))

    ordered_months = tuple(sorted(months))
    row_keys = sorted(
        {(cid, ttype) for cid, ttype, _ in cells},
        key=lambda k: (categories[k[0]].sort_order, categories[k[0]].name, k[1].value),
    )

    rows = []
    for cid, ttype in row_keys:
        computed = {m: cells[(cid, ttype, m)] for m in ordered_months if (cid, ttype, m) in cells}
        values = {}
        overridden = set()
        projected = set()
        average = ZERO
        if current_month is not None:
            average = projected_average(computed, ordered_months, current_month)
        for month in ordered_months:
            lookup = overrides.lookup(cid, month)
            if lookup.is_value:
                values[month] = lookup.amount
                overridden.add(month)
            elif computed.get(month, ZERO) == 0 and average > 0 and month > current_month:
                values[month] = average
                projected.add(month)
            elif month in computed:
                values[month] = computed[month]
        rows.append(
            CashFlowRow(
                category_id=cid,
                category_name=categories[cid].name,
                transaction_type=ttype,
                computed=computed,
                values=values,
                overridden_months=frozenset(overridden),
                projected_months=frozenset(projected),
            )
        )

    totals = []
    running = ZERO
    for month in ordered_months:
        cash_in = sum_amounts(
            row.values.get(month, ZERO) for row in rows if row.transaction_type == TransactionType.RECEIVABLE
        )
        cash_out = sum_amounts(
            row.values.get(month, ZERO) for row in rows if row.transaction_type == TransactionType.PAYABLE
        )
        net = round2(cash_in - cash_out)
        running = round2(running + net)
        totals.append(
            CashFlowMonth(month=month, cash_in=cash_in, cash_out=cash_out, net=net, ending_cash=running)
        )

    return CashFlowSpreadsheet(months=ordered_months, rows=tuple(rows), totals=tuple(totals))


def cash_flow_summary(snapshot: LedgerSnapshot) -> list[CashFlowMonth]:
    """Raw cash in and out per month paid, before overrides.

    Unlike the spreadsheet this counts every settled entry, including ones
    whose category no longer exists.
    """
    flows: dict[str, dict[TransactionType, Decimal]] = {}
    for txn in snapshot.transactions:
        if txn.status == TransactionStatus.PENDING or txn.month_paid is None:
            continue
        month = flows.setdefault(txn.month_paid, {})
        month[txn.transaction_type] = round2(
            month.get(txn.transaction_type, ZERO) + to_amount(txn.amount)
        )

    summary = []
    running = ZERO
    for month in sorted(flows):
        cash_in = flows[month].get(TransactionType.RECEIVABLE, ZERO)
        cash_out = flows[month].get(TransactionType.PAYABLE, ZERO)
        net = round2(cash_in - cash_out)
        running = round2(running + net)
        summary.append(
            CashFlowMonth(month=month, cash_in=cash_in, cash_out=cash_out, net=net, ending_cash=running)
        )
    return summary


def monthly_summary(snapshot: LedgerSnapshot, month: Optional[str] = None) -> list[MonthlySummary]:
    """Settled and pending totals grouped by entry month, newest first."""
    groups: dict[str, dict] = {}
    for txn in snapshot.transactions:
        key = month_of(txn.entry_date)
        if month is not None and key != month:
            continue
        group = groups.setdefault(
            key, {"received": [], "paid": [], "pending_in": [], "pending_out": [], "count": 0}
        )
        group["count"] += 1
        if txn.transaction_type == TransactionType.RECEIVABLE:
            bucket = "received" if txn.status == TransactionStatus.RECEIVED else "pending_in"
            if txn.status not in (TransactionStatus.RECEIVED, TransactionStatus.PENDING):
                continue
        else:
            bucket = "paid" if txn.status == TransactionStatus.PAID else "pending_out"
            if txn.status not in (TransactionStatus.PAID, TransactionStatus.PENDING):
                continue
        group[bucket].append(txn.amount)

    return [
        MonthlySummary(
            month=key,
            received=sum_amounts(group["received"]),
            paid=sum_amounts(group["paid"]),
            pending_receivables=sum_amounts(group["pending_in"]),
            pending_payables=sum_amounts(group["pending_out"]),
            total_entries=group["count"],
        )
        for key, group in sorted(groups.items(), reverse=True)
    ]
