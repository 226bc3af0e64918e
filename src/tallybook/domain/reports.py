"""Report domain service.

Every method loads a fresh :class:`LedgerSnapshot` and hands it to the
pure engines, so reports always reflect the latest writes.
"""

from decimal import Decimal
from typing import Optional

from tallybook.database.base import Database
from tallybook.domain.amortization import compute_amortization_schedule, loan_interest_by_month
from tallybook.domain.balance_sheet import (
    BalanceSheet,
    CategoryBalance,
    ap_by_category,
    ar_by_category,
    build_balance_sheet,
)
from tallybook.domain.breakeven import (
    BreakEvenResult,
    ChartPoint,
    FixedCostInputs,
    ProgressPoint,
    TimelinePoint,
    average_fixed_costs,
    break_even_progress,
    compute_break_even,
    compute_break_even_chart_points,
    compute_break_even_timeline,
)
from tallybook.domain.cash_flow import (
    CashFlowMonth,
    CashFlowSpreadsheet,
    MonthlySummary,
    cash_flow_summary,
    get_cash_flow_spreadsheet,
    monthly_summary,
)
from tallybook.domain.depreciation import (
    asset_depreciation_by_month,
    compute_depreciation_schedule,
)
from tallybook.domain.entities import (
    LedgerSnapshot,
    PaymentRecord,
    TaxMode,
    Timeline,
)
from tallybook.domain.errors import NotFoundError, asset_not_found, loan_not_found
from tallybook.domain.profit_loss import (
    PLSpreadsheet,
    budget_expenses_by_month,
    get_pl_spreadsheet,
    get_retained_earnings_as_of,
    revenue_by_month,
)
from tallybook.utils.money import sum_amounts
from tallybook.utils.months import month_of, month_range


class ReportService:
    """Service for the P&L, balance sheet, cash flow and break-even views."""

    def __init__(self, db: Database, tax_mode: Optional[TaxMode] = None):
        """Initialize report service.

        Args:
            db: Database instance
            tax_mode: Overrides the stored tax mode when given
        """
        self.db = db
        self.tax_mode = tax_mode

    def snapshot(self) -> LedgerSnapshot:
        return self.db.load_snapshot()

    def _tax_mode(self, snapshot: LedgerSnapshot) -> TaxMode:
        return self.tax_mode or snapshot.tax_mode

    # Accrual reports
    def pl_spreadsheet(self, as_of: Optional[str] = None) -> PLSpreadsheet:
        snapshot = self.snapshot()
        return get_pl_spreadsheet(snapshot, as_of=as_of, tax_mode=self._tax_mode(snapshot))

    def retained_earnings(self, as_of: str) -> Decimal:
        snapshot = self.snapshot()
        return get_retained_earnings_as_of(snapshot, as_of, self._tax_mode(snapshot))

    def balance_sheet(self, as_of: str) -> BalanceSheet:
        snapshot = self.snapshot()
        return build_balance_sheet(snapshot, as_of, self._tax_mode(snapshot))

    def receivables_by_category(self, as_of: str) -> list[CategoryBalance]:
        snapshot = self.snapshot()
        return ar_by_category(snapshot.transactions, snapshot.category_index(), as_of)

    def payables_by_category(self, as_of: str) -> list[CategoryBalance]:
        snapshot = self.snapshot()
        return ap_by_category(snapshot.transactions, snapshot.category_index(), as_of)

    # Cash reports
    def cash_flow(self, current_month: Optional[str] = None) -> CashFlowSpreadsheet:
        return get_cash_flow_spreadsheet(self.snapshot(), current_month)

    def cash_flow_summary(self) -> list[CashFlowMonth]:
        return cash_flow_summary(self.snapshot())

    def monthly_summary(self, month: Optional[str] = None) -> list[MonthlySummary]:
        return monthly_summary(self.snapshot(), month)

    # Schedules
    def amortization_schedule(self, loan_id: int) -> list[PaymentRecord]:
        """Payment schedule of a loan, honouring its skips and overrides.

        Raises:
            NotFoundError: If the loan doesn't exist
        """
        loan = self.db.get_loan(loan_id)
        if loan is None:
            raise NotFoundError(loan_not_found(loan_id))
        return compute_amortization_schedule(loan)

    def depreciation_schedule(self, asset_id: int) -> dict[str, Decimal]:
        """Month -> depreciation of one asset.

        Raises:
            NotFoundError: If the asset doesn't exist
        """
        asset = self.db.get_fixed_asset(asset_id)
        if asset is None:
            raise NotFoundError(asset_not_found(asset_id))
        return compute_depreciation_schedule(asset)

    # Break-even
    def timeline_months(self, snapshot: LedgerSnapshot, spreadsheet: PLSpreadsheet) -> list[str]:
        """Months of the planning window.

        The break-even config's own timeline wins over the global one; an
        open bound falls back to the first or last P&L month.
        """
        configured = snapshot.break_even_config.timeline
        timeline = configured if configured and (configured.start or configured.end) else snapshot.timeline
        timeline = timeline or Timeline()
        start = timeline.start or (spreadsheet.months[0] if spreadsheet.months else None)
        end = timeline.end or (spreadsheet.months[-1] if spreadsheet.months else None)
        if start is None or end is None:
            return []
        return month_range(start, end)

    def fixed_cost_inputs(
        self, snapshot: LedgerSnapshot, spreadsheet: PLSpreadsheet, months: list[str]
    ) -> FixedCostInputs:
        """Gather the per-month fixed-cost components for the window."""
        window = set(months)
        purchases = sum_amounts(
            asset.purchase_cost
            for asset in snapshot.fixed_assets
            if asset.purchase_date is not None and month_of(asset.purchase_date) in window
        )
        return FixedCostInputs(
            budget_by_month=budget_expenses_by_month(snapshot, spreadsheet, months),
            depreciation_by_month=asset_depreciation_by_month(snapshot.fixed_assets),
            interest_by_month=loan_interest_by_month(snapshot.active_loans()),
            asset_purchase_total=purchases,
            timeline_months=len(months),
        )

    def _break_even_context(self):
        snapshot = self.snapshot()
        spreadsheet = get_pl_spreadsheet(snapshot, tax_mode=self._tax_mode(snapshot))
        months = self.timeline_months(snapshot, spreadsheet)
        inputs = self.fixed_cost_inputs(snapshot, spreadsheet, months)
        return snapshot, spreadsheet, months, inputs

    def break_even(self) -> BreakEvenResult:
        """Break-even on the average monthly fixed costs of the window."""
        snapshot, _, months, inputs = self._break_even_context()
        config = snapshot.break_even_config
        return compute_break_even(config, average_fixed_costs(config, inputs, months))

    def break_even_chart(self) -> list[ChartPoint]:
        snapshot, _, months, inputs = self._break_even_context()
        config = snapshot.break_even_config
        fixed = average_fixed_costs(config, inputs, months)
        return compute_break_even_chart_points(config, fixed, len(months))

    def break_even_timeline(self) -> list[TimelinePoint]:
        snapshot, _, months, inputs = self._break_even_context()
        return compute_break_even_timeline(snapshot.break_even_config, inputs, months)

    def break_even_progress(self) -> list[ProgressPoint]:
        """Actual P&L revenue against each month's break-even target."""
        snapshot, spreadsheet, months, inputs = self._break_even_context()
        timeline = compute_break_even_timeline(snapshot.break_even_config, inputs, months)
        return break_even_progress(timeline, revenue_by_month(spreadsheet))
