"""Two-channel contribution-margin break-even model.

The B2B channel is a committed monthly volume; its contribution is taken
off fixed costs first and the consumer channel has to cover the rest, one
whole unit at a time.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Iterable, Mapping, Optional, Sequence

import structlog

from tallybook.domain.entities import BreakEvenConfig
from tallybook.domain.errors import ValidationError
from tallybook.utils.money import ZERO, round2, to_amount

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class BreakEvenResult:
    """Outcome of one break-even solve (all figures per month).

    When ``is_valid`` is False no finite break-even exists and the unit and
    revenue figures are zero; ``reason`` says why.
    """

    is_valid: bool
    monthly_fixed_costs: Decimal
    consumer_contribution_margin: Optional[Decimal]
    b2b_units: int
    b2b_monthly_revenue: Decimal
    b2b_monthly_contribution: Decimal
    remaining_fixed_costs: Decimal
    consumer_units_needed: int = 0
    break_even_units: int = 0
    break_even_revenue: Decimal = ZERO
    total_variable_costs: Decimal = ZERO
    weighted_contribution_margin_percent: Optional[Decimal] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ChartPoint:
    """Cost/revenue position at a given consumer volume over the timeline."""

    consumer_units: int
    revenue: Decimal
    variable_cost: Decimal
    fixed_cost: Decimal
    total_cost: Decimal

    @property
    def profit(self) -> Decimal:
        return round2(self.revenue - self.total_cost)


@dataclass(frozen=True)
class TimelinePoint:
    """Break-even target for one month."""

    month: str
    fixed_costs: Decimal
    result: BreakEvenResult

    @property
    def required_revenue(self) -> Decimal:
        return self.result.break_even_revenue


@dataclass(frozen=True)
class ProgressPoint:
    """Actual revenue against the month's break-even target."""

    month: str
    required_revenue: Decimal
    actual_revenue: Decimal
    percent_of_target: Optional[Decimal]
    is_met: bool


@dataclass(frozen=True)
class FixedCostInputs:
    """Per-month fixed-cost components, before the config toggles apply."""

    budget_by_month: Mapping[str, Decimal]
    depreciation_by_month: Mapping[str, Decimal]
    interest_by_month: Mapping[str, Decimal]
    asset_purchase_total: Decimal = ZERO
    timeline_months: int = 0


def consumer_contribution_margin(config: BreakEvenConfig) -> Optional[Decimal]:
    """Per-unit consumer margin, or None when the channel cannot sell."""
    consumer = config.consumer
    price = to_amount(consumer.avg_price)
    if not consumer.enabled or price <= ZERO:
        return None
    return round2(price - to_amount(consumer.avg_cogs))


def b2b_figures(config: BreakEvenConfig) -> tuple[int, Decimal, Decimal, Decimal]:
    """Return (units, revenue, variable cost, contribution) per month."""
    b2b = config.b2b
    if not b2b.enabled:
        return 0, ZERO, ZERO, ZERO
    units = max(0, int(b2b.monthly_units or 0))
    revenue = round2(Decimal(units) * to_amount(b2b.rate_per_unit))
    variable = round2(Decimal(units) * to_amount(b2b.cogs_per_unit))
    return units, revenue, variable, round2(revenue - variable)


def compute_break_even(config: BreakEvenConfig, monthly_fixed_costs: Decimal) -> BreakEvenResult:
    """Solve for the consumer volume that covers fixed costs after B2B.

    Returns a result with ``is_valid`` False when neither channel can
    cover the fixed costs; callers must check it before using the figures.
    """
    fixed = round2(max(ZERO, to_amount(monthly_fixed_costs)))
    consumer_cm = consumer_contribution_margin(config)
    b2b_units, b2b_revenue, b2b_variable, b2b_contribution = b2b_figures(config)
    remaining = round2(max(ZERO, fixed - b2b_contribution))

    base = dict(
        monthly_fixed_costs=fixed,
        consumer_contribution_margin=consumer_cm,
        b2b_units=b2b_units,
        b2b_monthly_revenue=b2b_revenue,
        b2b_monthly_contribution=b2b_contribution,
        remaining_fixed_costs=remaining,
    )

    if consumer_cm is not None and consumer_cm > ZERO:
        consumer_units = int((remaining / consumer_cm).to_integral_value(rounding=ROUND_CEILING))
        price = to_amount(config.consumer.avg_price)
        unit_cogs = to_amount(config.consumer.avg_cogs)
        revenue = round2(Decimal(consumer_units) * price + b2b_revenue)
        variable = round2(Decimal(consumer_units) * unit_cogs + b2b_variable)
    elif b2b_units > 0 and b2b_contribution > ZERO and b2b_contribution >= fixed:
        consumer_units = 0
        revenue = b2b_revenue
        variable = b2b_variable
    else:
        if not config.consumer.enabled and not config.b2b.enabled:
            reason = "No sales channel is enabled"
        elif b2b_contribution > ZERO:
            reason = "B2B contribution does not cover fixed costs and the consumer channel has no positive margin"
        else:
            reason = "No channel has a positive contribution margin"
        logger.warning("break_even_invalid", reason=reason, fixed_costs=str(fixed))
        return BreakEvenResult(is_valid=False, reason=reason, **base)

    weighted = None
    if revenue > ZERO:
        weighted = round2((revenue - variable) / revenue * HUNDRED)

    result = BreakEvenResult(
        is_valid=True,
        consumer_units_needed=consumer_units,
        break_even_units=consumer_units + b2b_units,
        break_even_revenue=revenue,
        total_variable_costs=variable,
        weighted_contribution_margin_percent=weighted,
        **base,
    )
    logger.debug(
        "break_even_solved",
        consumer_units=consumer_units,
        b2b_units=b2b_units,
        revenue=str(revenue),
    )
    return result


def monthly_fixed_costs(config: BreakEvenConfig, inputs: FixedCostInputs, month: str) -> Decimal:
    """Fixed costs of one month, honouring the config's inclusion toggles."""
    total = ZERO
    if config.include_budget_expenses:
        total = round2(total + inputs.budget_by_month.get(month, ZERO))
    if config.include_depreciation:
        total = round2(total + inputs.depreciation_by_month.get(month, ZERO))
    if config.include_loan_interest:
        total = round2(total + inputs.interest_by_month.get(month, ZERO))
    if config.include_asset_purchases and inputs.timeline_months > 0:
        total = round2(total + inputs.asset_purchase_total / Decimal(inputs.timeline_months))
    return total


def average_fixed_costs(
    config: BreakEvenConfig, inputs: FixedCostInputs, months: Sequence[str]
) -> Decimal:
    """Mean monthly fixed costs across ``months`` (0 for an empty timeline)."""
    if not months:
        return ZERO
    total = ZERO
    for month in months:
        total = round2(total + monthly_fixed_costs(config, inputs, month))
    return round2(total / Decimal(len(months)))


def compute_break_even_chart_points(
    config: BreakEvenConfig,
    monthly_fixed_costs: Decimal,
    month_count: int,
    result: Optional[BreakEvenResult] = None,
) -> list[ChartPoint]:
    """Cost and revenue lines along the consumer-unit axis.

    The axis counts consumer units over the whole timeline and runs to at
    least twice the break-even volume or ten increments, whichever is
    larger. B2B volume and fixed costs are scaled by ``month_count``.
    """
    if result is None:
        result = compute_break_even(config, monthly_fixed_costs)
    months = Decimal(max(1, month_count))
    increment = max(1, int(config.unit_increment or 0))

    break_even_volume = result.consumer_units_needed * int(months) if result.is_valid else 0
    upper = max(2 * break_even_volume, 10 * increment)
    if upper % increment:
        upper += increment - upper % increment

    price = to_amount(config.consumer.avg_price) if config.consumer.enabled else ZERO
    unit_cogs = to_amount(config.consumer.avg_cogs) if config.consumer.enabled else ZERO
    _, b2b_revenue, b2b_variable, _ = b2b_figures(config)
    fixed = round2(max(ZERO, to_amount(monthly_fixed_costs)) * months)
    b2b_revenue_total = round2(b2b_revenue * months)
    b2b_variable_total = round2(b2b_variable * months)

    points = []
    for units in range(0, upper + 1, increment):
        revenue = round2(Decimal(units) * price + b2b_revenue_total)
        variable = round2(Decimal(units) * unit_cogs + b2b_variable_total)
        points.append(
            ChartPoint(
                consumer_units=units,
                revenue=revenue,
                variable_cost=variable,
                fixed_cost=fixed,
                total_cost=round2(fixed + variable),
            )
        )
    return points


def compute_break_even_timeline(
    config: BreakEvenConfig, inputs: FixedCostInputs, months: Iterable[str]
) -> list[TimelinePoint]:
    """Re-solve the break-even for each month with that month's fixed costs."""
    points = []
    for month in months:
        fixed = monthly_fixed_costs(config, inputs, month)
        points.append(
            TimelinePoint(month=month, fixed_costs=fixed, result=compute_break_even(config, fixed))
        )
    return points


def break_even_progress(
    timeline: Iterable[TimelinePoint], actual_revenue_by_month: Mapping[str, Decimal]
) -> list[ProgressPoint]:
    """Compare each month's actual revenue with its break-even target.

    Months without a valid target report no percentage and are never met.
    """
    progress = []
    for point in timeline:
        actual = round2(actual_revenue_by_month.get(point.month, ZERO))
        required = point.required_revenue
        percent = None
        is_met = False
        if point.result.is_valid:
            is_met = actual >= required
            if required > ZERO:
                percent = round2(actual / required * HUNDRED)
        progress.append(
            ProgressPoint(
                month=point.month,
                required_revenue=required,
                actual_revenue=actual,
                percent_of_target=percent,
                is_met=is_met,
            )
        )
    return progress


def validate_break_even_config(config: BreakEvenConfig) -> None:
    """Reject configurations no caller should store.

    Raises:
        ValidationError: On negative prices, costs or volumes, or a
            non-positive chart increment
    """
    if to_amount(config.consumer.avg_price) < ZERO or to_amount(config.consumer.avg_cogs) < ZERO:
        raise ValidationError("Consumer price and COGS cannot be negative")
    if int(config.b2b.monthly_units or 0) < 0:
        raise ValidationError("B2B monthly units cannot be negative")
    if to_amount(config.b2b.rate_per_unit) < ZERO or to_amount(config.b2b.cogs_per_unit) < ZERO:
        raise ValidationError("B2B rate and COGS cannot be negative")
    if int(config.unit_increment or 0) <= 0:
        raise ValidationError("Unit increment must be greater than 0")
    timeline = config.timeline
    if timeline and timeline.start and timeline.end and timeline.start > timeline.end:
        raise ValidationError("Timeline start must not be after its end")
