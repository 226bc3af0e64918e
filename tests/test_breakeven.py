"""Tests for the break-even engine."""

import pytest
from decimal import Decimal
from tallybook.domain.breakeven import (
    FixedCostInputs,
    average_fixed_costs,
    break_even_progress,
    compute_break_even,
    compute_break_even_chart_points,
    compute_break_even_timeline,
    monthly_fixed_costs,
    validate_break_even_config,
)
from tallybook.domain.entities import B2BChannel, BreakEvenConfig, ConsumerChannel, Timeline
from tallybook.domain.errors import ValidationError


def consumer_config(price="50", cogs="20", **kwargs):
    return BreakEvenConfig(
        consumer=ConsumerChannel(enabled=True, avg_price=Decimal(price), avg_cogs=Decimal(cogs)),
        **kwargs,
    )


B2B = B2BChannel(
    enabled=True, monthly_units=100, rate_per_unit=Decimal("25"), cogs_per_unit=Decimal("10")
)


class TestComputeBreakEven:
    """Tests for the single-period solve."""

    def test_consumer_only(self):
        result = compute_break_even(consumer_config(), Decimal("3000"))

        assert result.is_valid
        assert result.consumer_contribution_margin == Decimal("30.00")
        assert result.consumer_units_needed == 100
        assert result.break_even_units == 100
        assert result.break_even_revenue == Decimal("5000.00")
        assert result.total_variable_costs == Decimal("2000.00")
        assert result.weighted_contribution_margin_percent == Decimal("60.00")

    def test_partial_units_round_up(self):
        result = compute_break_even(consumer_config(), Decimal("3001"))
        assert result.consumer_units_needed == 101

    def test_b2b_contribution_offsets_fixed_costs_first(self):
        config = consumer_config(b2b=B2B)
        result = compute_break_even(config, Decimal("3000"))

        assert result.b2b_monthly_contribution == Decimal("1500.00")
        assert result.remaining_fixed_costs == Decimal("1500.00")
        assert result.consumer_units_needed == 50
        assert result.break_even_units == 150
        assert result.break_even_revenue == Decimal("5000.00")

    def test_b2b_alone_can_break_even(self):
        config = BreakEvenConfig(consumer=ConsumerChannel(enabled=False), b2b=B2B)
        result = compute_break_even(config, Decimal("1000"))

        assert result.is_valid
        assert result.consumer_units_needed == 0
        assert result.break_even_units == 100
        assert result.break_even_revenue == Decimal("2500.00")

    def test_no_channel_is_invalid(self):
        config = BreakEvenConfig(consumer=ConsumerChannel(enabled=False))
        result = compute_break_even(config, Decimal("1000"))

        assert not result.is_valid
        assert result.reason
        assert result.break_even_units == 0

    def test_negative_margin_is_invalid(self):
        result = compute_break_even(consumer_config(price="20", cogs="30"), Decimal("1000"))
        assert not result.is_valid

    def test_b2b_short_of_fixed_costs_without_consumer_is_invalid(self):
        config = BreakEvenConfig(consumer=ConsumerChannel(enabled=False), b2b=B2B)
        assert not compute_break_even(config, Decimal("2000")).is_valid

    def test_units_never_decrease_as_fixed_costs_rise(self):
        config = consumer_config(b2b=B2B)
        units = [
            compute_break_even(config, Decimal(fixed)).break_even_units
            for fixed in range(0, 10000, 250)
        ]
        assert units == sorted(units)

    def test_zero_fixed_costs(self):
        result = compute_break_even(consumer_config(), Decimal("0"))
        assert result.is_valid
        assert result.consumer_units_needed == 0
        assert result.weighted_contribution_margin_percent is None


class TestChartPoints:
    """Tests for chart series."""

    def test_axis_reaches_twice_break_even(self):
        points = compute_break_even_chart_points(consumer_config(), Decimal("3000"), 1)

        assert points[0].consumer_units == 0
        assert points[-1].consumer_units == 200
        assert len(points) == 21
        at_break_even = next(p for p in points if p.consumer_units == 100)
        assert at_break_even.profit == Decimal("0.00")

    def test_minimum_of_ten_increments(self):
        points = compute_break_even_chart_points(consumer_config(unit_increment=25), Decimal("30"), 1)
        assert points[-1].consumer_units == 250

    def test_scaled_to_timeline_length(self):
        points = compute_break_even_chart_points(consumer_config(b2b=B2B), Decimal("3000"), 3)

        assert points[0].fixed_cost == Decimal("9000.00")
        assert points[0].revenue == Decimal("7500.00")
        assert points[-1].consumer_units == 300


class TestFixedCosts:
    """Tests for per-month fixed costs and the timeline."""

    inputs = FixedCostInputs(
        budget_by_month={"2024-01": Decimal("2000"), "2024-02": Decimal("3500")},
        depreciation_by_month={"2024-02": Decimal("250")},
        interest_by_month={"2024-01": Decimal("100"), "2024-02": Decimal("90")},
        asset_purchase_total=Decimal("1200"),
        timeline_months=12,
    )

    def test_toggles(self):
        assert monthly_fixed_costs(consumer_config(), self.inputs, "2024-02") == Decimal("3840.00")
        config = consumer_config(include_depreciation=False, include_loan_interest=False)
        assert monthly_fixed_costs(config, self.inputs, "2024-02") == Decimal("3500.00")
        config = consumer_config(include_budget_expenses=False, include_asset_purchases=True)
        assert monthly_fixed_costs(config, self.inputs, "2024-01") == Decimal("200.00")

    def test_average(self):
        config = consumer_config()
        assert average_fixed_costs(config, self.inputs, ["2024-01", "2024-02"]) == Decimal("2970.00")
        assert average_fixed_costs(config, self.inputs, []) == Decimal("0")

    def test_timeline_resolves_each_month(self):
        points = compute_break_even_timeline(consumer_config(), self.inputs, ["2024-01", "2024-02"])

        assert [p.fixed_costs for p in points] == [Decimal("2100.00"), Decimal("3840.00")]
        assert [p.result.consumer_units_needed for p in points] == [70, 128]
        assert points[0].required_revenue == Decimal("3500.00")

    def test_progress_against_targets(self):
        points = compute_break_even_timeline(consumer_config(), self.inputs, ["2024-01", "2024-02"])
        progress = break_even_progress(points, {"2024-01": Decimal("3500"), "2024-02": Decimal("3200")})

        assert progress[0].is_met
        assert progress[0].percent_of_target == Decimal("100.00")
        assert not progress[1].is_met
        assert progress[1].percent_of_target == Decimal("50.00")

    def test_progress_without_valid_target(self):
        config = BreakEvenConfig(consumer=ConsumerChannel(enabled=False))
        points = compute_break_even_timeline(config, self.inputs, ["2024-01"])
        progress = break_even_progress(points, {"2024-01": Decimal("9999")})

        assert progress[0].percent_of_target is None
        assert not progress[0].is_met


class TestValidateConfig:
    """Tests for config validation."""

    @pytest.mark.parametrize(
        "config",
        [
            consumer_config(price="-1"),
            consumer_config(unit_increment=0),
            BreakEvenConfig(b2b=B2BChannel(enabled=True, monthly_units=-5)),
            consumer_config(timeline=Timeline(start="2024-06", end="2024-01")),
        ],
    )
    def test_rejects(self, config):
        with pytest.raises(ValidationError):
            validate_break_even_config(config)

    def test_accepts_defaults(self):
        validate_break_even_config(BreakEvenConfig())
