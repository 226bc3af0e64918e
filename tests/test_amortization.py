"""Tests for loan amortization schedules."""

import pytest
from datetime import date
from decimal import Decimal
from tallybook.domain.amortization import (
    compute_amortization_schedule,
    interest_for_month,
    level_payment,
    loan_balance_as_of,
    loan_interest_by_month,
    schedule_totals,
    total_payments,
    validate_loan,
)
from tallybook.domain.entities import Loan
from tallybook.domain.errors import ValidationError


def make_loan(**overrides):
    values = dict(
        id=1,
        name="Loan",
        principal=Decimal("12000.00"),
        annual_rate_percent=Decimal("0"),
        term_months=12,
        start_date=date(2024, 1, 1),
    )
    values.update(overrides)
    return Loan(**values)


class TestSchedule:
    """Tests for compute_amortization_schedule."""

    def test_zero_rate_loan_repays_evenly(self):
        schedule = compute_amortization_schedule(make_loan())

        assert len(schedule) == 12
        assert all(entry.payment == Decimal("1000.00") for entry in schedule)
        assert all(entry.interest == Decimal("0.00") for entry in schedule)
        assert [entry.ending_balance for entry in schedule[:3]] == [
            Decimal("11000.00"),
            Decimal("10000.00"),
            Decimal("9000.00"),
        ]
        assert schedule[-1].ending_balance == Decimal("0")

    def test_interest_bearing_loan_conserves_principal(self):
        loan = make_loan(principal=Decimal("10000.00"), annual_rate_percent=Decimal("12"))
        schedule = compute_amortization_schedule(loan)

        assert schedule[0].payment == Decimal("888.49")
        assert schedule[0].interest == Decimal("100.00")
        assert schedule[0].principal == Decimal("788.49")
        assert schedule[-1].ending_balance == Decimal("0")
        totals = schedule_totals(schedule)
        assert totals["principal"] == Decimal("10000.00")
        assert totals["payment"] == totals["principal"] + totals["interest"]

    def test_interest_declines_over_time(self):
        loan = make_loan(principal=Decimal("10000.00"), annual_rate_percent=Decimal("12"))
        interests = [entry.interest for entry in compute_amortization_schedule(loan)]
        assert interests == sorted(interests, reverse=True)

    def test_payment_months_default_to_one_period_after_start(self):
        schedule = compute_amortization_schedule(make_loan(start_date=date(2024, 1, 15)))
        assert schedule[0].month == "2024-02"
        assert schedule[-1].month == "2025-01"

    def test_first_payment_date_anchors_schedule(self):
        loan = make_loan(first_payment_date=date(2024, 3, 1))
        schedule = compute_amortization_schedule(loan)
        assert [entry.month for entry in schedule[:2]] == ["2024-03", "2024-04"]

    def test_quarterly_payments(self):
        loan = make_loan(payments_per_year=4)
        schedule = compute_amortization_schedule(loan)
        assert [entry.month for entry in schedule] == ["2024-04", "2024-07", "2024-10", "2025-01"]
        assert schedule[0].payment == Decimal("3000.00")

    def test_skipped_payment_capitalises_interest(self):
        loan = make_loan(principal=Decimal("10000.00"), annual_rate_percent=Decimal("12"))
        schedule = compute_amortization_schedule(loan, skipped={1})

        first = schedule[0]
        assert first.skipped
        assert first.payment == Decimal("0")
        assert first.principal == Decimal("0")
        assert first.interest == Decimal("100.00")
        assert first.ending_balance == Decimal("10100.00")
        assert schedule[-1].ending_balance == Decimal("0")
        totals = schedule_totals(schedule)
        assert totals["principal"] == Decimal("10100.00")
        assert totals["interest_accrued"] == totals["interest"] + Decimal("100.00")

    def test_skips_default_to_loan_side_table(self):
        loan = make_loan(skipped_payments=frozenset({2}))
        schedule = compute_amortization_schedule(loan)
        assert schedule[1].skipped
        # The final payment absorbs the skipped principal
        assert schedule[-1].payment == Decimal("2000.00")

    def test_override_replaces_level_payment(self):
        loan = make_loan(payment_overrides={1: Decimal("3000.00")})
        schedule = compute_amortization_schedule(loan)

        assert schedule[0].overridden
        assert schedule[0].payment == Decimal("3000.00")
        assert schedule[0].ending_balance == Decimal("9000.00")
        assert schedule[1].payment == Decimal("1000.00")

    def test_principal_never_exceeds_balance(self):
        loan = make_loan(payment_overrides={1: Decimal("3000.00")})
        schedule = compute_amortization_schedule(loan)

        # Paid off at payment 10; later payments have nothing left to repay
        assert schedule[9].ending_balance == Decimal("0")
        assert schedule[10].principal == Decimal("0")
        assert schedule[10].payment == Decimal("0.00")
        assert all(entry.ending_balance >= 0 for entry in schedule)

    def test_no_payments_yields_empty_schedule(self):
        assert compute_amortization_schedule(make_loan(term_months=0)) == []
        assert compute_amortization_schedule(make_loan(start_date=None)) == []


class TestHelpers:
    """Tests for schedule-derived figures."""

    def test_total_payments_truncates(self):
        assert total_payments(make_loan(term_months=13)) == 13
        assert total_payments(make_loan(term_months=10, payments_per_year=4)) == 3

    def test_level_payment_zero_rate(self):
        assert level_payment(Decimal("1000"), Decimal("0"), 3) == Decimal("333.33")

    def test_interest_for_month_includes_skipped(self):
        loan = make_loan(principal=Decimal("10000.00"), annual_rate_percent=Decimal("12"))
        schedule = compute_amortization_schedule(loan, skipped={1})
        assert interest_for_month(schedule, "2024-02") == Decimal("100.00")
        assert interest_for_month(schedule, "2023-12") == Decimal("0")

    def test_loan_interest_by_month_expenses_skipped_interest(self):
        loan = make_loan(
            principal=Decimal("10000.00"),
            annual_rate_percent=Decimal("12"),
            skipped_payments=frozenset({1}),
        )
        by_month = loan_interest_by_month([loan])
        assert by_month["2024-02"] == Decimal("100.00")
        # The capitalised balance earns interest the next month
        assert by_month["2024-03"] == Decimal("101.00")

    def test_skip_increases_total_interest_over_baseline(self):
        loan = make_loan(principal=Decimal("10000.00"), annual_rate_percent=Decimal("12"))
        baseline = compute_amortization_schedule(loan)
        skipped = compute_amortization_schedule(loan, skipped={2})

        assert skipped[1].ending_balance == skipped[0].ending_balance + skipped[1].interest
        assert skipped[1].ending_balance > baseline[1].ending_balance
        assert skipped[2].interest > baseline[2].interest
        assert (
            schedule_totals(skipped)["interest_accrued"]
            > schedule_totals(baseline)["interest_accrued"]
        )

    def test_loan_interest_by_month_respects_as_of(self):
        loan = make_loan(principal=Decimal("10000.00"), annual_rate_percent=Decimal("12"))
        by_month = loan_interest_by_month([loan], as_of="2024-03")
        assert sorted(by_month) == ["2024-02", "2024-03"]
        assert by_month["2024-02"] == Decimal("100.00")

    def test_balance_before_start_is_zero(self):
        assert loan_balance_as_of(make_loan(), "2023-12") == Decimal("0")

    def test_balance_between_funding_and_first_payment(self):
        assert loan_balance_as_of(make_loan(), "2024-01") == Decimal("12000.00")

    def test_balance_after_payments(self):
        assert loan_balance_as_of(make_loan(), "2024-03") == Decimal("10000.00")
        assert loan_balance_as_of(make_loan(), "2030-01") == Decimal("0")


class TestValidateLoan:
    """Tests for loan validation."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"principal": Decimal("0")},
            {"annual_rate_percent": Decimal("-1")},
            {"term_months": 0},
            {"payments_per_year": 0},
            {"term_months": 1, "payments_per_year": 4},
            {"start_date": None},
        ],
    )
    def test_rejects_bad_terms(self, overrides):
        with pytest.raises(ValidationError):
            validate_loan(make_loan(**overrides))

    def test_accepts_good_terms(self):
        validate_loan(make_loan())
