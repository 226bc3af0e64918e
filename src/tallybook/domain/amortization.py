"""Loan amortization schedules."""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional

import structlog

from tallybook.domain.entities import Loan, PaymentRecord
from tallybook.domain.errors import ValidationError
from tallybook.utils.money import ZERO, round2, to_amount
from tallybook.utils.months import add_months, month_of

logger = structlog.get_logger(__name__)

ONE = Decimal("1")
PAYOFF_THRESHOLD = Decimal("0.01")


def total_payments(loan: Loan) -> int:
    """Number of scheduled payments, truncated toward zero."""
    if loan.term_months <= 0 or loan.payments_per_year <= 0:
        return 0
    return (loan.term_months * loan.payments_per_year) // 12


def periodic_rate(loan: Loan) -> Decimal:
    """Interest rate per payment period."""
    return to_amount(loan.annual_rate_percent) / Decimal(100) / Decimal(loan.payments_per_year)


def level_payment(principal: Decimal, rate: Decimal, count: int) -> Decimal:
    """Annuity payment that retires ``principal`` over ``count`` periods."""
    if count <= 0:
        return ZERO
    if rate == 0:
        return round2(principal / Decimal(count))
    growth = (ONE + rate) ** count
    return round2(principal * (rate * growth) / (growth - ONE))


def payment_month(loan: Loan, number: int) -> Optional[str]:
    """Month in which payment ``number`` falls.

    With a first-payment date, payment 1 lands on it; otherwise payment 1
    falls one period after the start date.
    """
    months_between = Decimal(12) / Decimal(loan.payments_per_year)
    if loan.first_payment_date is not None:
        anchor: Optional[date] = loan.first_payment_date
        steps = number - 1
    else:
        anchor = loan.start_date
        steps = number
    if anchor is None:
        return None
    offset = int((months_between * steps).quantize(ONE, rounding=ROUND_HALF_UP))
    return add_months(anchor, offset)


def compute_amortization_schedule(
    loan: Loan,
    skipped: Optional[Iterable[int]] = None,
    overrides: Optional[Mapping[int, Decimal]] = None,
) -> list[PaymentRecord]:
    """Build the payment-by-payment schedule for a loan.

    Skipped payments capitalise their interest into the balance. An
    override replaces the level payment for its period. The final payment,
    unless skipped or overridden, pays off whatever balance is left.

    Args:
        loan: Loan terms
        skipped: Payment numbers to skip (defaults to the loan's own table)
        overrides: Payment number -> amount (defaults to the loan's own table)

    Returns:
        One PaymentRecord per scheduled payment; empty when the loan has no
        dates or no payments.
    """
    skipped_set = set(loan.skipped_payments if skipped is None else skipped)
    override_map = dict(loan.payment_overrides if overrides is None else overrides)

    count = total_payments(loan)
    if count == 0 or (loan.start_date is None and loan.first_payment_date is None):
        return []

    rate = periodic_rate(loan)
    balance = round2(loan.principal)
    payment = level_payment(balance, rate, count)

    schedule: list[PaymentRecord] = []
    for number in range(1, count + 1):
        interest = round2(balance * rate)
        month = payment_month(loan, number)

        if number in skipped_set:
            balance = round2(balance + interest)
            schedule.append(
                PaymentRecord(
                    number=number,
                    month=month,
                    payment=ZERO,
                    principal=ZERO,
                    interest=interest,
                    ending_balance=balance,
                    skipped=True,
                )
            )
            continue

        overridden = number in override_map
        if overridden:
            actual = round2(override_map[number])
        elif number == count:
            actual = round2(balance + interest)
        else:
            actual = payment

        principal_part = round2(actual - interest)
        if principal_part > balance:
            principal_part = balance
            actual = round2(principal_part + interest)

        balance = round2(balance - principal_part)
        if balance < PAYOFF_THRESHOLD:
            balance = ZERO

        schedule.append(
            PaymentRecord(
                number=number,
                month=month,
                payment=actual,
                principal=principal_part,
                interest=interest,
                ending_balance=balance,
                overridden=overridden,
            )
        )

    logger.debug(
        "amortization_schedule_built",
        loan_id=loan.id,
        payments=count,
        skipped=len(skipped_set),
        overridden=len(override_map),
        final_balance=str(balance),
    )
    return schedule


def interest_for_month(schedule: Iterable[PaymentRecord], month: str) -> Decimal:
    """Interest accrued in ``month`` (several payments may share a month).

    Interest of a skipped payment counts: it accrues into the balance, so
    it is an expense of that month even though no cash moves.
    """
    total = ZERO
    for entry in schedule:
        if entry.month == month:
            total = round2(total + entry.interest)
    return total


def loan_interest_by_month(
    loans: Iterable[Loan], as_of: Optional[str] = None
) -> dict[str, Decimal]:
    """Accrued interest per month summed across loans, up to ``as_of``."""
    result: dict[str, Decimal] = {}
    for loan in loans:
        for entry in compute_amortization_schedule(loan):
            if as_of is not None and entry.month > as_of:
                continue
            result[entry.month] = round2(result.get(entry.month, ZERO) + entry.interest)
    return result


def loan_balance_as_of(loan: Loan, month: str) -> Decimal:
    """Outstanding balance after the last payment on or before ``month``.

    Before the first scheduled payment the full principal is outstanding;
    before the loan starts nothing is.
    """
    funded = loan.start_date or loan.first_payment_date
    if funded is None or month_of(funded) > month:
        return ZERO
    balance = round2(loan.principal)
    for entry in compute_amortization_schedule(loan):
        if entry.month > month:
            break
        balance = entry.ending_balance
    return balance


def schedule_totals(schedule: Iterable[PaymentRecord]) -> dict[str, Decimal]:
    """Totals of payment, principal and interest paid.

    ``interest_accrued`` also counts interest capitalised by skipped payments.
    """
    totals = {"payment": ZERO, "principal": ZERO, "interest": ZERO, "interest_accrued": ZERO}
    for entry in schedule:
        totals["interest_accrued"] = round2(totals["interest_accrued"] + entry.interest)
        if entry.skipped:
            continue
        totals["payment"] = round2(totals["payment"] + entry.payment)
        totals["principal"] = round2(totals["principal"] + entry.principal)
        totals["interest"] = round2(totals["interest"] + entry.interest)
    return totals


def validate_loan(loan: Loan) -> None:
    """Reject loan terms the schedule cannot be built from.

    Raises:
        ValidationError: On a non-positive principal, term or frequency, a
            negative rate, a term shorter than one period or a missing date
    """
    if to_amount(loan.principal) <= ZERO:
        raise ValidationError("Principal must be greater than 0")
    if to_amount(loan.annual_rate_percent) < ZERO:
        raise ValidationError("Annual rate cannot be negative")
    if loan.term_months <= 0:
        raise ValidationError("Term must be greater than 0 months")
    if loan.payments_per_year <= 0:
        raise ValidationError("Payments per year must be greater than 0")
    if total_payments(loan) == 0:
        raise ValidationError("Term is shorter than one payment period")
    if loan.start_date is None and loan.first_payment_date is None:
        raise ValidationError("A start date is required")
