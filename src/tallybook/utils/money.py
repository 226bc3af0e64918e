"""Currency helpers.

Every engine rounds through :func:`round2` after each arithmetic step so
long schedules settle cent by cent instead of drifting.
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_amount(value: Any) -> Decimal:
    """Coerce a monetary input to a Decimal.

    Missing or non-numeric values (None, "", "abc", NaN, infinities) become 0.
    Floats go through ``str`` so 0.1 stays 0.1.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ZERO
        return Decimal(str(value))
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def round2(value: Any) -> Decimal:
    """Round to cents, half away from zero."""
    return to_amount(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_amounts(values) -> Decimal:
    """Sum amounts, rounding the running total after every addition."""
    total = ZERO
    for value in values:
        total = round2(total + to_amount(value))
    return round2(total)


def within_tolerance(left: Decimal, right: Decimal, tolerance: Decimal = CENT) -> bool:
    """Return True when two amounts differ by less than the tolerance."""
    return abs(to_amount(left) - to_amount(right)) < tolerance
