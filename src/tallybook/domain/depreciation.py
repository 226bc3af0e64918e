"""Fixed-asset depreciation schedules."""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from tallybook.domain.entities import DepreciationMethod, FixedAsset
from tallybook.domain.errors import ValidationError
from tallybook.utils.money import ZERO, round2, to_amount
from tallybook.utils.months import add_months, month_of

logger = structlog.get_logger(__name__)

MIN_DEPRECIATION = Decimal("0.01")


def depreciation_start_month(asset: FixedAsset) -> Optional[str]:
    """First month that carries depreciation: the month after the start date."""
    start = asset.depreciation_start_date or asset.purchase_date
    if start is None:
        return None
    return add_months(start, 1)


def is_schedulable(asset: FixedAsset) -> bool:
    """True when the asset would produce a non-empty schedule."""
    if not asset.is_depreciable or asset.depreciation_method == DepreciationMethod.NONE:
        return False
    if int(asset.useful_life_months or 0) <= 0:
        return False
    if to_amount(asset.purchase_cost) <= to_amount(asset.salvage_value):
        return False
    return depreciation_start_month(asset) is not None


def compute_depreciation_schedule(asset: FixedAsset) -> dict[str, Decimal]:
    """Month -> depreciation amount for one asset.

    Straight-line spreads cost less salvage evenly over the useful life.
    Double-declining applies twice the straight-line rate to the remaining
    book value and stops once the asset reaches salvage, which may happen
    before the useful life runs out. Neither method takes book value below
    salvage.

    Returns an empty mapping for non-depreciable assets and for data that
    would fail validation (non-positive life, salvage at or above cost,
    missing dates).
    """
    if not is_schedulable(asset):
        return {}

    cost = to_amount(asset.purchase_cost)
    salvage = to_amount(asset.salvage_value)
    life = int(asset.useful_life_months)
    first_month = depreciation_start_month(asset)

    schedule: dict[str, Decimal] = {}
    if asset.depreciation_method == DepreciationMethod.DOUBLE_DECLINING:
        annual_rate = Decimal(2) / (Decimal(life) / Decimal(12))
        monthly_rate = annual_rate / Decimal(12)
        book_value = cost
        for i in range(life):
            amount = round2(book_value * monthly_rate)
            if book_value - amount < salvage:
                amount = round2(book_value - salvage)
            if amount < MIN_DEPRECIATION:
                break
            month = add_months(first_month, i)
            schedule[month] = round2(schedule.get(month, ZERO) + amount)
            book_value = round2(book_value - amount)
    else:
        monthly = round2((cost - salvage) / Decimal(life))
        remaining = round2(cost - salvage)
        for i in range(life):
            amount = min(monthly, remaining)
            if amount <= ZERO:
                break
            month = add_months(first_month, i)
            schedule[month] = round2(schedule.get(month, ZERO) + amount)
            remaining = round2(remaining - amount)

    logger.debug(
        "depreciation_schedule_built",
        asset_id=asset.id,
        method=asset.depreciation_method.value,
        months=len(schedule),
    )
    return schedule


def asset_depreciation_by_month(
    assets: Iterable[FixedAsset], as_of: Optional[str] = None
) -> dict[str, Decimal]:
    """Depreciation per month summed across assets, up to ``as_of``."""
    result: dict[str, Decimal] = {}
    for asset in assets:
        for month, amount in compute_depreciation_schedule(asset).items():
            if as_of is not None and month > as_of:
                continue
            result[month] = round2(result.get(month, ZERO) + amount)
    return result


def accumulated_depreciation_as_of(asset: FixedAsset, month: str) -> Decimal:
    """Depreciation recognised for the asset through ``month``."""
    total = ZERO
    for schedule_month, amount in compute_depreciation_schedule(asset).items():
        if schedule_month <= month:
            total = round2(total + amount)
    return total


def is_owned_as_of(asset: FixedAsset, month: str) -> bool:
    """True once the purchase month has been reached."""
    return asset.purchase_date is None or month_of(asset.purchase_date) <= month


def net_book_value_as_of(asset: FixedAsset, month: str) -> Decimal:
    """Cost less accumulated depreciation; 0 before the asset is bought."""
    if not is_owned_as_of(asset, month):
        return ZERO
    return round2(to_amount(asset.purchase_cost) - accumulated_depreciation_as_of(asset, month))


def validate_fixed_asset(asset: FixedAsset) -> None:
    """Reject depreciable assets the engine could not schedule.

    Raises:
        ValidationError: If cost is negative, life is not positive or salvage
            is not below cost for a depreciable asset
    """
    cost = to_amount(asset.purchase_cost)
    salvage = to_amount(asset.salvage_value)
    if cost < ZERO:
        raise ValidationError("Purchase cost cannot be negative")
    if salvage < ZERO:
        raise ValidationError("Salvage value cannot be negative")
    if not asset.is_depreciable or asset.depreciation_method == DepreciationMethod.NONE:
        return
    if int(asset.useful_life_months or 0) <= 0:
        raise ValidationError("Useful life must be greater than 0 months")
    if salvage >= cost:
        raise ValidationError("Salvage value must be less than purchase cost")
    if asset.purchase_date is None and asset.depreciation_start_date is None:
        raise ValidationError("A purchase date is required for a depreciable asset")
