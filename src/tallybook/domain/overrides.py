"""Sparse per-category, per-month override tables.

A cell is in one of three states: never set, explicitly cleared, or
holding an amount. Only the last replaces the computed value; an override
of 0 is a real value and wins like any other.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping, Optional

from tallybook.utils.money import to_amount

TAX_OVERRIDE_CATEGORY_ID = -1

OverrideKey = tuple[int, str]


class OverrideState(Enum):
    """State of a single override cell."""

    NOT_SET = "not_set"
    CLEARED = "cleared"
    VALUE = "value"


@dataclass(frozen=True)
class OverrideLookup:
    """Result of looking up one cell."""

    state: OverrideState
    amount: Optional[Decimal] = None

    @property
    def is_value(self) -> bool:
        return self.state is OverrideState.VALUE


NOT_SET = OverrideLookup(OverrideState.NOT_SET)
CLEARED = OverrideLookup(OverrideState.CLEARED)


def split_override_key(key: str) -> OverrideKey:
    """Split a ``"categoryId-YYYY-MM"`` storage key.

    The category ID may be negative (the tax row is ``-1``), so the split
    is taken from the right.
    """
    category_part, year, month = key.rsplit("-", 2)
    return int(category_part), f"{year}-{month}"


def join_override_key(category_id: int, month: str) -> str:
    """Build the ``"categoryId-YYYY-MM"`` storage key."""
    return f"{category_id}-{month}"


@dataclass(frozen=True)
class OverrideTable:
    """Immutable override table keyed by ``(category_id, month)``.

    A stored ``None`` records an explicit clear.
    """

    entries: Mapping[OverrideKey, Optional[Decimal]] = field(default_factory=dict)

    @classmethod
    def from_keyed(cls, keyed: Mapping[str, Any]) -> "OverrideTable":
        """Build from a ``{"categoryId-month": amount}`` mapping."""
        entries: dict[OverrideKey, Optional[Decimal]] = {}
        for key, amount in keyed.items():
            entries[split_override_key(key)] = None if amount is None else to_amount(amount)
        return cls(entries)

    def lookup(self, category_id: int, month: str) -> OverrideLookup:
        key = (category_id, month)
        if key not in self.entries:
            return NOT_SET
        amount = self.entries[key]
        if amount is None:
            return CLEARED
        return OverrideLookup(OverrideState.VALUE, amount)

    def resolve(self, category_id: int, month: str, computed: Decimal) -> Decimal:
        """Return the override amount for the cell, or ``computed``."""
        found = self.lookup(category_id, month)
        return found.amount if found.is_value else computed

    def with_override(
        self, category_id: int, month: str, amount: Optional[Decimal]
    ) -> "OverrideTable":
        """Return a copy with one cell set (or cleared when amount is None)."""
        entries = dict(self.entries)
        entries[(category_id, month)] = None if amount is None else to_amount(amount)
        return OverrideTable(entries)

    def value_keys(self) -> Iterator[OverrideKey]:
        """Yield keys of cells that hold an amount."""
        for key, amount in self.entries.items():
            if amount is not None:
                yield key

    def category_ids(self) -> set[int]:
        """Category IDs having at least one value cell."""
        return {category_id for category_id, _ in self.value_keys()}

    def months(self) -> set[str]:
        return {month for _, month in self.value_keys()}

    def to_keyed(self) -> dict[str, Decimal]:
        """Value cells as a ``{"categoryId-month": amount}`` mapping."""
        return {
            join_override_key(category_id, month): self.entries[(category_id, month)]
            for category_id, month in self.value_keys()
        }

    def __len__(self) -> int:
        return sum(1 for _ in self.value_keys())
