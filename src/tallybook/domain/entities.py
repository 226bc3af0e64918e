"""Domain model entities for tallybook.

Pure data classes handed to the engines by the storage layer. The engines
never mutate them; every report is recomputed from a fresh
:class:`LedgerSnapshot`.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from tallybook.domain.overrides import OverrideTable


class TransactionType(str, Enum):
    """Direction of a ledger entry."""

    PAYABLE = "payable"
    RECEIVABLE = "receivable"


class TransactionStatus(str, Enum):
    """Settlement state of a ledger entry."""

    PENDING = "pending"
    PAID = "paid"
    RECEIVED = "received"


class DepreciationMethod(str, Enum):
    """Supported fixed-asset depreciation methods."""

    STRAIGHT_LINE = "straight_line"
    DOUBLE_DECLINING = "double_declining"
    NONE = "none"


class TaxMode(str, Enum):
    """How income tax is estimated on the P&L."""

    CORPORATE = "corporate"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class Category:
    """Transaction category with its P&L structural flags.

    ``hidden_from_pl`` excludes the category from every P&L bucket (it is
    how balance-sheet-only flows such as loan proceeds or asset purchases
    are kept off the income statement).
    """

    id: int
    name: str
    is_cogs: bool = False
    is_depreciation: bool = False
    is_sales_tax: bool = False
    hidden_from_pl: bool = False
    is_monthly: bool = False
    default_amount: Optional[Decimal] = None
    default_type: Optional[TransactionType] = None
    folder_id: Optional[int] = None
    sort_order: int = 0

    @property
    def is_opex(self) -> bool:
        """True for plain operating-expense categories."""
        return not (
            self.is_cogs or self.is_depreciation or self.is_sales_tax or self.hidden_from_pl
        )

    @property
    def has_conflicting_flags(self) -> bool:
        """True when more than one structural flag is set."""
        return sum((self.is_cogs, self.is_depreciation, self.is_sales_tax)) > 1


@dataclass(frozen=True)
class Transaction:
    """Ledger entry.

    ``month_due`` is the accrual key, ``month_paid`` the cash key; the
    latter is set only once the entry is paid or received.
    """

    id: int
    entry_date: date
    category_id: Optional[int]
    amount: Decimal
    transaction_type: TransactionType
    status: TransactionStatus = TransactionStatus.PENDING
    month_due: Optional[str] = None
    month_paid: Optional[str] = None
    pretax_amount: Optional[Decimal] = None
    date_processed: Optional[date] = None
    source_type: Optional[str] = None
    source_id: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_settled(self) -> bool:
        return self.status != TransactionStatus.PENDING


@dataclass(frozen=True)
class FixedAsset:
    """Balance-sheet asset with its depreciation parameters."""

    id: int
    name: str
    purchase_cost: Decimal
    purchase_date: Optional[date]
    useful_life_months: int = 0
    salvage_value: Decimal = Decimal("0")
    depreciation_method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE
    depreciation_start_date: Optional[date] = None
    is_depreciable: bool = True
    linked_transaction_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Loan:
    """Loan terms plus its sparse skip/override side tables."""

    id: int
    name: str
    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    start_date: Optional[date]
    payments_per_year: int = 12
    first_payment_date: Optional[date] = None
    skipped_payments: frozenset[int] = frozenset()
    payment_overrides: dict[int, Decimal] = field(default_factory=dict)
    is_active: bool = True
    notes: Optional[str] = None


@dataclass(frozen=True)
class PaymentRecord:
    """One row of an amortization schedule."""

    number: int
    month: str
    payment: Decimal
    principal: Decimal
    interest: Decimal
    ending_balance: Decimal
    skipped: bool = False
    overridden: bool = False


@dataclass(frozen=True)
class ConsumerChannel:
    """Variable-volume, per-unit sales channel."""

    enabled: bool = True
    avg_price: Decimal = Decimal("0")
    avg_cogs: Decimal = Decimal("0")


@dataclass(frozen=True)
class B2BChannel:
    """Committed monthly volume at a fixed rate."""

    enabled: bool = False
    monthly_units: int = 0
    rate_per_unit: Decimal = Decimal("0")
    cogs_per_unit: Decimal = Decimal("0")


@dataclass(frozen=True)
class Timeline:
    """Inclusive month window; either bound may be open."""

    start: Optional[str] = None
    end: Optional[str] = None


@dataclass(frozen=True)
class BreakEvenConfig:
    """Break-even model inputs.

    The four ``include_*`` toggles decide which fixed costs feed the
    monthly figure; ``unit_increment`` is the chart step on the unit axis.
    """

    consumer: ConsumerChannel = field(default_factory=ConsumerChannel)
    b2b: B2BChannel = field(default_factory=B2BChannel)
    include_budget_expenses: bool = True
    include_depreciation: bool = True
    include_loan_interest: bool = True
    include_asset_purchases: bool = False
    unit_increment: int = 10
    timeline: Optional[Timeline] = None


@dataclass(frozen=True)
class EquityConfig:
    """Paid-in capital; amounts count only from their effective month."""

    par_value: Decimal = Decimal("0")
    share_count: int = 0
    apic: Decimal = Decimal("0")
    seed_expected_date: Optional[date] = None
    seed_received_date: Optional[date] = None
    apic_expected_date: Optional[date] = None
    apic_received_date: Optional[date] = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """Fully materialised input for one engine call."""

    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    fixed_assets: tuple[FixedAsset, ...] = ()
    loans: tuple[Loan, ...] = ()
    pl_overrides: OverrideTable = field(default_factory=OverrideTable)
    cash_flow_overrides: OverrideTable = field(default_factory=OverrideTable)
    break_even_config: BreakEvenConfig = field(default_factory=BreakEvenConfig)
    equity_config: EquityConfig = field(default_factory=EquityConfig)
    timeline: Timeline = field(default_factory=Timeline)
    tax_mode: TaxMode = TaxMode.CORPORATE

    def category_index(self) -> dict[int, Category]:
        return {cat.id: cat for cat in self.categories}

    def active_loans(self) -> tuple[Loan, ...]:
        return tuple(loan for loan in self.loans if loan.is_active)
