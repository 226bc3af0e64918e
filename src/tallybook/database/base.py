"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from tallybook.domain.entities import (
    BreakEvenConfig,
    Category,
    DepreciationMethod,
    EquityConfig,
    FixedAsset,
    LedgerSnapshot,
    Loan,
    TaxMode,
    Timeline,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from tallybook.domain.overrides import OverrideTable


class Database(ABC):
    """Abstract database interface for tallybook.

    The engines only ever see what :meth:`load_snapshot` returns.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        name: str,
        is_cogs: bool = False,
        is_depreciation: bool = False,
        is_sales_tax: bool = False,
        hidden_from_pl: bool = False,
        is_monthly: bool = False,
        default_amount: Optional[Decimal] = None,
        default_type: Optional[TransactionType] = None,
        folder_id: Optional[int] = None,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Get category by name."""
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """List categories in display order."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        entry_date: date,
        category_id: Optional[int],
        amount: Decimal,
        transaction_type: TransactionType,
        status: TransactionStatus = TransactionStatus.PENDING,
        month_due: Optional[str] = None,
        month_paid: Optional[str] = None,
        pretax_amount: Optional[Decimal] = None,
        date_processed: Optional[date] = None,
        source_type: Optional[str] = None,
        source_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        month_due: Optional[str] = None,
        category_id: Optional[int] = None,
        status: Optional[TransactionStatus] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters."""
        pass

    @abstractmethod
    def update_transaction_status(
        self,
        transaction_id: int,
        status: TransactionStatus,
        month_paid: Optional[str],
        date_processed: Optional[date],
    ) -> None:
        """Update settlement fields of a transaction."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    # Fixed asset operations
    @abstractmethod
    def create_fixed_asset(
        self,
        name: str,
        purchase_cost: Decimal,
        useful_life_months: int,
        purchase_date: date,
        salvage_value: Decimal = Decimal("0"),
        depreciation_method: DepreciationMethod = DepreciationMethod.STRAIGHT_LINE,
        depreciation_start_date: Optional[date] = None,
        is_depreciable: bool = True,
        notes: Optional[str] = None,
    ) -> int:
        """Create a fixed asset. Returns asset ID."""
        pass

    @abstractmethod
    def get_fixed_asset(self, asset_id: int) -> Optional[FixedAsset]:
        """Get fixed asset by ID."""
        pass

    @abstractmethod
    def list_fixed_assets(self) -> list[FixedAsset]:
        """List fixed assets by purchase date."""
        pass

    @abstractmethod
    def link_transaction_to_asset(self, asset_id: int, transaction_id: int) -> None:
        """Record the purchase transaction generated for an asset."""
        pass

    @abstractmethod
    def delete_fixed_asset(self, asset_id: int) -> None:
        """Delete an asset and its linked purchase transaction."""
        pass

    # Loan operations
    @abstractmethod
    def create_loan(
        self,
        name: str,
        principal: Decimal,
        annual_rate_percent: Decimal,
        term_months: int,
        start_date: date,
        payments_per_year: int = 12,
        first_payment_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a loan. Returns loan ID."""
        pass

    @abstractmethod
    def get_loan(self, loan_id: int) -> Optional[Loan]:
        """Get loan by ID, including its skip and override tables."""
        pass

    @abstractmethod
    def list_loans(self, active_only: bool = True) -> list[Loan]:
        """List loans by start date."""
        pass

    @abstractmethod
    def delete_loan(self, loan_id: int) -> None:
        """Delete a loan and its side tables."""
        pass

    @abstractmethod
    def toggle_skipped_payment(self, loan_id: int, payment_number: int) -> bool:
        """Flip the skipped flag of a payment. Returns the new state."""
        pass

    @abstractmethod
    def set_payment_override(
        self, loan_id: int, payment_number: int, amount: Optional[Decimal]
    ) -> None:
        """Set a payment override; None removes it."""
        pass

    # Override operations
    @abstractmethod
    def get_pl_overrides(self) -> OverrideTable:
        """Get all P&L overrides."""
        pass

    @abstractmethod
    def set_pl_override(self, category_id: int, month: str, amount: Optional[Decimal]) -> None:
        """Set a P&L override; None clears it."""
        pass

    @abstractmethod
    def get_cash_flow_overrides(self) -> OverrideTable:
        """Get all cash flow overrides."""
        pass

    @abstractmethod
    def set_cash_flow_override(
        self, category_id: int, month: str, amount: Optional[Decimal]
    ) -> None:
        """Set a cash flow override; None clears it."""
        pass

    # Settings operations
    @abstractmethod
    def get_break_even_config(self) -> BreakEvenConfig:
        pass

    @abstractmethod
    def set_break_even_config(self, config: BreakEvenConfig) -> None:
        pass

    @abstractmethod
    def get_equity_config(self) -> EquityConfig:
        pass

    @abstractmethod
    def set_equity_config(self, config: EquityConfig) -> None:
        pass

    @abstractmethod
    def get_timeline(self) -> Timeline:
        pass

    @abstractmethod
    def set_timeline(self, timeline: Timeline) -> None:
        pass

    @abstractmethod
    def get_tax_mode(self) -> TaxMode:
        pass

    @abstractmethod
    def set_tax_mode(self, mode: TaxMode) -> None:
        pass

    def load_snapshot(self) -> LedgerSnapshot:
        """Materialise everything the engines read into one immutable value."""
        return LedgerSnapshot(
            transactions=tuple(self.list_transactions()),
            categories=tuple(self.list_categories()),
            fixed_assets=tuple(self.list_fixed_assets()),
            loans=tuple(self.list_loans(active_only=False)),
            pl_overrides=self.get_pl_overrides(),
            cash_flow_overrides=self.get_cash_flow_overrides(),
            break_even_config=self.get_break_even_config(),
            equity_config=self.get_equity_config(),
            timeline=self.get_timeline(),
            tax_mode=self.get_tax_mode(),
        )
