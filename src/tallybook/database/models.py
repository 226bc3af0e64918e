"""SQLAlchemy models for tallybook database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Category(Base):
    """Category model with P&L structural flags."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    is_cogs = Column(Boolean, default=False, nullable=False)
    is_depreciation = Column(Boolean, default=False, nullable=False)
    is_sales_tax = Column(Boolean, default=False, nullable=False)
    hidden_from_pl = Column(Boolean, default=False, nullable=False)
    is_monthly = Column(Boolean, default=False, nullable=False)
    default_amount = Column(Numeric(12, 2), nullable=True)
    default_type = Column(String, nullable=True)
    folder_id = Column(Integer, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Ledger entry model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    entry_date = Column(Date, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    pretax_amount = Column(Numeric(12, 2), nullable=True)
    transaction_type = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False)
    date_processed = Column(Date, nullable=True)
    month_due = Column(String(7), nullable=True)
    month_paid = Column(String(7), nullable=True)
    source_type = Column(String, nullable=True)
    source_id = Column(Integer, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    category = relationship("Category", back_populates="transactions")


class FixedAsset(Base):
    """Balance-sheet fixed asset model."""

    __tablename__ = "fixed_assets"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    purchase_cost = Column(Numeric(12, 2), nullable=False)
    useful_life_months = Column(Integer, default=0, nullable=False)
    purchase_date = Column(Date, nullable=True)
    salvage_value = Column(Numeric(12, 2), default=0, nullable=False)
    depreciation_method = Column(String, default="straight_line", nullable=False)
    depreciation_start_date = Column(Date, nullable=True)
    is_depreciable = Column(Boolean, default=True, nullable=False)
    linked_transaction_id = Column(Integer, nullable=True)
    notes = Column(String, nullable=True)


class Loan(Base):
    """Loan model."""

    __tablename__ = "loans"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    principal = Column(Numeric(12, 2), nullable=False)
    annual_rate = Column(Numeric(8, 4), nullable=False)
    term_months = Column(Integer, nullable=False)
    payments_per_year = Column(Integer, default=12, nullable=False)
    start_date = Column(Date, nullable=True)
    first_payment_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    notes = Column(String, nullable=True)

    # Relationships
    skipped_payments = relationship(
        "LoanSkippedPayment", back_populates="loan", cascade="all, delete-orphan"
    )
    payment_overrides = relationship(
        "LoanPaymentOverride", back_populates="loan", cascade="all, delete-orphan"
    )


class LoanSkippedPayment(Base):
    """Payment number a borrower skipped."""

    __tablename__ = "loan_skipped_payments"

    id = Column(Integer, primary_key=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=False)
    payment_number = Column(Integer, nullable=False)

    __table_args__ = (UniqueConstraint("loan_id", "payment_number", name="uq_loan_skip"),)

    loan = relationship("Loan", back_populates="skipped_payments")


class LoanPaymentOverride(Base):
    """Replacement amount for one scheduled payment."""

    __tablename__ = "loan_payment_overrides"

    id = Column(Integer, primary_key=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=False)
    payment_number = Column(Integer, nullable=False)
    override_amount = Column(Numeric(12, 2), nullable=False)

    __table_args__ = (UniqueConstraint("loan_id", "payment_number", name="uq_loan_override"),)

    loan = relationship("Loan", back_populates="payment_overrides")


class PLOverride(Base):
    """Manual P&L cell; category_id -1 holds the income-tax row."""

    __tablename__ = "pl_overrides"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, nullable=False)
    month = Column(String(7), nullable=False)
    override_amount = Column(Numeric(12, 2), nullable=True)

    __table_args__ = (UniqueConstraint("category_id", "month", name="uq_pl_override"),)


class CashFlowOverride(Base):
    """Manual cash-flow cell."""

    __tablename__ = "cashflow_overrides"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, nullable=False)
    month = Column(String(7), nullable=False)
    override_amount = Column(Numeric(12, 2), nullable=True)

    __table_args__ = (UniqueConstraint("category_id", "month", name="uq_cashflow_override"),)


class AppMeta(Base):
    """Key/value settings; structured values are stored as JSON."""

    __tablename__ = "app_meta"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
