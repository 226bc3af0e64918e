"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def category_name_not_found(name: str) -> str:
    """Return message for missing category by name."""
    return f"Category '{name}' not found"


def duplicate_category(name: str) -> str:
    """Return message for a category name already in use."""
    return f"Category '{name}' already exists"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def asset_not_found(asset_id: int) -> str:
    """Return message for missing fixed asset."""
    return f"Fixed asset {asset_id} not found"


def loan_not_found(loan_id: int) -> str:
    """Return message for missing loan."""
    return f"Loan {loan_id} not found"


def payment_out_of_range(loan_id: int, payment_number: int, total: int) -> str:
    """Return message for a payment number outside the schedule."""
    return (
        f"Payment {payment_number} is outside the schedule of loan {loan_id} "
        f"(1-{total})"
    )
