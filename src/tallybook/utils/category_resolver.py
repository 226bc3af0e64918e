"""Utility for resolving category names to IDs."""

from tallybook.database.base import Database
from tallybook.domain.entities import Category
from tallybook.domain.errors import NotFoundError, category_name_not_found, category_not_found


def resolve_category(db: Database, category: str | int) -> Category:
    """Resolve a category name or ID to the category.

    Args:
        db: Database instance
        category: Category name, or ID (int or string representation of int)

    Returns:
        Category entity

    Raises:
        NotFoundError: If category is not found
    """
    if isinstance(category, int):
        found = db.get_category(category)
        if found is None:
            raise NotFoundError(category_not_found(category))
        return found

    # Names win over IDs so a category called "2024" stays reachable
    found = db.get_category_by_name(category)
    if found is not None:
        return found

    try:
        category_id = int(category)
    except (ValueError, TypeError):
        raise NotFoundError(category_name_not_found(category))
    found = db.get_category(category_id)
    if found is None:
        raise NotFoundError(category_not_found(category_id))
    return found
