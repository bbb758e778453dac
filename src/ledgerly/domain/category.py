"""Category domain service."""

import re
from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.entities import Category as CategoryEntity
from ledgerly.domain.errors import ConflictError, NotFoundError, ValidationError, category_not_found

# (slug, display name, parent slug)
DEFAULT_CATEGORIES = [
    # Root categories
    ("income", "Income", None),
    ("food", "Food & Dining", None),
    ("transport", "Transportation", None),
    ("shopping", "Shopping", None),
    ("bills", "Bills & Utilities", None),
    ("entertainment", "Entertainment", None),
    ("healthcare", "Healthcare", None),
    ("investments", "Investments", None),
    ("other", "Other", None),
    # Income
    ("salary", "Salary", "income"),
    ("interest", "Interest", "income"),
    # Food & Dining
    ("groceries", "Groceries", "food"),
    ("restaurants", "Restaurants", "food"),
    ("delivery", "Food Delivery", "food"),
    # Transportation
    ("fuel", "Fuel", "transport"),
    ("public_transit", "Public Transit", "transport"),
    ("tolls", "Tolls & Parking", "transport"),
    # Shopping
    ("clothing", "Clothing", "shopping"),
    ("electronics", "Electronics", "shopping"),
    # Bills & Utilities
    ("electricity", "Electricity", "bills"),
    ("water", "Water", "bills"),
    ("phone", "Phone", "bills"),
    ("internet", "Internet & TV", "bills"),
    ("gas", "Gas Cylinder", "bills"),
    # Entertainment
    ("streaming", "Streaming", "entertainment"),
    ("movies", "Movies & Events", "entertainment"),
    # Healthcare
    ("pharmacy", "Pharmacy", "healthcare"),
    # Investments
    ("mutual_funds", "Mutual Funds", "investments"),
    ("stocks", "Stocks", "investments"),
    ("insurance_inv", "Insurance", "investments"),
]


def slugify(name: str) -> str:
    """Turn a display name into a category ID ("Food Delivery" -> "food_delivery")."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self, name: str, parent_id: Optional[str] = None, category_id: Optional[str] = None
    ) -> str:
        """Create a category.

        Args:
            name: Display name
            parent_id: Optional parent category ID
            category_id: Optional explicit ID; derived from the name when omitted

        Returns:
            Category ID

        Raises:
            ValidationError: If no ID can be derived from the name
            NotFoundError: If parent category doesn't exist
            ConflictError: If the ID is taken
        """
        category_id = category_id or slugify(name)
        if not category_id:
            raise ValidationError(f"Cannot derive a category ID from '{name}'")
        if parent_id is not None and self.db.get_category(parent_id) is None:
            raise NotFoundError(f"Parent category '{parent_id}' not found")
        if self.db.get_category(category_id) is not None:
            raise ConflictError(f"Category '{category_id}' already exists")

        return self.db.create_category(category_id=category_id, name=name, parent_id=parent_id)

    def get_category(self, category_id: str) -> Optional[CategoryEntity]:
        """Get category by ID, or None if not found."""
        return self.db.get_category(category_id)

    def require_category(self, category_id: str) -> CategoryEntity:
        """Get category by ID.

        Raises:
            NotFoundError: If the category doesn't exist
        """
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def list_categories(self, parent_id: Optional[str] = None) -> list[CategoryEntity]:
        """List categories directly under ``parent_id`` (top level when None)."""
        return self.db.list_categories(parent_id=parent_id)

    def list_all_categories(self) -> list[CategoryEntity]:
        return self.db.list_categories(all_levels=True)

    def format_category_path(self, category_id: str) -> str:
        """Get full path for a category.

        Returns:
            Full category path (e.g., "Food & Dining > Groceries"), or the
            bare ID for categories that are not stored
        """
        cat = self.get_category(category_id)
        if cat is None:
            return category_id

        path_parts = [cat.name]
        current_parent_id = cat.parent_id
        while current_parent_id is not None:
            parent = self.get_category(current_parent_id)
            if parent is None:
                break
            path_parts.append(parent.name)
            current_parent_id = parent.parent_id

        return " > ".join(reversed(path_parts))

    def initialize_defaults(self) -> int:
        """Create the default categories that don't exist yet.

        Returns:
            Number of categories created
        """
        created = 0
        for category_id, name, parent_id in DEFAULT_CATEGORIES:
            if self.db.get_category(category_id) is None:
                self.db.create_category(category_id=category_id, name=name, parent_id=parent_id)
                created += 1
        return created
