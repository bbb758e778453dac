"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerly.domain.entities import (
    Account,
    Category,
    CategoryRule,
    FileFingerprint,
    ImportRecord,
    RecurringTransaction,
    SIPRule,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for ledgerly."""

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

    # Account operations
    @abstractmethod
    def create_account(self, name: str, bank_name: str) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, category_id: str, name: str, parent_id: Optional[str] = None) -> str:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(self, parent_id: Optional[str] = None, all_levels: bool = False) -> list[Category]:
        """List categories under ``parent_id`` (top level when None), or all of them."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        unique_id: str,
        account_id: int,
        date: date,
        amount: Decimal,
        description: str,
        type: str,
        category_id: Optional[str] = None,
        applied_rule_id: Optional[int] = None,
        sip_rule_id: Optional[int] = None,
        recurring_id: Optional[int] = None,
        tags: tuple[str, ...] = (),
        notes: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def transaction_exists(self, account_id: int, unique_id: str) -> bool:
        """Check if a transaction with given unique_id exists for account."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **changes: Any) -> None:
        """Update the given transaction columns.

        Only the keys passed are written, so ``None`` clears a column.

        Raises:
            ValueError: If the transaction doesn't exist or a column is unknown
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[str] = None,
        account_id: Optional[int] = None,
        uncategorized: bool = False,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            category_id: Optional category ID filter
            account_id: Optional account ID filter
            uncategorized: If True, only return transactions with a generic category
        """
        pass

    # Category rule operations
    @abstractmethod
    def create_category_rule(
        self,
        pattern: str,
        category_id: str,
        match_type: str = "partial",
        transaction_type: Optional[str] = None,
        priority: int = 0,
        is_active: bool = True,
    ) -> int:
        """Create a category rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_category_rule(self, rule_id: int) -> Optional[CategoryRule]:
        """Get category rule by ID."""
        pass

    @abstractmethod
    def list_category_rules(self, active_only: bool = False) -> list[CategoryRule]:
        """List category rules in creation order."""
        pass

    @abstractmethod
    def update_category_rule(self, rule_id: int, **changes: Any) -> None:
        """Update the given category rule columns."""
        pass

    @abstractmethod
    def delete_category_rule(self, rule_id: int) -> None:
        """Delete a category rule. Transactions keep their (now stale) link."""
        pass

    # SIP rule operations
    @abstractmethod
    def create_sip_rule(
        self,
        pattern: str,
        amount: Decimal,
        amount_tolerance: Decimal = Decimal("0"),
        expected_day: Optional[int] = None,
        date_tolerance: int = 3,
        match_type: str = "contains",
        priority: int = 0,
        asset_id: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        """Create a SIP rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_sip_rule(self, rule_id: int) -> Optional[SIPRule]:
        """Get SIP rule by ID."""
        pass

    @abstractmethod
    def list_sip_rules(self, active_only: bool = False) -> list[SIPRule]:
        """List SIP rules in creation order."""
        pass

    @abstractmethod
    def update_sip_rule(self, rule_id: int, **changes: Any) -> None:
        """Update the given SIP rule columns."""
        pass

    # Recurring transaction operations
    @abstractmethod
    def create_recurring(
        self,
        name: str,
        amount: Decimal,
        frequency: str,
        next_due_date: date,
        category_id: Optional[str] = None,
    ) -> int:
        """Create a recurring transaction template. Returns its ID."""
        pass

    @abstractmethod
    def get_recurring(self, recurring_id: int) -> Optional[RecurringTransaction]:
        """Get recurring transaction template by ID."""
        pass

    @abstractmethod
    def list_recurring(self, active_only: bool = False) -> list[RecurringTransaction]:
        """List recurring transaction templates."""
        pass

    @abstractmethod
    def update_recurring(self, recurring_id: int, **changes: Any) -> None:
        """Update the given recurring template columns."""
        pass

    # Import history operations
    @abstractmethod
    def has_import_record(self, fingerprint: FileFingerprint) -> bool:
        """Check whether a file with this fingerprint was imported before."""
        pass

    @abstractmethod
    def add_import_record(
        self, fingerprint: FileFingerprint, transaction_count: int = 0, imported_at: Optional[datetime] = None
    ) -> int:
        """Record an imported file. Recording the same fingerprint again returns the existing ID."""
        pass

    @abstractmethod
    def list_import_records(self) -> list[ImportRecord]:
        """List recorded imports, newest first."""
        pass

    # Settings operations
    @abstractmethod
    def get_setting(self, key: str) -> Optional[str]:
        """Get a stored setting value."""
        pass

    @abstractmethod
    def set_setting(self, key: str, value: str) -> None:
        """Store a setting value, replacing any previous one."""
        pass
