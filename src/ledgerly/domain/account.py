"""Account domain service."""

from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.entities import Account as AccountEntity
from ledgerly.domain.errors import ConflictError, ValidationError


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, name: str, bank_name: str) -> int:
        """Create a new account.

        Args:
            name: Account name
            bank_name: Bank name

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If account name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name must not be empty")
        if any(acc.name == name for acc in self.db.list_accounts()):
            raise ConflictError(f"Account with name '{name}' already exists")

        return self.db.create_account(name=name, bank_name=bank_name.strip())

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID, or None if not found."""
        return self.db.get_account(account_id)

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts."""
        return self.db.list_accounts()
