"""Transaction domain service."""

from datetime import date, datetime, UTC
from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.categorization import RepairDecision, record_usage, repair_attribution
from ledgerly.domain.entities import TRANSACTION_TYPES, Transaction as TransactionEntity
from ledgerly.domain.errors import NotFoundError, ValidationError, transaction_not_found
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)


class TransactionService:
    """Service for viewing and editing stored transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID, or None if not found."""
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[str] = None,
        account_id: Optional[int] = None,
        uncategorized: bool = False,
    ) -> list[TransactionEntity]:
        """List transactions, newest first.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            category_id: Optional category filter
            account_id: Optional account filter
            uncategorized: Only transactions with a generic category
        """
        return self.db.list_transactions(
            start_date=start_date,
            end_date=end_date,
            category_id=category_id,
            account_id=account_id,
            uncategorized=uncategorized,
        )

    def update_category(self, transaction_id: int, category_id: Optional[str]) -> None:
        """Set a transaction's category by hand.

        A manual choice drops the rule attribution.

        Raises:
            NotFoundError: If transaction or category doesn't exist
        """
        self._require(transaction_id)
        if category_id is not None and self.db.get_category(category_id) is None:
            raise NotFoundError(f"Category '{category_id}' not found")
        self.db.update_transaction(transaction_id, category_id=category_id, applied_rule_id=None)

    def update_type(self, transaction_id: int, transaction_type: str) -> None:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Transaction type must be one of: {', '.join(TRANSACTION_TYPES)}")
        self._require(transaction_id)
        self.db.update_transaction(transaction_id, type=transaction_type)

    def update_notes(self, transaction_id: int, notes: Optional[str]) -> None:
        self._require(transaction_id)
        self.db.update_transaction(transaction_id, notes=notes)

    def show_transaction(self, transaction_id: int) -> tuple[TransactionEntity, RepairDecision]:
        """Load a transaction for display, repairing its rule attribution on the way.

        Returns:
            Tuple of (transaction as stored after repair, repair decision)

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        transaction = self._require(transaction_id)
        decision = self._repair(transaction, self.db.list_category_rules())
        return self._require(transaction_id), decision

    def repair_transactions(self, account_id: Optional[int] = None) -> dict[str, int]:
        """Run lazy repair over every stored transaction.

        Returns:
            Dict counting transactions per repair state
        """
        rules = self.db.list_category_rules()
        counts: dict[str, int] = {}
        for transaction in self.db.list_transactions(account_id=account_id):
            decision = self._repair(transaction, rules)
            counts[decision.state] = counts.get(decision.state, 0) + 1
            if decision.rule is not None:
                # Keep in-memory usage counters current for the next transaction
                rules = [
                    self.db.get_category_rule(rule.id) if rule.id == decision.rule.id else rule
                    for rule in rules
                ]
        return counts

    def _repair(self, transaction: TransactionEntity, rules) -> RepairDecision:
        decision = repair_attribution(transaction, rules)
        if not decision.changes_transaction:
            return decision

        self.db.update_transaction(
            transaction.id,
            category_id=decision.category_id,
            applied_rule_id=decision.rule.id,
        )
        used = record_usage(decision.rule, datetime.now(UTC))
        self.db.update_category_rule(used.id, match_count=used.match_count, last_used=used.last_used)
        logger.info(
            "Repaired attribution of transaction %s (%s, rule %s)",
            transaction.id,
            decision.state,
            decision.rule.id,
        )
        return decision

    def _require(self, transaction_id: int) -> TransactionEntity:
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction
