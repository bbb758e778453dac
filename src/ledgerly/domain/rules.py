"""Rule management services: category rules, SIP rules and recurring templates."""

import re
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ledgerly.database.base import Database
from ledgerly.domain.categorization import (
    DEFAULT_CATEGORY_RULES,
    MATCH_TYPES,
    CategorySuggestion,
    find_matching_transactions,
    record_usage,
    suggest_category,
)
from ledgerly.domain.entities import (
    TRANSACTION_TYPES,
    CategoryRule,
    RecurringTransaction,
    SIPRule,
    Transaction,
)
from ledgerly.domain.errors import (
    NotFoundError,
    ValidationError,
    recurring_not_found,
    rule_not_found,
    sip_rule_not_found,
    transaction_not_found,
)
from ledgerly.domain.recurring import (
    DUE_DATE_WINDOW_DAYS,
    FREQUENCIES,
    find_recurring_matches,
    next_due_date,
)
from ledgerly.domain.sip_matching import SIP_MATCH_TYPES, match_sip_rule
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)


def _to_decimal(value: Any, label: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label} must be a number, got '{value}'")


class CategoryRuleService:
    """Service for managing category rules and recording their usage."""

    def __init__(self, db: Database):
        """Initialize category rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        pattern: str,
        category_id: str,
        match_type: str = "partial",
        transaction_type: Optional[str] = None,
        priority: int = 0,
    ) -> int:
        """Create a category rule.

        Args:
            pattern: Text to look for in descriptions
            category_id: Category assigned on match
            match_type: ``partial`` (contains) or ``exact``
            transaction_type: Optional type assigned on match
            priority: Higher priorities are evaluated first

        Returns:
            Rule ID

        Raises:
            ValidationError: If any argument is invalid
            NotFoundError: If the category doesn't exist
        """
        pattern = (pattern or "").strip()
        if not pattern:
            raise ValidationError("Rule pattern must not be empty")
        if match_type not in MATCH_TYPES:
            raise ValidationError(f"Match type must be one of: {', '.join(MATCH_TYPES)}")
        if transaction_type is not None and transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Transaction type must be one of: {', '.join(TRANSACTION_TYPES)}")
        if self.db.get_category(category_id) is None:
            raise NotFoundError(f"Category '{category_id}' not found")

        return self.db.create_category_rule(
            pattern=pattern,
            category_id=category_id,
            match_type=match_type,
            transaction_type=transaction_type,
            priority=priority,
        )

    def get_rule(self, rule_id: int) -> CategoryRule:
        """Get a rule by ID.

        Raises:
            NotFoundError: If the rule doesn't exist
        """
        rule = self.db.get_category_rule(rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        return rule

    def list_rules(self, active_only: bool = False) -> list[CategoryRule]:
        return self.db.list_category_rules(active_only=active_only)

    def toggle_rule(self, rule_id: int) -> bool:
        """Flip a rule between active and inactive. Returns the new state."""
        rule = self.get_rule(rule_id)
        self.db.update_category_rule(rule_id, is_active=not rule.is_active)
        return not rule.is_active

    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule. Transactions attributed to it keep a stale link."""
        self.get_rule(rule_id)
        self.db.delete_category_rule(rule_id)

    def suggest(self, description: str, transaction_type: Optional[str] = None) -> CategorySuggestion:
        """Evaluate stored rules against a description without recording usage."""
        return suggest_category(description, self.list_rules(), transaction_type)

    def record_usage(self, rule: CategoryRule, when: Optional[datetime] = None) -> CategoryRule:
        """Persist one more match for ``rule`` and return the updated copy."""
        updated = record_usage(rule, when or datetime.now(UTC))
        self.db.update_category_rule(rule.id, match_count=updated.match_count, last_used=updated.last_used)
        return updated

    def categorize(
        self, description: str, transaction_type: Optional[str] = None, when: Optional[datetime] = None
    ) -> CategorySuggestion:
        """Suggest a category and record usage of the matching rule."""
        suggestion = self.suggest(description, transaction_type)
        if suggestion.applied_rule is not None:
            self.record_usage(suggestion.applied_rule, when)
        return suggestion

    def preview(self, rule_id: int, account_id: Optional[int] = None) -> list[Transaction]:
        """Return stored transactions the rule would match."""
        rule = self.get_rule(rule_id)
        return find_matching_transactions(rule, self.db.list_transactions(account_id=account_id))

    def apply_rule_to_transactions(self, rule_id: int, account_id: Optional[int] = None) -> dict[str, int]:
        """Re-categorize stored transactions matching a rule.

        Matching transactions take the rule's category (and transaction type,
        when the rule sets one) and are attributed to the rule.

        Returns:
            Dict with ``matched`` and ``updated`` counts
        """
        rule = self.get_rule(rule_id)
        matching = find_matching_transactions(rule, self.db.list_transactions(account_id=account_id))

        updated = 0
        for transaction in matching:
            changes: dict[str, Any] = {}
            if transaction.category_id != rule.category_id:
                changes["category_id"] = rule.category_id
            if rule.transaction_type and transaction.type != rule.transaction_type:
                changes["type"] = rule.transaction_type
            if transaction.applied_rule_id != rule.id:
                changes["applied_rule_id"] = rule.id
            if changes:
                self.db.update_transaction(transaction.id, **changes)
                updated += 1

        if updated:
            self.db.update_category_rule(
                rule.id, match_count=rule.match_count + updated, last_used=datetime.now(UTC)
            )
        logger.info("Rule %s matched %d transactions, updated %d", rule.id, len(matching), updated)
        return {"matched": len(matching), "updated": updated}

    def seed_defaults(self) -> int:
        """Create the default rule set, skipping patterns that already exist.

        Returns:
            Number of rules created
        """
        existing = {rule.pattern.lower() for rule in self.list_rules()}
        created = 0
        for pattern, category_id, transaction_type in DEFAULT_CATEGORY_RULES:
            if pattern.lower() in existing:
                continue
            self.db.create_category_rule(
                pattern=pattern,
                category_id=category_id,
                match_type="partial",
                transaction_type=transaction_type,
            )
            created += 1
        return created


class SIPRuleService:
    """Service for managing SIP rules."""

    def __init__(self, db: Database):
        """Initialize SIP rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        pattern: str,
        amount: Decimal,
        amount_tolerance: Decimal = Decimal("0"),
        expected_day: Optional[int] = None,
        date_tolerance: int = 3,
        match_type: str = "contains",
        priority: int = 0,
        asset_id: Optional[str] = None,
    ) -> int:
        """Create a SIP rule.

        Args:
            pattern: Description pattern
            amount: Expected installment amount
            amount_tolerance: Allowed deviation in percent of ``amount``
            expected_day: Optional day of month the debit is expected on
            date_tolerance: Allowed distance from ``expected_day`` in days
            match_type: ``contains``, ``equals`` or ``regex``
            priority: Higher priorities are evaluated first
            asset_id: Asset the installments belong to

        Returns:
            Rule ID

        Raises:
            ValidationError: If any argument is invalid
        """
        pattern = (pattern or "").strip()
        if not pattern:
            raise ValidationError("SIP rule pattern must not be empty")
        if match_type not in SIP_MATCH_TYPES:
            raise ValidationError(f"Match type must be one of: {', '.join(SIP_MATCH_TYPES)}")
        if match_type == "regex":
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValidationError(f"Invalid regular expression '{pattern}': {e}")

        amount = _to_decimal(amount, "Amount")
        amount_tolerance = _to_decimal(amount_tolerance, "Amount tolerance")
        if amount <= 0:
            raise ValidationError("SIP amount must be positive")
        if not Decimal("0") <= amount_tolerance <= Decimal("100"):
            raise ValidationError("Amount tolerance must be between 0 and 100 percent")
        if expected_day is not None and not 1 <= expected_day <= 31:
            raise ValidationError("Expected day must be between 1 and 31")
        if date_tolerance < 0:
            raise ValidationError("Date tolerance must not be negative")

        return self.db.create_sip_rule(
            pattern=pattern,
            amount=amount,
            amount_tolerance=amount_tolerance,
            expected_day=expected_day,
            date_tolerance=date_tolerance,
            match_type=match_type,
            priority=priority,
            asset_id=asset_id,
        )

    def get_rule(self, rule_id: int) -> SIPRule:
        """Get a SIP rule by ID.

        Raises:
            NotFoundError: If the rule doesn't exist
        """
        rule = self.db.get_sip_rule(rule_id)
        if rule is None:
            raise NotFoundError(sip_rule_not_found(rule_id))
        return rule

    def list_rules(self, active_only: bool = False) -> list[SIPRule]:
        return self.db.list_sip_rules(active_only=active_only)

    def toggle_rule(self, rule_id: int) -> bool:
        """Flip a rule between active and inactive. Returns the new state."""
        rule = self.get_rule(rule_id)
        self.db.update_sip_rule(rule_id, is_active=not rule.is_active)
        return not rule.is_active

    def match(self, transaction) -> Optional[SIPRule]:
        """Return the SIP rule the transaction belongs to, without recording usage."""
        return match_sip_rule(transaction, self.list_rules())

    def record_usage(self, rule: SIPRule, when: Optional[datetime] = None) -> SIPRule:
        """Persist one more match for ``rule`` and return the updated copy."""
        updated = record_usage(rule, when or datetime.now(UTC))
        self.db.update_sip_rule(rule.id, match_count=updated.match_count, last_used=updated.last_used)
        return updated


class RecurringService:
    """Service for recurring transaction templates and their payments."""

    def __init__(self, db: Database):
        """Initialize recurring transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_recurring(
        self,
        name: str,
        amount: Decimal,
        frequency: str,
        next_due: date,
        category_id: Optional[str] = None,
    ) -> int:
        """Create a recurring transaction template.

        Raises:
            ValidationError: If the name is blank, the amount is not positive
                or the frequency is unknown
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Recurring transaction name must not be empty")
        amount = _to_decimal(amount, "Amount")
        if amount <= 0:
            raise ValidationError("Recurring amount must be positive")
        if frequency not in FREQUENCIES:
            raise ValidationError(f"Frequency must be one of: {', '.join(FREQUENCIES)}")

        return self.db.create_recurring(
            name=name,
            amount=amount,
            frequency=frequency,
            next_due_date=next_due,
            category_id=category_id,
        )

    def get_recurring(self, recurring_id: int) -> RecurringTransaction:
        """Get a template by ID.

        Raises:
            NotFoundError: If the template doesn't exist
        """
        recurring = self.db.get_recurring(recurring_id)
        if recurring is None:
            raise NotFoundError(recurring_not_found(recurring_id))
        return recurring

    def list_recurring(self, active_only: bool = False) -> list[RecurringTransaction]:
        return self.db.list_recurring(active_only=active_only)

    def find_matches(self, recurring_id: int, account_id: Optional[int] = None) -> list[Transaction]:
        """Return linked and fuzzy-matched transactions, newest first."""
        template = self.get_recurring(recurring_id)
        return find_recurring_matches(template, self.db.list_transactions(account_id=account_id))

    def link_transaction(self, recurring_id: int, transaction_id: int) -> RecurringTransaction:
        """Link a transaction to a template.

        When the transaction pays the current cycle (it lies within the
        fuzzy-match window of ``next_due_date``) the template advances by
        one period.

        Returns:
            The template after linking

        Raises:
            NotFoundError: If the template or transaction doesn't exist
        """
        template = self.get_recurring(recurring_id)
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        self.db.update_transaction(transaction_id, recurring_id=recurring_id)

        window = timedelta(days=DUE_DATE_WINDOW_DAYS)
        if abs(transaction.date - template.next_due_date) <= window:
            advanced = next_due_date(template.next_due_date, template.frequency)
            self.db.update_recurring(recurring_id, next_due_date=advanced)
            logger.info("Recurring %s paid; next due %s", recurring_id, advanced)

        return self.get_recurring(recurring_id)
