"""Category rule matching, usage bookkeeping and lazy attribution repair.

Everything here is pure: functions take rules and transactions and return
decisions or updated copies. ``CategoryRuleService`` and
``TransactionService`` persist the results.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence, TypeVar

from ledgerly.domain.entities import DEFAULT_CATEGORY, GENERIC_CATEGORIES, CategoryRule
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)

MATCH_TYPES = ("partial", "exact")

R = TypeVar("R")

# Seed rules offered by ``ledgerly rule seed-defaults``.
# (pattern, category id, transaction type)
DEFAULT_CATEGORY_RULES = (
    ("LIC", "insurance_inv", "investment"),
    ("HDFCLIFE", "insurance_inv", "investment"),
    ("SBILIFE", "insurance_inv", "investment"),
    ("ICICIPRU", "insurance_inv", "investment"),
    ("STARHEALTH", "insurance_inv", "investment"),
    ("GROWW", "mutual_funds", "investment"),
    ("ZERODHA", "mutual_funds", "investment"),
    ("KUVERA", "mutual_funds", "investment"),
    ("SIP", "mutual_funds", "investment"),
    ("UPSTOX", "stocks", "investment"),
    ("ANGELONE", "stocks", "investment"),
    ("PETROL", "fuel", "expense"),
    ("DIESEL", "fuel", "expense"),
    ("INDIANOIL", "fuel", "expense"),
    ("BPCL", "fuel", "expense"),
    ("HPCL", "fuel", "expense"),
    ("UBER", "public_transit", "expense"),
    ("RAPIDO", "public_transit", "expense"),
    ("IRCTC", "public_transit", "expense"),
    ("FASTAG", "tolls", "expense"),
    ("SWIGGY", "delivery", "expense"),
    ("ZOMATO", "delivery", "expense"),
    ("BIGBASKET", "groceries", "expense"),
    ("BLINKIT", "groceries", "expense"),
    ("ZEPTO", "groceries", "expense"),
    ("DMART", "groceries", "expense"),
    ("DOMINOS", "restaurants", "expense"),
    ("STARBUCKS", "restaurants", "expense"),
    ("BESCOM", "electricity", "expense"),
    ("TANGEDCO", "electricity", "expense"),
    ("AIRTEL", "phone", "expense"),
    ("JIO", "phone", "expense"),
    ("BSNL", "phone", "expense"),
    ("ACTFIBERNET", "internet", "expense"),
    ("INDANE", "gas", "expense"),
    ("NETFLIX", "streaming", "expense"),
    ("HOTSTAR", "streaming", "expense"),
    ("SPOTIFY", "streaming", "expense"),
    ("BOOKMYSHOW", "movies", "expense"),
    ("AMAZON", "shopping", "expense"),
    ("FLIPKART", "shopping", "expense"),
    ("MYNTRA", "clothing", "expense"),
    ("AJIO", "clothing", "expense"),
    ("APOLLO", "pharmacy", "expense"),
    ("PHARMEASY", "pharmacy", "expense"),
)


def order_by_priority(rules: Iterable[R]) -> list[R]:
    """Return the active rules, highest priority first.

    The sort is stable, so rules of equal priority keep their given order.
    """
    active = [rule for rule in rules if rule.is_active]
    return sorted(active, key=lambda rule: -(rule.priority or 0))


def rule_matches(rule: CategoryRule, description: str) -> bool:
    """Return True if the rule's pattern matches the description.

    Inactive rules never match.
    """
    if not rule.is_active:
        return False
    text = (description or "").lower().strip()
    pattern = (rule.pattern or "").lower().strip()
    if not pattern:
        return False
    if rule.match_type == "exact":
        return text == pattern
    return pattern in text


def evaluate_category_rules(rules: Sequence[CategoryRule], description: str) -> Optional[CategoryRule]:
    """Return the first rule in priority order that matches, or None."""
    for rule in order_by_priority(rules):
        if rule_matches(rule, description):
            return rule
    return None


@dataclass(frozen=True)
class CategorySuggestion:
    """Outcome of evaluating category rules for one description."""

    category_id: str
    applied_rule: Optional[CategoryRule] = None
    transaction_type: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.applied_rule is not None


def suggest_category(
    description: str,
    rules: Sequence[CategoryRule],
    transaction_type: Optional[str] = None,
) -> CategorySuggestion:
    """Suggest a category for a description.

    Args:
        description: Transaction description
        rules: Category rules in their stored order
        transaction_type: Current type, returned unchanged when the matching
            rule does not override it

    Returns:
        CategorySuggestion; ``other`` with no applied rule if nothing matched
    """
    rule = evaluate_category_rules(rules, description)
    if rule is None:
        return CategorySuggestion(DEFAULT_CATEGORY, None, transaction_type)
    return CategorySuggestion(rule.category_id, rule, rule.transaction_type or transaction_type)


def record_usage(rule: R, when: datetime) -> R:
    """Return a copy of ``rule`` with one more recorded match."""
    return dataclasses.replace(rule, match_count=rule.match_count + 1, last_used=when)


def find_matching_transactions(rule: CategoryRule, transactions: Iterable[R]) -> list[R]:
    """Return the transactions whose description the rule matches.

    The rule is evaluated as if active, so previews work for disabled rules.
    """
    candidate = rule if rule.is_active else dataclasses.replace(rule, is_active=True)
    return [t for t in transactions if rule_matches(candidate, t.description)]


# Lazy repair states
ATTRIBUTED = "attributed"
REINFORCED = "reinforced"
UNTOUCHED = "untouched"
NO_MATCH = "no_match"
SKIPPED = "skipped"


@dataclass(frozen=True)
class RepairDecision:
    """What lazy repair decided for one transaction.

    ``category_id`` is the category the transaction should carry afterwards;
    ``rule`` is the rule to attribute, if any.
    """

    state: str
    category_id: Optional[str]
    rule: Optional[CategoryRule] = None

    @property
    def changes_transaction(self) -> bool:
        return self.state in (ATTRIBUTED, REINFORCED)


def has_live_attribution(applied_rule_id: Optional[int], rules: Sequence[CategoryRule]) -> bool:
    """Return True if ``applied_rule_id`` names an existing active rule."""
    if applied_rule_id is None:
        return False
    return any(rule.id == applied_rule_id and rule.is_active for rule in rules)


def repair_attribution(transaction, rules: Sequence[CategoryRule]) -> RepairDecision:
    """Re-evaluate category rules for a transaction lacking attribution.

    A suggested category is committed only over a generic placeholder
    (``other``, ``uncategorized`` or empty); when the category already equals
    the suggestion only the attribution is filled in. A differing user-chosen
    category is never replaced.

    Args:
        transaction: Object with ``description``, ``category_id`` and
            ``applied_rule_id``
        rules: All category rules (a stale ``applied_rule_id`` is detected
            against these)

    Returns:
        RepairDecision
    """
    current = transaction.category_id or ""
    if has_live_attribution(transaction.applied_rule_id, rules):
        return RepairDecision(SKIPPED, current)

    suggestion = suggest_category(transaction.description, rules)
    if not suggestion.matched:
        return RepairDecision(NO_MATCH, current)

    if current.lower() in GENERIC_CATEGORIES:
        return RepairDecision(ATTRIBUTED, suggestion.category_id, suggestion.applied_rule)
    if current == suggestion.category_id:
        return RepairDecision(REINFORCED, current, suggestion.applied_rule)
    return RepairDecision(UNTOUCHED, current)
