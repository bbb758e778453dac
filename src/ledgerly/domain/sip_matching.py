"""Matching of investment debits against SIP rules."""

import calendar
import re
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ledgerly.domain.categorization import order_by_priority
from ledgerly.domain.entities import SIPRule
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)

SIP_MATCH_TYPES = ("contains", "equals", "regex")


def description_matches(description: str, pattern: str, match_type: str) -> bool:
    """Test a description against a SIP rule pattern, ignoring case.

    An invalid regular expression never matches.
    """
    text = (description or "").lower()
    needle = (pattern or "").lower()
    if match_type == "equals":
        return text.strip() == needle.strip()
    if match_type == "contains":
        return bool(needle) and needle in text
    if match_type == "regex":
        try:
            return re.search(pattern, description or "", re.IGNORECASE) is not None
        except re.error as e:
            logger.warning("Invalid regex in SIP rule %r: %s", pattern, e)
            return False
    return False


def amount_within_tolerance(amount: Decimal, target: Decimal, tolerance_percent: Decimal) -> bool:
    """Return True if ``|amount|`` lies within ``tolerance_percent`` of ``target``.

    Both bounds are inclusive.
    """
    margin = Decimal(target) * Decimal(tolerance_percent) / Decimal(100)
    value = abs(Decimal(amount))
    return target - margin <= value <= target + margin


def day_within_tolerance(when: date, expected_day: int, tolerance_days: int) -> bool:
    """Return True if ``when`` falls within ``tolerance_days`` of ``expected_day``.

    The distance wraps around the month end, measured with the length of the
    transaction's month: with ``expected_day=1`` and a tolerance of 3, the
    30th of a 31-day month is 2 days away. Expected days past the month end
    are clamped to its last day.
    """
    month_length = calendar.monthrange(when.year, when.month)[1]
    target = min(expected_day, month_length)
    distance = abs(when.day - target)
    distance = min(distance, month_length - distance)
    return distance <= tolerance_days


def sip_rule_matches(rule: SIPRule, description: str, amount: Decimal, when: date) -> bool:
    """Return True if all of description, amount and day of month agree."""
    if not rule.is_active:
        return False
    if not description_matches(description, rule.pattern, rule.match_type):
        return False
    if not amount_within_tolerance(amount, rule.amount, rule.amount_tolerance):
        return False
    if rule.expected_day:
        tolerance = rule.date_tolerance if rule.date_tolerance is not None else 3
        if not day_within_tolerance(when, rule.expected_day, tolerance):
            return False
    return True


def match_sip_rule(transaction, rules: Sequence[SIPRule]) -> Optional[SIPRule]:
    """Return the SIP rule a transaction belongs to, or None.

    Rules are tried by priority (higher first, stored order among equals) and
    the first that matches wins.

    Args:
        transaction: Object with ``description``, ``amount`` and ``date``
        rules: SIP rules in stored order
    """
    for rule in order_by_priority(rules):
        if sip_rule_matches(rule, transaction.description, transaction.amount, transaction.date):
            return rule
    return None
