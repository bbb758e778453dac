"""Linking stored transactions to recurring transaction templates."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from dateutil.relativedelta import relativedelta

from ledgerly.domain.entities import RecurringTransaction, Transaction

FREQUENCIES = ("daily", "weekly", "monthly", "quarterly", "yearly")

AMOUNT_EPSILON = Decimal("0.01")
DUE_DATE_WINDOW_DAYS = 5

_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "yearly": relativedelta(years=1),
}


def next_due_date(current: date, frequency: str) -> date:
    """Advance a due date by one period.

    Month arithmetic clamps to the end of shorter months
    (31 January + 1 month = 29 February in a leap year).

    Raises:
        ValueError: If frequency is unknown
    """
    try:
        return current + _STEPS[frequency]
    except KeyError:
        raise ValueError(
            f"Unknown frequency '{frequency}'. Expected one of: {', '.join(FREQUENCIES)}"
        )


def is_fuzzy_match(template: RecurringTransaction, transaction: Transaction) -> bool:
    """Return True if an unlinked transaction looks like a payment of ``template``.

    Only the current due cycle is considered: the transaction must fall within
    5 days of ``next_due_date`` and its magnitude must equal the template
    amount to within 0.01.
    """
    if transaction.recurring_id is not None:
        return False
    if abs(abs(transaction.amount) - abs(template.amount)) > AMOUNT_EPSILON:
        return False
    return abs(transaction.date - template.next_due_date) <= timedelta(days=DUE_DATE_WINDOW_DAYS)


def find_recurring_matches(
    template: RecurringTransaction, transactions: Iterable[Transaction]
) -> list[Transaction]:
    """Return transactions linked to ``template`` plus fuzzy matches, newest first."""
    matches = [
        t
        for t in transactions
        if t.recurring_id == template.id or is_fuzzy_match(template, t)
    ]
    matches.sort(key=lambda t: t.date, reverse=True)
    return matches
