"""Guard against importing the same statement, or the same transactions, twice.

Files are matched exactly by fingerprint. Transactions are scored for
likeness (0-100) against the account's stored transactions and against
earlier rows of the same batch, so near duplicates can be shown for review.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Union

from rapidfuzz.distance import Levenshtein

from ledgerly.database.base import Database
from ledgerly.domain.entities import DuplicateDetectionSettings, FileFingerprint, ParsedTransaction, Transaction
from ledgerly.domain.errors import DuplicateFileError
from ledgerly.logging_setup import get_logger
from ledgerly.utils.merchant import clean_description

logger = get_logger(__name__)

# Stored transactions scoring at least this much are reported.
POSSIBLE_DUPLICATE_CONFIDENCE = 85
# Rows repeated within one statement are usually genuine (two equal coffees),
# so they need a stronger match.
WITHIN_FILE_CONFIDENCE = 95
DATE_TOLERANCE_DAYS = 1
AMOUNT_TOLERANCE = Decimal("0.001")

# Score weights; they sum to 100.
DATE_WEIGHT = 35
AMOUNT_WEIGHT = 45
DESCRIPTION_WEIGHT = 15
TYPE_WEIGHT = 2.5
CATEGORY_WEIGHT = 2.5

AnyTransaction = Union[ParsedTransaction, Transaction]


@dataclass(frozen=True)
class DuplicateCandidate:
    """A batch row that looks like a transaction seen before.

    ``position`` is the row's 1-based position in the batch.
    ``duplicate_of`` is a stored ``Transaction``, or an earlier batch row when
    ``within_file`` is set.
    """

    position: int
    transaction: ParsedTransaction
    duplicate_of: AnyTransaction
    confidence: int
    within_file: bool = False


def date_similarity(first, second) -> float:
    days = abs((first - second).days)
    if days == 0:
        return 1.0
    if days <= DATE_TOLERANCE_DAYS:
        return 0.8
    if days <= 7:
        return 0.5
    if days <= 30:
        return 0.2
    return 0.0


def amount_similarity(first: Decimal, second: Decimal) -> float:
    """Compare magnitudes; a debit never resembles a credit."""
    first, second = Decimal(first), Decimal(second)
    if first == second:
        return 1.0
    if (first < 0) != (second < 0):
        return 0.0
    larger = max(abs(first), abs(second))
    relative = abs(abs(first) - abs(second)) / larger
    if relative <= AMOUNT_TOLERANCE:
        return 0.95
    if relative <= Decimal("0.05"):
        return 0.8
    if relative <= Decimal("0.1"):
        return 0.5
    return 0.0


def description_similarity(first: str, second: str) -> float:
    first, second = clean_description(first), clean_description(second)
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0
    if first in second or second in first:
        return 0.8
    return Levenshtein.normalized_similarity(first, second)


def _is_exact(first: AnyTransaction, second: AnyTransaction) -> bool:
    return (
        first.date == second.date
        and Decimal(first.amount) == Decimal(second.amount)
        and clean_description(first.description) == clean_description(second.description)
        and first.type == second.type
    )


def similarity_score(first: AnyTransaction, second: AnyTransaction) -> int:
    """Score how likely two transactions record the same event (0-100).

    Rows more than a day apart never score above 85.
    """
    if _is_exact(first, second):
        return 100

    score = (
        date_similarity(first.date, second.date) * DATE_WEIGHT
        + amount_similarity(first.amount, second.amount) * AMOUNT_WEIGHT
        + description_similarity(first.description, second.description) * DESCRIPTION_WEIGHT
    )
    if first.type == second.type:
        score += TYPE_WEIGHT
    if first.category_id == second.category_id:
        score += CATEGORY_WEIGHT

    confidence = int(score + 0.5)
    if abs((first.date - second.date).days) > DATE_TOLERANCE_DAYS:
        confidence = min(confidence, 85)
    return confidence


def _best_match(
    transaction: AnyTransaction, others: Iterable[AnyTransaction]
) -> tuple[Optional[AnyTransaction], int]:
    best, best_confidence = None, 0
    for other in others:
        if abs((transaction.date - other.date).days) > DATE_TOLERANCE_DAYS:
            continue
        confidence = similarity_score(transaction, other)
        if confidence > best_confidence:
            best, best_confidence = other, confidence
    return best, best_confidence


class ImportGuard:
    """Duplicate detection for statement imports."""

    def __init__(self, db: Database):
        self.db = db

    def is_file_already_imported(self, fingerprint: FileFingerprint) -> bool:
        """Return True if this fingerprint is in the import history."""
        return self.db.has_import_record(fingerprint)

    def check(self, fingerprint: FileFingerprint, settings: DuplicateDetectionSettings) -> None:
        """Refuse a file that was imported before.

        Only enforced when duplicate detection and file warnings are both
        enabled.

        Raises:
            DuplicateFileError: If the fingerprint is already recorded
        """
        if not settings.checks_files:
            return
        if self.is_file_already_imported(fingerprint):
            logger.info("Refusing duplicate import of %s", fingerprint.signature)
            raise DuplicateFileError(fingerprint.file_name)

    def record(
        self, fingerprint: FileFingerprint, transaction_count: int = 0, imported_at: Optional[datetime] = None
    ) -> int:
        """Add a fingerprint to the import history; recording twice is harmless.

        Returns:
            Import record ID
        """
        return self.db.add_import_record(fingerprint, transaction_count=transaction_count, imported_at=imported_at)

    def find_near_duplicates(
        self, account_id: int, rows: list[tuple[int, ParsedTransaction]]
    ) -> list[DuplicateCandidate]:
        """Flag batch rows that resemble stored or earlier batch transactions.

        Each row is compared with the account's stored transactions within a
        day of it, then with the rows before it in the batch. The stronger
        match is reported.

        Args:
            account_id: Account the batch is going into
            rows: ``(position, transaction)`` pairs, in statement order

        Returns:
            One candidate per flagged row, in batch order
        """
        if not rows:
            return []

        tolerance = timedelta(days=DATE_TOLERANCE_DAYS)
        stored = self.db.list_transactions(
            start_date=min(t.date for _, t in rows) - tolerance,
            end_date=max(t.date for _, t in rows) + tolerance,
            account_id=account_id,
        )

        candidates = []
        seen: list[ParsedTransaction] = []
        for position, transaction in rows:
            match, confidence = _best_match(transaction, stored)
            candidate = None
            if match is not None and confidence >= POSSIBLE_DUPLICATE_CONFIDENCE:
                candidate = DuplicateCandidate(position, transaction, match, confidence)

            earlier, internal = _best_match(transaction, seen)
            if earlier is not None and internal >= WITHIN_FILE_CONFIDENCE:
                if candidate is None or internal > candidate.confidence:
                    candidate = DuplicateCandidate(position, transaction, earlier, internal, within_file=True)

            if candidate is not None:
                candidates.append(candidate)
            seen.append(transaction)

        logger.info("Found %d possible duplicate transactions in account %s", len(candidates), account_id)
        return candidates
