"""Domain model entities for ledgerly.

These are pure data classes representing business concepts, independent of
database schema. Statement ingestion produces ``ParsedTransaction`` values;
the store hands back ``Transaction`` values once they are persisted.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

TRANSACTION_TYPES = ("income", "expense", "investment", "insurance")

# Categories that carry no user decision and may be overwritten by rules.
DEFAULT_CATEGORY = "other"
GENERIC_CATEGORIES = frozenset({"", "other", "uncategorized"})

CURRENCY = "INR"


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    name: str
    bank_name: str
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity keyed by a short slug (e.g. ``groceries``)."""

    id: str
    name: str
    parent_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class ParsedTransaction:
    """Normalized statement row, ready to be annotated and stored.

    ``amount`` is signed: credits are positive and debits negative.
    """

    date: date
    description: str
    amount: Decimal
    type: str
    currency: str = CURRENCY
    category_id: Optional[str] = None
    applied_rule_id: Optional[int] = None
    sip_rule_id: Optional[int] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Transaction:
    """Stored transaction domain entity."""

    id: int
    unique_id: str
    account_id: int
    date: date
    amount: Decimal
    description: str
    type: str
    category_id: Optional[str]
    applied_rule_id: Optional[int]
    sip_rule_id: Optional[int]
    recurring_id: Optional[int]
    tags: tuple[str, ...]
    notes: Optional[str]
    imported_at: datetime


@dataclass(frozen=True)
class FileFingerprint:
    """File metadata used to recognise a statement that was imported before."""

    file_name: str
    size: int
    last_modified: float

    @property
    def signature(self) -> str:
        return f"{self.file_name}-{self.size}-{int(self.last_modified)}"


@dataclass(frozen=True)
class ImportRecord:
    """A fingerprint recorded after a successful import."""

    id: int
    fingerprint: FileFingerprint
    transaction_count: int
    imported_at: datetime


@dataclass(frozen=True)
class CategoryRule:
    """Pattern-to-category rule.

    ``match_type`` is ``partial`` (substring) or ``exact`` (whole description).
    """

    id: int
    pattern: str
    category_id: str
    match_type: str = "partial"
    transaction_type: Optional[str] = None
    priority: int = 0
    is_active: bool = True
    match_count: int = 0
    last_used: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SIPRule:
    """Rule linking a recurring investment debit to an asset.

    ``amount_tolerance`` is a percentage of ``amount``; ``expected_day`` is a
    day of month and ``date_tolerance`` a number of days around it.
    """

    id: int
    pattern: str
    amount: Decimal
    amount_tolerance: Decimal = Decimal("0")
    expected_day: Optional[int] = None
    date_tolerance: int = 3
    match_type: str = "contains"
    priority: int = 0
    is_active: bool = True
    asset_id: Optional[str] = None
    match_count: int = 0
    last_used: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class RecurringTransaction:
    """Template for a periodic expected payment (bill, subscription)."""

    id: int
    name: str
    amount: Decimal
    frequency: str
    next_due_date: date
    category_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class DuplicateDetectionSettings:
    """User preferences for duplicate-file detection."""

    enabled: bool = True
    show_file_warnings: bool = True

    @property
    def checks_files(self) -> bool:
        return self.enabled and self.show_file_warnings

