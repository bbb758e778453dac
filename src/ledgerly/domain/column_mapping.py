"""Header row detection and column-to-field mapping for tabular statements."""

import re
from dataclasses import dataclass
from typing import Optional

from ledgerly.domain.errors import HeaderDetectionError, MappingValidationError
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)

RawTable = list[list[str]]

FIELDS = ("date", "description", "amount", "debit", "credit")
FIELD_LABELS = {
    "date": "Date",
    "description": "Description",
    "amount": "Amount",
    "debit": "Debit (Withdrawal)",
    "credit": "Credit (Deposit)",
}

HEADER_SCAN_LIMIT = 30

# Checked in this order for every cell; the first field whose vocabulary
# matches claims the column.
HEADER_VOCABULARY = (
    ("date", ("date", "txn date", "value date", "transaction date", "tran date", "posting date", "value dt")),
    ("debit", ("withdrawal", "withdrawals", "debit", "debits", "paid out")),
    ("credit", ("deposit", "deposits", "credit", "credits", "paid in")),
    ("amount", ("amount", "amt")),
    ("description", ("narration", "description", "particulars", "details", "remarks")),
)


def _normalize_cell(cell: object) -> str:
    text = re.sub(r"[^a-z0-9]+", " ", str(cell or "").lower())
    return " ".join(text.split())


def _field_for_header(cell: object) -> Optional[str]:
    normalized = f" {_normalize_cell(cell)} "
    if not normalized.strip():
        return None
    if " balance " in normalized:
        return None
    for field_name, tokens in HEADER_VOCABULARY:
        for token in tokens:
            if f" {token} " in normalized:
                return field_name
    return None


@dataclass(frozen=True)
class ColumnMapping:
    """Semantic field to zero-based column index."""

    date: int
    description: int
    amount: Optional[int] = None
    debit: Optional[int] = None
    credit: Optional[int] = None

    def __post_init__(self):
        problems = mapping_problems(self.as_dict())
        if problems:
            raise MappingValidationError(problems)

    @classmethod
    def from_dict(cls, mapping: dict[str, int]) -> "ColumnMapping":
        """Build a mapping, raising MappingValidationError on invalid input."""
        unknown = sorted(set(mapping) - set(FIELDS))
        if unknown:
            raise MappingValidationError([f"Unknown field(s): {', '.join(unknown)}"])
        problems = mapping_problems(mapping)
        if problems:
            raise MappingValidationError(problems)
        return cls(**{name: int(index) for name, index in mapping.items()})

    def as_dict(self) -> dict[str, int]:
        return {
            name: getattr(self, name)
            for name in FIELDS
            if getattr(self, name) is not None
        }

    @property
    def uses_debit_credit(self) -> bool:
        return self.debit is not None or self.credit is not None

    @property
    def width(self) -> int:
        """Smallest row length that holds every mapped column."""
        return max(self.as_dict().values()) + 1


def mapping_problems(mapping: dict[str, Optional[int]]) -> list[str]:
    """Return human-readable reasons a mapping cannot be used (empty if valid)."""
    assigned = {k: v for k, v in mapping.items() if v is not None}
    problems = []

    if "date" not in assigned or "description" not in assigned:
        problems.append("Please map at least Date and Description columns.")
    has_amount = "amount" in assigned
    has_split = "debit" in assigned or "credit" in assigned
    if not has_amount and not has_split:
        problems.append("Please map either Amount column OR Debit/Credit columns.")
    elif has_amount and has_split:
        problems.append("Map either Amount or Debit/Credit columns, not both.")

    indices = list(assigned.values())
    if any(index < 0 for index in indices):
        problems.append("Column indices must not be negative.")
    if len(indices) != len(set(indices)):
        problems.append("Each column can be mapped to only one field.")
    return problems


def infer_mapping(row: list[str]) -> dict[str, int]:
    """Assign fields to the columns of a candidate header row.

    Each field takes its first matching column and each column at most one
    field.
    """
    mapping: dict[str, int] = {}
    for index, cell in enumerate(row):
        field_name = _field_for_header(cell)
        if field_name is not None and field_name not in mapping:
            mapping[field_name] = index
    # Debit/credit columns win over a generic amount column.
    if "amount" in mapping and ("debit" in mapping or "credit" in mapping):
        del mapping["amount"]
    return mapping


def _qualifies(mapping: dict[str, int]) -> bool:
    return (
        "date" in mapping
        and "description" in mapping
        and ("amount" in mapping or "debit" in mapping or "credit" in mapping)
    )


def detect_header(raw_table: RawTable, scan_limit: int = HEADER_SCAN_LIMIT) -> tuple[int, ColumnMapping]:
    """Locate the header row of a decoded statement table.

    Scans the first ``scan_limit`` rows and returns the lowest-indexed row
    whose cells name a date, a description and either an amount or
    debit/credit columns.

    Args:
        raw_table: Decoded rows of string cells
        scan_limit: Number of leading rows to inspect

    Returns:
        Tuple of (header row index, inferred ColumnMapping)

    Raises:
        HeaderDetectionError: If no row qualifies; carries ``raw_table``
    """
    for index, row in enumerate(raw_table[:scan_limit]):
        if not row:
            continue
        mapping = infer_mapping(row)
        if _qualifies(mapping):
            logger.debug("Header row detected at index %d: %s", index, mapping)
            return index, ColumnMapping.from_dict(mapping)

    logger.debug("No header row found in first %d rows", scan_limit)
    raise HeaderDetectionError(raw_table)


class MappingBuilder:
    """Manual header-row and column assignment for a table that failed detection.

    Holds no UI state beyond the selection itself, so any front end (CLI
    prompt, web form) can drive it.
    """

    def __init__(self, raw_table: RawTable, header_row_index: int = 0):
        if not raw_table:
            raise MappingValidationError(["No data available to map."])
        self.raw_table = raw_table
        self.header_row_index = 0
        self._columns: dict[int, str] = {}
        self.select_header_row(header_row_index)

    def select_header_row(self, index: int) -> None:
        """Choose the header row; clears assignments made for the previous row."""
        if index < 0 or index >= len(self.raw_table):
            raise MappingValidationError([f"Header row {index} is outside the table"])
        if index != self.header_row_index:
            self._columns.clear()
        self.header_row_index = index

    @property
    def headers(self) -> list[str]:
        return list(self.raw_table[self.header_row_index])

    def candidate_rows(self, limit: int = HEADER_SCAN_LIMIT) -> RawTable:
        return self.raw_table[:limit]

    def sample_rows(self, count: int = 5) -> RawTable:
        start = self.header_row_index + 1
        return self.raw_table[start : start + count]

    @property
    def mapping(self) -> dict[str, int]:
        return {field_name: column for column, field_name in self._columns.items()}

    def field_for(self, column: int) -> Optional[str]:
        return self._columns.get(column)

    def assign(self, field_name: str, column: int) -> None:
        """Assign ``field_name`` to ``column``.

        The column's previous field is vacated and the field leaves the column
        it occupied before. ``amount`` and ``debit``/``credit`` exclude each
        other.
        """
        if field_name not in FIELDS:
            raise MappingValidationError([f"Unknown field '{field_name}'"])
        if column < 0:
            raise MappingValidationError(["Column indices must not be negative."])

        if field_name == "amount":
            evicted = {"amount", "debit", "credit"}
        elif field_name in ("debit", "credit"):
            evicted = {field_name, "amount"}
        else:
            evicted = {field_name}

        for col, assigned in list(self._columns.items()):
            if assigned in evicted:
                del self._columns[col]
        self._columns[column] = field_name

    def unassign_column(self, column: int) -> None:
        self._columns.pop(column, None)

    def validate(self) -> list[str]:
        return mapping_problems(self.mapping)

    def confirm(self) -> tuple[ColumnMapping, int]:
        """Return the mapping and header row, or raise MappingValidationError.

        A failed confirmation leaves the builder untouched so the caller can
        correct the assignment.
        """
        problems = self.validate()
        if problems:
            raise MappingValidationError(problems)
        return ColumnMapping.from_dict(self.mapping), self.header_row_index
