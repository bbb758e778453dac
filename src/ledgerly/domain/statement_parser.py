"""Statement parsing: turn an uploaded file into normalized transactions."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ledgerly.domain.column_mapping import ColumnMapping, RawTable, detect_header
from ledgerly.domain.entities import FileFingerprint, ParsedTransaction
from ledgerly.domain.errors import (
    MappingValidationError,
    NoTransactionsFoundError,
    UnsupportedFormatError,
)
from ledgerly.ingest.layouts import parse_pdf_text
from ledgerly.ingest.pdf import extract_pdf_text
from ledgerly.ingest.tabular import read_csv_table, read_excel_table
from ledgerly.logging_setup import get_logger
from ledgerly.utils.amount_parser import parse_amount, parse_optional_amount
from ledgerly.utils.date_parser import parse_statement_date

logger = get_logger(__name__)

TABULAR_EXTENSIONS = (".csv", ".xlsx", ".xls")
SUPPORTED_EXTENSIONS = TABULAR_EXTENSIONS + (".pdf",)


@dataclass(frozen=True)
class StatementFile:
    """An uploaded statement: name, raw bytes and file metadata."""

    name: str
    content: bytes
    size: int
    last_modified: float

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "StatementFile":
        """Read a statement from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Statement file not found: {path}")
        stat = file_path.stat()
        return cls(
            name=file_path.name,
            content=file_path.read_bytes(),
            size=stat.st_size,
            last_modified=stat.st_mtime,
        )

    @classmethod
    def from_bytes(cls, name: str, content: bytes, last_modified: Optional[float] = None) -> "StatementFile":
        if last_modified is None:
            last_modified = datetime.now().timestamp()
        return cls(name=name, content=content, size=len(content), last_modified=last_modified)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @property
    def fingerprint(self) -> FileFingerprint:
        return FileFingerprint(file_name=self.name, size=self.size, last_modified=self.last_modified)

    @property
    def is_tabular(self) -> bool:
        return self.extension in TABULAR_EXTENSIONS


def _cell(row: list[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else str(value).strip()


def interpret_row(row: list[str], mapping: ColumnMapping) -> Optional[ParsedTransaction]:
    """Interpret one data row, or return None if it is not a transaction.

    Rows without a parseable date or without a non-zero amount are rejected.
    With debit/credit columns the amount is ``credit - debit`` and the row
    is income only when the credit is positive; with a single amount column
    the sign decides.
    """
    try:
        row_date = parse_statement_date(_cell(row, mapping.date))
    except ValueError:
        return None

    description = " ".join(_cell(row, mapping.description).split())

    try:
        if mapping.uses_debit_credit:
            debit = parse_optional_amount(_cell(row, mapping.debit))
            credit = parse_optional_amount(_cell(row, mapping.credit))
            if debit is None and credit is None:
                return None
            credit_value = abs(credit) if credit is not None else 0
            debit_value = abs(debit) if debit is not None else 0
            amount = credit_value - debit_value
            transaction_type = "income" if credit_value > 0 else "expense"
        else:
            amount = parse_amount(_cell(row, mapping.amount))
            transaction_type = "expense" if amount < 0 else "income"
    except ValueError:
        return None

    if amount == 0:
        return None

    return ParsedTransaction(
        date=row_date,
        description=description,
        amount=amount,
        type=transaction_type,
    )


class StatementParser:
    """Parser for CSV, spreadsheet and PDF bank statements."""

    def read_table(self, file: StatementFile) -> RawTable:
        """Decode a tabular statement into rows of string cells.

        Raises:
            UnsupportedFormatError: If the file is not CSV or a spreadsheet
            StatementReadError: If the file cannot be decoded
        """
        if file.extension == ".csv":
            return read_csv_table(file.content)
        if file.extension in (".xlsx", ".xls"):
            return read_excel_table(file.content, file.extension)
        raise UnsupportedFormatError(file.name)

    def parse(self, file: StatementFile, password: Optional[str] = None) -> list[ParsedTransaction]:
        """Parse a statement file into transactions.

        Args:
            file: Statement to parse
            password: Password for encrypted PDFs

        Returns:
            List of parsed transactions, in statement order

        Raises:
            UnsupportedFormatError: If the extension is not supported
            HeaderDetectionError: If no header row is found (carries the raw table)
            PasswordRequiredError: If the PDF is encrypted and no password was given
            IncorrectPasswordError: If the given PDF password is wrong
            StatementReadError: If the file cannot be decoded
            NoTransactionsFoundError: If no valid transaction rows remain
        """
        if file.extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(file.name)

        if file.extension == ".pdf":
            text = extract_pdf_text(file.content, password=password, file_name=file.name)
            transactions = parse_pdf_text(text)
            if not transactions:
                raise NoTransactionsFoundError(file.name)
            logger.info("Parsed %d transactions from %s", len(transactions), file.name)
            return transactions

        raw_table = self.read_table(file)
        header_row_index, mapping = detect_header(raw_table)
        return self.parse_with_mapping(raw_table, mapping, header_row_index, file_name=file.name)

    def parse_with_mapping(
        self,
        raw_table: RawTable,
        mapping: Union[ColumnMapping, dict[str, int]],
        header_row_index: int,
        file_name: Optional[str] = None,
    ) -> list[ParsedTransaction]:
        """Interpret the rows below ``header_row_index`` using an explicit mapping.

        Raises:
            MappingValidationError: If the mapping or header row is invalid
            NoTransactionsFoundError: If no valid transaction rows remain
        """
        if not isinstance(mapping, ColumnMapping):
            mapping = ColumnMapping.from_dict(mapping)
        if header_row_index < 0 or header_row_index >= len(raw_table):
            raise MappingValidationError([f"Header row {header_row_index} is outside the table"])

        transactions = []
        for row_number, row in enumerate(raw_table[header_row_index + 1 :], start=header_row_index + 1):
            transaction = interpret_row(row, mapping)
            if transaction is None:
                logger.debug("Dropped row %d: %s", row_number, row)
                continue
            transactions.append(transaction)

        if not transactions:
            raise NoTransactionsFoundError(file_name)
        logger.info("Parsed %d transactions from %s", len(transactions), file_name or "table")
        return transactions
