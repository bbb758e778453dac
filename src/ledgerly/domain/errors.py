"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class MappingValidationError(ValidationError):
    """A column mapping is missing a required field assignment."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class StatementImportError(DomainError):
    """Base class for failures while importing a statement file."""


class UnsupportedFormatError(StatementImportError):
    """File extension is not one of the supported statement formats."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(unsupported_format(file_name))


class NoTransactionsFoundError(StatementImportError):
    """Decoding succeeded but no usable transaction rows were found."""

    def __init__(self, file_name: Optional[str] = None):
        self.file_name = file_name
        super().__init__(no_transactions_found(file_name))


class HeaderDetectionError(StatementImportError):
    """No header row could be located; carries the decoded table for remapping."""

    def __init__(self, raw_table: list[list[str]]):
        self.raw_table = raw_table
        super().__init__(
            "Could not detect the transaction header row. "
            "Select the header row and map the columns manually."
        )


class PasswordRequiredError(StatementImportError):
    """Document is encrypted and no password was supplied."""

    def __init__(self, file_name: Optional[str] = None):
        self.file_name = file_name
        super().__init__("This file is password protected. Please supply the password.")


class IncorrectPasswordError(StatementImportError):
    """A password was supplied but the document could still not be opened."""

    def __init__(self, file_name: Optional[str] = None):
        self.file_name = file_name
        super().__init__("Incorrect password")


class DuplicateFileError(StatementImportError):
    """The same file (by fingerprint) has already been imported."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(duplicate_file(file_name))


class StatementReadError(StatementImportError):
    """The file could not be decoded at all."""


class FileTooLargeError(StatementImportError):
    """The file exceeds the accepted upload size."""

    def __init__(self, file_name: str, size: int, limit: int):
        self.file_name = file_name
        self.size = size
        self.limit = limit
        super().__init__(
            f"File '{file_name}' is {size} bytes; the maximum accepted size is {limit} bytes"
        )


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: str) -> str:
    """Return message for missing category by ID."""
    return f"Category '{category_id}' not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing category rule."""
    return f"Category rule {rule_id} not found"


def sip_rule_not_found(rule_id: int) -> str:
    """Return message for missing SIP rule."""
    return f"SIP rule {rule_id} not found"


def recurring_not_found(recurring_id: int) -> str:
    """Return message for missing recurring transaction."""
    return f"Recurring transaction {recurring_id} not found"


def unsupported_format(file_name: str) -> str:
    """Return message for an unrecognised statement file."""
    return (
        f"Unsupported file format for '{file_name}'. "
        "Please upload Excel (.xlsx, .xls), CSV, or PDF files."
    )


def no_transactions_found(file_name: Optional[str] = None) -> str:
    """Return message when a statement yields no rows."""
    where = f" in '{file_name}'" if file_name else " in the file"
    return f"No transactions found{where}. Please check the file format and content."


def duplicate_file(file_name: str) -> str:
    """Return message when a file fingerprint was seen before."""
    return (
        f'This file "{file_name}" has already been imported. '
        "Please select a different file or check your transaction history."
    )
