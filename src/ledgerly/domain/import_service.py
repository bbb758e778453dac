"""Statement import orchestration.

``StatementImportService`` runs one upload end to end: duplicate-file check,
parsing, rule annotation and saving. Recoverable conditions (a table without
a recognizable header, a locked PDF) come back as outcome values so the
caller can prompt the user and call again.
"""

import dataclasses
import hashlib
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional, Union

from ledgerly.database.base import Database
from ledgerly.domain.categorization import suggest_category
from ledgerly.domain.column_mapping import ColumnMapping, RawTable
from ledgerly.domain.entities import DuplicateDetectionSettings, FileFingerprint, ParsedTransaction
from ledgerly.domain.errors import (
    FileTooLargeError,
    HeaderDetectionError,
    IncorrectPasswordError,
    NotFoundError,
    PasswordRequiredError,
    StatementImportError,
    account_not_found,
)
from ledgerly.domain.import_guard import DuplicateCandidate, ImportGuard
from ledgerly.domain.sip_matching import match_sip_rule
from ledgerly.domain.statement_parser import StatementFile, StatementParser
from ledgerly.logging_setup import get_logger
from ledgerly.utils.merchant import clean_description

logger = get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class Parsed:
    """The file was parsed; transactions are ready to annotate and save."""

    transactions: list[ParsedTransaction]
    fingerprint: FileFingerprint


@dataclass(frozen=True)
class NeedsMapping:
    """No header row was detected; the user must map columns by hand."""

    raw_table: RawTable
    file_name: str


@dataclass(frozen=True)
class NeedsPassword:
    """The PDF is encrypted. ``incorrect`` is set when a supplied password failed."""

    file_name: str
    incorrect: bool = False


@dataclass(frozen=True)
class Failed:
    """The import cannot continue; ``reason`` is shown to the user."""

    reason: str


ImportOutcome = Union[Parsed, NeedsMapping, NeedsPassword, Failed]


class ImportSession:
    """Tracks the latest import started from one upload entry point.

    Every ``begin`` supersedes the previous one; an outcome completed with a
    stale token is discarded so a slow earlier file can never overwrite the
    result of a later one.
    """

    def __init__(self):
        self._generation = 0
        self.outcome: Optional[ImportOutcome] = None

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new import and return its token."""
        self._generation += 1
        self.outcome = None
        return self._generation

    def complete(self, token: int, outcome: ImportOutcome) -> bool:
        """Store ``outcome`` if ``token`` is still current.

        Returns:
            True if the outcome was accepted, False if it was discarded
        """
        if token != self._generation:
            logger.debug("Discarding outcome of superseded import %d (current %d)", token, self._generation)
            return False
        self.outcome = outcome
        return True


class StatementImportService:
    """Service for importing bank statements into an account."""

    def __init__(self, db: Database, parser: Optional[StatementParser] = None):
        """Initialize statement import service.

        Args:
            db: Database instance
            parser: Statement parser (a default one when omitted)
        """
        self.db = db
        self.parser = parser or StatementParser()
        self.guard = ImportGuard(db)

    def _check_size(self, file: StatementFile) -> None:
        if file.size > MAX_UPLOAD_BYTES:
            raise FileTooLargeError(file.name, file.size, MAX_UPLOAD_BYTES)

    def process_file(
        self,
        file: StatementFile,
        settings: DuplicateDetectionSettings,
        password: Optional[str] = None,
    ) -> ImportOutcome:
        """Check and parse an uploaded statement.

        Args:
            file: Uploaded statement
            settings: Duplicate detection preferences
            password: Password for encrypted PDFs

        Returns:
            Parsed, NeedsMapping, NeedsPassword or Failed
        """
        try:
            self._check_size(file)
            self.guard.check(file.fingerprint, settings)
            transactions = self.parser.parse(file, password=password)
        except HeaderDetectionError as e:
            logger.info("No header row detected in %s, manual mapping needed", file.name)
            return NeedsMapping(raw_table=e.raw_table, file_name=file.name)
        except PasswordRequiredError:
            return NeedsPassword(file_name=file.name, incorrect=False)
        except IncorrectPasswordError:
            return NeedsPassword(file_name=file.name, incorrect=True)
        except StatementImportError as e:
            return Failed(str(e))

        return Parsed(transactions=transactions, fingerprint=file.fingerprint)

    def load_table(self, file: StatementFile, settings: DuplicateDetectionSettings) -> RawTable:
        """Check an upload and decode its rows for manual mapping.

        Raises:
            FileTooLargeError: If the file exceeds the upload limit
            DuplicateFileError: If the file was imported before
            UnsupportedFormatError: If the file is not CSV or a spreadsheet
            StatementReadError: If the file cannot be decoded
        """
        self._check_size(file)
        self.guard.check(file.fingerprint, settings)
        return self.parser.read_table(file)

    def process_with_mapping(
        self,
        file: StatementFile,
        raw_table: RawTable,
        mapping: Union[ColumnMapping, dict[str, int]],
        header_row_index: int,
    ) -> ImportOutcome:
        """Parse a table with a user-confirmed mapping.

        Raises:
            MappingValidationError: If the mapping is incomplete
        """
        try:
            transactions = self.parser.parse_with_mapping(
                raw_table, mapping, header_row_index, file_name=file.name
            )
        except StatementImportError as e:
            return Failed(str(e))
        return Parsed(transactions=transactions, fingerprint=file.fingerprint)

    def annotate(self, transactions: list[ParsedTransaction]) -> list[ParsedTransaction]:
        """Apply category rules, then SIP rules, to parsed transactions.

        Nothing is written; rule usage is counted by ``save`` for the rows
        it stores.

        Returns:
            New annotated transactions, in the same order
        """
        category_rules = self.db.list_category_rules()
        sip_rules = self.db.list_sip_rules()

        annotated = []
        for transaction in transactions:
            suggestion = suggest_category(transaction.description, category_rules, transaction.type)
            rule = suggestion.applied_rule
            transaction = dataclasses.replace(
                transaction,
                category_id=suggestion.category_id,
                applied_rule_id=rule.id if rule else None,
                type=suggestion.transaction_type or transaction.type,
            )
            sip_rule = match_sip_rule(transaction, sip_rules)
            if sip_rule is not None:
                transaction = dataclasses.replace(transaction, sip_rule_id=sip_rule.id)
            annotated.append(transaction)

        logger.info(
            "Annotated %d transactions (%d by category rules, %d by SIP rules)",
            len(annotated),
            sum(1 for t in annotated if t.applied_rule_id is not None),
            sum(1 for t in annotated if t.sip_rule_id is not None),
        )
        return annotated

    def find_possible_duplicates(
        self, account_id: int, transactions: list[ParsedTransaction]
    ) -> list[DuplicateCandidate]:
        """Near duplicates among the rows ``save`` would store.

        Rows already stored under the same ``unique_id`` are left out; ``save``
        skips them anyway.
        """
        fresh = [
            (position, transaction)
            for position, unique_id, transaction in self._with_unique_ids(transactions)
            if not self.db.transaction_exists(account_id, unique_id)
        ]
        return self.guard.find_near_duplicates(account_id, fresh)

    def save(
        self,
        account_id: int,
        transactions: list[ParsedTransaction],
        fingerprint: Optional[FileFingerprint] = None,
        check_near_duplicates: bool = True,
        when: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Store parsed transactions in an account.

        Transactions already stored for the account (same generated
        ``unique_id``) are skipped. Usage counters of the category and SIP
        rules are bumped once per stored row. The file fingerprint is
        recorded once the save went through.

        Args:
            account_id: Target account ID
            transactions: Annotated transactions
            fingerprint: File fingerprint to record
            check_near_duplicates: Look for stored or repeated rows that
                resemble the ones being imported
            when: Timestamp for the rules' ``last_used`` (now when omitted)

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - skipped: number of transactions skipped (duplicates)
            - errors: list of error messages
            - possible_duplicates: DuplicateCandidate list for imported rows

        Raises:
            NotFoundError: If the account doesn't exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        imported = 0
        skipped = 0
        errors = []
        pending = []

        for position, unique_id, transaction in self._with_unique_ids(transactions):
            try:
                exists = self.db.transaction_exists(account_id, unique_id)
            except Exception as e:
                errors.append(f"Transaction {position}: {str(e)}")
                continue
            if exists:
                skipped += 1
            else:
                pending.append((position, unique_id, transaction))

        possible_duplicates = []
        if check_near_duplicates:
            possible_duplicates = self.guard.find_near_duplicates(
                account_id, [(position, transaction) for position, _, transaction in pending]
            )

        category_rule_hits: Counter = Counter()
        sip_rule_hits: Counter = Counter()
        for position, unique_id, transaction in pending:
            try:
                self.db.create_transaction(
                    unique_id=unique_id,
                    account_id=account_id,
                    date=transaction.date,
                    amount=transaction.amount,
                    description=transaction.description,
                    type=transaction.type,
                    category_id=transaction.category_id,
                    applied_rule_id=transaction.applied_rule_id,
                    sip_rule_id=transaction.sip_rule_id,
                    tags=transaction.tags,
                )
            except Exception as e:
                errors.append(f"Transaction {position}: {str(e)}")
                continue
            imported += 1
            if transaction.applied_rule_id is not None:
                category_rule_hits[transaction.applied_rule_id] += 1
            if transaction.sip_rule_id is not None:
                sip_rule_hits[transaction.sip_rule_id] += 1

        self._record_rule_usage(category_rule_hits, sip_rule_hits, when or datetime.now(UTC))

        if fingerprint is not None and (imported or skipped or not errors):
            self.guard.record(fingerprint, transaction_count=imported)

        logger.info("Saved %d transactions to account %s (%d skipped)", imported, account_id, skipped)
        return {
            "imported": imported,
            "skipped": skipped,
            "errors": errors,
            "possible_duplicates": possible_duplicates,
        }

    def _record_rule_usage(self, category_rule_hits: Counter, sip_rule_hits: Counter, when: datetime) -> None:
        # A rule deleted since annotation has nothing left to count.
        for rule_id, hits in category_rule_hits.items():
            rule = self.db.get_category_rule(rule_id)
            if rule is not None:
                self.db.update_category_rule(rule_id, match_count=rule.match_count + hits, last_used=when)
        for rule_id, hits in sip_rule_hits.items():
            rule = self.db.get_sip_rule(rule_id)
            if rule is not None:
                self.db.update_sip_rule(rule_id, match_count=rule.match_count + hits, last_used=when)

    @classmethod
    def _with_unique_ids(cls, transactions: list[ParsedTransaction]):
        """Yield ``(position, unique_id, transaction)`` with 1-based positions."""
        occurrences: Counter = Counter()
        for position, transaction in enumerate(transactions, start=1):
            key = cls._dedup_key(transaction)
            yield position, cls._generate_unique_id(transaction, occurrences[key]), transaction
            occurrences[key] += 1

    @staticmethod
    def _dedup_key(transaction: ParsedTransaction) -> tuple:
        amount = Decimal(transaction.amount).quantize(Decimal("0.01"))
        return transaction.date.isoformat(), str(amount), clean_description(transaction.description)

    @classmethod
    def _generate_unique_id(cls, transaction: ParsedTransaction, occurrence: int = 0) -> str:
        """Derive a stable ID from date, amount, description and repeat count.

        ``occurrence`` separates identical rows within one statement (two
        equal coffee purchases on the same day) while keeping the IDs equal
        when the same statement is imported again.
        """
        day, amount, description = cls._dedup_key(transaction)
        payload = f"{day}|{amount}|{description}|{occurrence}"
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:32]
