"""Bank-specific readers for text extracted from PDF statements.

Each layout turns the full statement text into ``ParsedTransaction`` values.
``detect_layout`` picks the layout for a statement from the bank identity
found in its letterhead, falling back to a generic line reader.
"""

import re
from decimal import Decimal
from typing import Optional

from ledgerly.domain.entities import ParsedTransaction
from ledgerly.logging_setup import get_logger
from ledgerly.utils.amount_parser import parse_amount
from ledgerly.utils.date_parser import parse_statement_date

logger = get_logger(__name__)

# Running balances are printed with two decimals; allow for rounding.
BALANCE_TOLERANCE = Decimal("1.00")
MAX_DESCRIPTION_LENGTH = 200

_LEADING_DATE = re.compile(r"^\d{2}/\d{2}/\d{2,4}")
_BALANCE_LINE = re.compile(r"^(Opening|Closing)\s+Balance", re.IGNORECASE)


def clean_pdf_description(description: str) -> str:
    """Collapse whitespace and drop symbols that PDF extraction tends to garble."""
    text = " ".join(description.split())
    text = re.sub(r"[^\w\s\-./]", "", text)
    return text.strip()[:MAX_DESCRIPTION_LENGTH]


def _is_continuation(line: str) -> bool:
    return (
        not _LEADING_DATE.match(line)
        and not _BALANCE_LINE.match(line)
        and len(line) > 5
    )


class PdfLayout:
    """Base class for a statement layout."""

    name = "base"

    def matches(self, text: str) -> bool:
        raise NotImplementedError

    def parse(self, text: str) -> list[ParsedTransaction]:
        raise NotImplementedError


class _RawLine:
    """A matched statement line whose direction may still be unknown."""

    __slots__ = ("date", "description", "amount", "direction", "balance")

    def __init__(self, date, description, amount, direction, balance):
        self.date = date
        self.description = description
        self.amount = amount
        self.direction = direction
        self.balance = balance


def _infer_direction(previous: Decimal, amount: Decimal, balance: Decimal) -> str:
    """Decide whether ``amount`` moved the running balance up or down."""
    if abs(previous + amount - balance) < BALANCE_TOLERANCE:
        return "income"
    if abs(previous - amount - balance) < BALANCE_TOLERANCE:
        return "expense"
    logger.debug(
        "Balance does not reconcile (previous %s, amount %s, balance %s)",
        previous,
        amount,
        balance,
    )
    return "income" if balance > previous else "expense"


def _resolve(raw_lines: list[_RawLine], opening_balance: Decimal) -> list[ParsedTransaction]:
    """Fill in unknown directions from the running balance and build transactions."""
    transactions = []
    current = opening_balance
    for raw in raw_lines:
        direction = raw.direction
        if direction is None:
            if raw.balance is None:
                direction = "expense"
            else:
                direction = _infer_direction(current, raw.amount, raw.balance)
        if raw.balance is not None:
            current = raw.balance

        if raw.amount == 0:
            continue
        signed = raw.amount if direction == "income" else -raw.amount
        transactions.append(
            ParsedTransaction(
                date=raw.date,
                description=clean_pdf_description(raw.description),
                amount=signed,
                type=direction,
            )
        )
    transactions.sort(key=lambda t: t.date)
    return transactions


def _find_amount(pattern: re.Pattern, text: str) -> Optional[Decimal]:
    match = pattern.search(text)
    if not match:
        return None
    try:
        return parse_amount(match.group(1))
    except ValueError:
        return None


class HdfcLayout(PdfLayout):
    """HDFC Bank account statements.

    Two line shapes appear in the wild:

    - ``01/04/2024 NETFLIX 199.00 Dr 10,000.00`` with an explicit direction
    - ``01/04/24 NETFLIX 0000123 01/04/24 199.00 9,801.00`` (columnar) where
      the direction follows from the running balance

    Narrations that wrap onto following lines are appended to the previous
    transaction.
    """

    name = "hdfc"

    STANDARD_LINE = re.compile(
        r"(\d{2}/\d{2}/\d{4})\s+(.+?)\s+([0-9,]+\.?\d*)\s+(Dr|Cr)\s+([0-9,]+\.?\d*)"
    )
    COLUMNAR_LINE = re.compile(
        r"^(\d{2}/\d{2}/\d{2,4})\s+(.+?)\s+(\d{2}/\d{2}/\d{2,4})\s+([0-9,]+\.\d{2})\s+([0-9,]+\.\d{2})"
    )
    OPENING_BALANCE = re.compile(r"Opening\s+Balance[:\s]+(?:Rs\.?\s*)?([0-9,]+\.?\d*)", re.IGNORECASE)
    # Opening Bal, Dr Count, Cr Count, Debits, Credits, Closing Bal
    SUMMARY_TABLE = re.compile(
        r"([0-9,]+\.\d{2})\s+\d+\s+\d+\s+[0-9,]+\.\d{2}\s+[0-9,]+\.\d{2}\s+[0-9,]+\.\d{2}"
    )

    # Bank identity lives in the letterhead. Narrations on other banks'
    # statements ("HDFC MF SIP", a NEFT payee IFSC) must not count.
    LETTERHEAD_LINES = 15
    BANK_NAME = re.compile(r"\bHDFC\s+BANK\b", re.IGNORECASE)
    IFSC = re.compile(r"\bHDFC0[0-9A-Z]{6}\b")

    def matches(self, text: str) -> bool:
        lines = [line for line in text.splitlines() if line.strip()]
        letterhead = "\n".join(lines[: self.LETTERHEAD_LINES])
        return bool(self.BANK_NAME.search(letterhead) or self.IFSC.search(letterhead))

    def opening_balance(self, text: str) -> Decimal:
        balance = _find_amount(self.OPENING_BALANCE, text)
        if not balance:
            balance = _find_amount(self.SUMMARY_TABLE, text)
        return balance or Decimal("0")

    def parse(self, text: str) -> list[ParsedTransaction]:
        raw_lines: list[_RawLine] = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue

            raw = self._parse_line(line)
            if raw is not None:
                raw_lines.append(raw)
                continue

            if _LEADING_DATE.match(line):
                logger.debug("Dated line did not match a transaction: %s", line)
            if raw_lines and _is_continuation(line):
                raw_lines[-1].description += " " + line

        logger.debug("HDFC layout matched %d lines", len(raw_lines))
        return _resolve(raw_lines, self.opening_balance(text))

    def _parse_line(self, line: str) -> Optional[_RawLine]:
        match = self.STANDARD_LINE.search(line)
        if match:
            day, description, amount, marker, balance = match.groups()
            direction = "income" if marker.lower() == "cr" else "expense"
            return self._build(day, description, amount, direction, balance)

        match = self.COLUMNAR_LINE.match(line)
        if match:
            day, description, _, amount, balance = match.groups()
            return self._build(day, description, amount, None, balance)
        return None

    @staticmethod
    def _build(day, description, amount, direction, balance) -> Optional[_RawLine]:
        try:
            return _RawLine(
                date=parse_statement_date(day),
                description=description,
                amount=abs(parse_amount(amount)),
                direction=direction,
                balance=parse_amount(balance),
            )
        except ValueError as e:
            logger.debug("Skipping unreadable line values (%s)", e)
            return None


class GenericLayout(PdfLayout):
    """Fallback reader for statements from banks without a dedicated layout.

    Reads lines that start with a date and end in an amount, optionally
    followed by a running balance. ``Dr``/``Cr`` suffixes and minus signs
    decide the direction; otherwise the balance does.
    """

    name = "generic"

    LINE = re.compile(
        r"^(?P<date>\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}|\d{1,2}[\s\-][A-Za-z]{3}[\s\-]\d{2,4}|\d{4}-\d{2}-\d{2})"
        r"\s+(?P<description>.+?)"
        r"\s+(?P<amount>\(?-?[0-9,]+\.\d{2}\)?(?:\s*(?:Dr|Cr))?)"
        r"(?:\s+(?P<balance>-?[0-9,]+\.\d{2}(?:\s*(?:Dr|Cr))?))?$",
        re.IGNORECASE,
    )

    def matches(self, text: str) -> bool:
        return True

    def parse(self, text: str) -> list[ParsedTransaction]:
        raw_lines: list[_RawLine] = []
        opening = None
        for line in text.splitlines():
            line = " ".join(line.split())
            if not line:
                continue
            match = self.LINE.match(line)
            if not match:
                continue
            try:
                raw = self._build(match)
            except ValueError as e:
                logger.debug("Skipping line %r (%s)", line, e)
                continue
            if not raw_lines and raw.balance is not None and raw.direction is not None:
                opening = raw.balance - (raw.amount if raw.direction == "income" else -raw.amount)
            raw_lines.append(raw)

        logger.debug("Generic layout matched %d lines", len(raw_lines))
        return _resolve(raw_lines, opening or Decimal("0"))

    @staticmethod
    def _build(match: re.Match) -> _RawLine:
        amount_text = match.group("amount")
        amount = parse_amount(amount_text)
        explicit = amount < 0 or re.search(r"(?i)(dr|cr)$", amount_text) is not None
        if explicit:
            direction = "expense" if amount < 0 else "income"
        else:
            direction = None

        balance_text = match.group("balance")
        balance = parse_amount(balance_text) if balance_text else None
        if direction is None and balance is None:
            direction = "income" if amount > 0 else "expense"

        return _RawLine(
            date=parse_statement_date(match.group("date")),
            description=match.group("description"),
            amount=abs(amount),
            direction=direction,
            balance=balance,
        )


LAYOUTS: tuple[PdfLayout, ...] = (HdfcLayout(), GenericLayout())


def detect_layout(text: str) -> PdfLayout:
    """Return the first layout that recognises the statement text."""
    for layout in LAYOUTS:
        if layout.matches(text):
            logger.debug("Using %s PDF layout", layout.name)
            return layout
    return LAYOUTS[-1]


def parse_pdf_text(text: str) -> list[ParsedTransaction]:
    """Read transactions from statement text with the detected layout.

    A bank layout that recognises the statement but reads no lines from it
    hands the text to the generic reader instead.
    """
    layout = detect_layout(text)
    transactions = layout.parse(text)
    if not transactions and not isinstance(layout, GenericLayout):
        logger.info("%s layout found no transactions, trying generic layout", layout.name)
        transactions = GenericLayout().parse(text)
    return transactions
