"""Tests for bank statement readers working on extracted PDF text."""

from datetime import date
from decimal import Decimal

from ledgerly.ingest.layouts import (
    GenericLayout,
    HdfcLayout,
    clean_pdf_description,
    detect_layout,
    parse_pdf_text,
)

HDFC_TEXT = """HDFC BANK LIMITED
Statement of account
Opening Balance: 10,000.00
01/04/2024 NETFLIX SUBSCRIPTION 199.00 Dr 9,801.00
02/04/2024 SALARY ACME CORP 50,000.00 Cr 59,801.00
REF 12345 APRIL PAYROLL
Closing Balance 59,801.00
"""

HDFC_COLUMNAR_TEXT = """HDFC BANK LIMITED
Opening Balance: 10,000.00
01/04/24 NETFLIX 0000123 01/04/24 199.00 9,801.00
02/04/24 SALARY 0000456 02/04/24 50,000.00 59,801.00
"""

SBI_TEXT = """STATE BANK OF INDIA
Account Statement
IFSC SBIN0001234
05-04-2024 NACH DR HDFC MF SIP 5,000.00 Dr 45,000.00 Cr
06-04-2024 SALARY CREDIT 60,000.00 Cr 1,05,000.00 Cr
"""


def test_detect_layout_by_bank_name():
    assert isinstance(detect_layout(HDFC_TEXT), HdfcLayout)
    assert isinstance(detect_layout("STATE BANK OF INDIA\n"), GenericLayout)


def test_hdfc_explicit_direction_and_continuation():
    transactions = HdfcLayout().parse(HDFC_TEXT)

    assert len(transactions) == 2
    netflix, salary = transactions
    assert netflix.amount == Decimal("-199.00")
    assert netflix.type == "expense"
    assert salary.amount == Decimal("50000.00")
    assert salary.type == "income"
    assert salary.description == "SALARY ACME CORP REF 12345 APRIL PAYROLL"


def test_hdfc_opening_balance():
    assert HdfcLayout().opening_balance(HDFC_TEXT) == Decimal("10000.00")
    assert HdfcLayout().opening_balance("no balance here") == Decimal("0")


def test_hdfc_columnar_direction_from_balance():
    """Without Dr/Cr markers the running balance decides the direction."""
    transactions = HdfcLayout().parse(HDFC_COLUMNAR_TEXT)

    assert [t.date for t in transactions] == [date(2024, 4, 1), date(2024, 4, 2)]
    assert [(t.amount, t.type) for t in transactions] == [
        (Decimal("-199.00"), "expense"),
        (Decimal("50000.00"), "income"),
    ]


def test_generic_layout_infers_direction():
    text = "\n".join(
        [
            "STATEMENT",
            "01/04/2024 CASH DEPOSIT 1,000.00 Cr 11,000.00",
            "03/04/2024 GROCERY STORE 500.00 10,500.00",
            "05/04/2024 REFUND 200.00 10,700.00",
            "Page 1 of 1",
        ]
    )

    transactions = GenericLayout().parse(text)

    assert [(t.amount, t.type) for t in transactions] == [
        (Decimal("1000.00"), "income"),
        (Decimal("-500.00"), "expense"),
        (Decimal("200.00"), "income"),
    ]


def test_generic_layout_signed_amounts_without_balance():
    text = "01-Apr-2024 UPI PAYMENT -250.00\n02-Apr-2024 INTEREST 12.50\n"

    transactions = GenericLayout().parse(text)

    assert [t.amount for t in transactions] == [Decimal("-250.00"), Decimal("12.50")]
    assert transactions[0].type == "expense"


def test_clean_pdf_description():
    assert clean_pdf_description("  NEFT*ACME  #1234 ") == "NEFTACME 1234"
    assert len(clean_pdf_description("X" * 500)) == 200


def test_narration_mentioning_hdfc_does_not_select_hdfc_layout():
    assert isinstance(detect_layout(SBI_TEXT), GenericLayout)


def test_hdfc_detected_from_ifsc_in_letterhead():
    text = "Account Statement\nBranch: Andheri East\nIFSC: HDFC0000123\n"

    assert isinstance(detect_layout(text), HdfcLayout)


def test_hdfc_name_below_letterhead_is_ignored():
    lines = ["OTHER BANK"] + [f"line {i}" for i in range(20)] + ["Paid to HDFC BANK credit card"]

    assert isinstance(detect_layout("\n".join(lines)), GenericLayout)


def test_parse_pdf_text_reads_other_bank_statement():
    transactions = parse_pdf_text(SBI_TEXT)

    assert [(t.date, t.amount, t.type) for t in transactions] == [
        (date(2024, 4, 5), Decimal("-5000.00"), "expense"),
        (date(2024, 4, 6), Decimal("60000.00"), "income"),
    ]
    assert transactions[0].description == "NACH DR HDFC MF SIP"


def test_parse_pdf_text_falls_back_to_generic_layout():
    text = "HDFC BANK LTD\nStatement of account\n05-04-2024 UPI ZOMATO 450.00 Dr 9,550.00\n"

    assert HdfcLayout().parse(text) == []
    [txn] = parse_pdf_text(text)

    assert txn.amount == Decimal("-450.00")
    assert txn.description == "UPI ZOMATO"
