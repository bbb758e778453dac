"""Tests for statement date, amount and merchant parsing."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from ledgerly.utils.amount_parser import parse_amount, parse_optional_amount
from ledgerly.utils.date_parser import parse_date, parse_statement_date
from ledgerly.utils.merchant import clean_description, extract_merchant, merchant_key


@pytest.mark.parametrize(
    "text, expected",
    [
        ("01/04/2024", date(2024, 4, 1)),
        ("01-04-2024", date(2024, 4, 1)),
        ("01.04.2024", date(2024, 4, 1)),
        ("01/04/24", date(2024, 4, 1)),
        ("2024-04-01", date(2024, 4, 1)),
        ("2024-04-01 00:00:00", date(2024, 4, 1)),
        ("01 Apr 2024", date(2024, 4, 1)),
        ("01-Apr-24", date(2024, 4, 1)),
    ],
)
def test_parse_statement_date_formats(text, expected):
    """Statement dates are read day-first in the common bank formats."""
    assert parse_statement_date(text) == expected


def test_parse_statement_date_two_digit_year_pivot():
    assert parse_statement_date("15/06/99") == date(1999, 6, 15)


@pytest.mark.parametrize("text", ["", "   ", "Opening Balance", "199.00", "12345678"])
def test_parse_statement_date_rejects_non_dates(text):
    with pytest.raises(ValueError):
        parse_statement_date(text)


def test_parse_date_relative():
    assert parse_date("today") == date.today()
    assert parse_date("yesterday") == date.today() - timedelta(days=1)
    assert parse_date("2024-01-15") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("199.00", Decimal("199.00")),
        ("-199.00", Decimal("-199.00")),
        ("1,23,456.78", Decimal("123456.78")),
        ("₹1,499.00", Decimal("1499.00")),
        ("Rs. 500", Decimal("500")),
        ("(250.00)", Decimal("-250.00")),
        ("199.00 Dr", Decimal("-199.00")),
        ("1,000.00Cr", Decimal("1000.00")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "NaN", "Infinity"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_parse_optional_amount_blank_cells():
    assert parse_optional_amount("") is None
    assert parse_optional_amount(None) is None
    assert parse_optional_amount("-") is None
    assert parse_optional_amount("45.10") == Decimal("45.10")


def test_extract_merchant_strips_upi_noise():
    merchant = extract_merchant("UPI-NETFLIX-netflix@icici-409112345678")
    assert merchant.startswith("NETFLIX")
    assert "409112345678" not in merchant


def test_merchant_key_ignores_references():
    assert merchant_key("UPI-SWIGGY-409512345678") == merchant_key("UPI/SWIGGY/409599999999")


def test_clean_description():
    assert clean_description("  NETFLIX.COM  Subscription! ") == "netflixcom subscription"
