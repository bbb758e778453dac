"""Utility functions for ledgerly."""

from ledgerly.utils.date_parser import parse_date, parse_statement_date
from ledgerly.utils.amount_parser import parse_amount, parse_optional_amount
from ledgerly.utils.merchant import clean_description, merchant_key

__all__ = [
    "parse_date",
    "parse_statement_date",
    "parse_amount",
    "parse_optional_amount",
    "clean_description",
    "merchant_key",
]
