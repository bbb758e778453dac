"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Statement formats, tried in order. Bank statements are day-first.
STATEMENT_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d-%b-%Y",
    "%d %B %Y",
    "%d-%B-%Y",
    "%d %b, %Y",
)

_TWO_DIGIT_YEAR = re.compile(r"^(\d{1,2})([/\-.])(\d{1,2})\2(\d{2})$")
_ALPHA_MONTH_TWO_DIGIT_YEAR = re.compile(r"^(\d{1,2})[\s\-]([A-Za-z]{3,9})[\s\-](\d{2})$")


def _expand_year(two_digits: str) -> int:
    year = int(two_digits)
    return 2000 + year if year < 50 else 1900 + year


def parse_statement_date(date_str: str) -> date:
    """Parse a date cell from a bank statement.

    Handles the formats Indian bank exports commonly use:
    - "01/04/2024", "01-04-2024", "01.04.2024"
    - "01/04/24" (two-digit years below 50 map to 20xx, otherwise 19xx)
    - "2024-04-01" and ISO timestamps from spreadsheet cells
    - "01 Apr 2024", "01-Apr-24"

    Falls back to dateutil with ``dayfirst=True``.

    Args:
        date_str: Raw cell text

    Returns:
        Date object

    Raises:
        ValueError: If the text is not a date
    """
    if date_str is None or not str(date_str).strip():
        raise ValueError("Empty date string")

    text = " ".join(str(date_str).split())

    match = _TWO_DIGIT_YEAR.match(text)
    if match:
        day, _, month, year = match.groups()
        return date(_expand_year(year), int(month), int(day))

    match = _ALPHA_MONTH_TWO_DIGIT_YEAR.match(text)
    if match:
        day, month_name, year = match.groups()
        month = datetime.strptime(month_name[:3].title(), "%b").month
        return date(_expand_year(year), month, int(day))

    for fmt in STATEMENT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Reject bare numbers (amounts, reference numbers) that dateutil would accept
    if re.fullmatch(r"[\d.,\s]+", text):
        raise ValueError(f"Could not parse date '{text}'")

    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{text}': {e}")


def parse_date(date_str: str) -> date:
    """Parse a user-supplied date string into a date object.

    Supports absolute dates ("2024-01-15", "15/01/2024") and relative ones:
    "today", "yesterday", "tomorrow", "next month" and "last month"
    (first day of that month).

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this month": today.replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    return parse_statement_date(date_str)
