"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_CURRENCY = re.compile(r"(?i)(₹|rs\.?|inr|\$|€|£|¥)")
_DR_CR_SUFFIX = re.compile(r"(?i)\s*(dr|cr)\.?$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45", "-123.45"
    - "₹1,23,456.78", "Rs. 199.00", "INR 500"
    - "(123.45)" (negative in parentheses)
    - "199.00 Dr" (negative) and "199.00 Cr" (positive)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    is_negative = False
    suffix = _DR_CR_SUFFIX.search(amount_str)
    if suffix:
        is_negative = suffix.group(1).lower() == "dr"
        amount_str = amount_str[: suffix.start()].strip()

    # Handle parentheses notation (negative)
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = _CURRENCY.sub("", amount_str)
    amount_str = amount_str.replace(",", "").replace(" ", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -abs(amount) if is_negative else amount


def parse_optional_amount(amount_str: str | None) -> Decimal | None:
    """Parse an amount cell that may legitimately be blank or a dash.

    Returns:
        Decimal amount, or None for blank cells

    Raises:
        ValueError: If the cell holds text that is not an amount
    """
    if amount_str is None:
        return None
    text = str(amount_str).strip()
    if text in ("", "-", "--", "nan", "NaN", "None"):
        return None
    return parse_amount(text)
