"""Merchant name normalization for bank narrations."""

import re

_UPI_PREFIX = re.compile(r"^UPI[-\s/:]*", re.IGNORECASE)
_REFERENCE_TOKEN = re.compile(r"\b[A-Za-z]*\d{4,}[A-Za-z0-9]*\b")


def extract_merchant(description: str) -> str:
    """Strip UPI prefixes and reference numbers from a narration.

    "UPI-NETFLIX-netflix@icici-123456789012" -> "NETFLIX NETFLIX@ICICI"
    """
    if not description:
        return ""

    normalized = _UPI_PREFIX.sub("", description.upper())
    normalized = _REFERENCE_TOKEN.sub(" ", normalized)
    normalized = re.sub(r"[-_/.:]", " ", normalized)
    normalized = " ".join(normalized.split())
    return normalized or description


def merchant_key(description: str) -> str:
    """Return a lower-case, digit-free merchant key for comparisons."""
    text = extract_merchant(description or "").lower()
    text = _REFERENCE_TOKEN.sub(" ", text)
    text = re.sub(r"[^a-z\s]", " ", text)
    return " ".join(token for token in text.split() if len(token) > 1)


def clean_description(description: str) -> str:
    """Lower-case a description and drop punctuation for equality checks."""
    text = re.sub(r"[^\w\s]", "", (description or "").lower())
    return " ".join(text.split())
