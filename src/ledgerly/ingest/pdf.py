"""PDF statement text extraction with password support."""

import io
from typing import Optional

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect

from ledgerly.domain.errors import (
    IncorrectPasswordError,
    PasswordRequiredError,
    StatementReadError,
)
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)


def _is_password_failure(error: BaseException) -> bool:
    """Walk the exception chain looking for pdfminer's password error.

    pdfplumber wraps pdfminer failures, so the original error may sit in
    ``args``, ``__cause__`` or ``__context__``.
    """
    seen = set()
    pending = [error]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, PDFPasswordIncorrect):
            return True
        pending.append(current.__cause__)
        pending.append(current.__context__)
        pending.extend(arg for arg in getattr(current, "args", ()) if isinstance(arg, BaseException))
    return False


def extract_pdf_text(content: bytes, password: Optional[str] = None, file_name: Optional[str] = None) -> str:
    """Extract the text of every page, top to bottom.

    Args:
        content: PDF file bytes
        password: Optional decryption password
        file_name: Used in error messages only

    Returns:
        Page texts joined by newlines

    Raises:
        PasswordRequiredError: If the document is encrypted and no password was given
        IncorrectPasswordError: If a password was given but did not open the document
        StatementReadError: If the document cannot be read for any other reason
    """
    try:
        with pdfplumber.open(io.BytesIO(content), password=password or "") as pdf:
            logger.debug("PDF opened, %d pages", len(pdf.pages))
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        if _is_password_failure(e):
            if password:
                raise IncorrectPasswordError(file_name) from e
            raise PasswordRequiredError(file_name) from e
        raise StatementReadError(f"Failed to extract text from PDF: {e}") from e

    return "\n".join(pages)
