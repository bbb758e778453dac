"""Decoders that turn CSV and spreadsheet bytes into a raw table of strings."""

import csv
import io
import math
from datetime import date, datetime

import pandas as pd

from ledgerly.domain.errors import StatementReadError
from ledgerly.logging_setup import get_logger

logger = get_logger(__name__)

RawTable = list[list[str]]

_CSV_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


def _decode_text(content: bytes) -> str:
    for encoding in _CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise StatementReadError("Could not decode CSV file text")


def read_csv_table(content: bytes) -> RawTable:
    """Decode CSV bytes into rows of trimmed string cells.

    The delimiter is sniffed from the first kilobyte; comma is assumed when
    sniffing fails (single-column files, ragged preambles).
    """
    text = _decode_text(content)
    sample = text[:1024]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    try:
        rows = [[cell.strip() for cell in row] for row in reader]
    except csv.Error as e:
        raise StatementReadError(f"Could not read CSV file: {e}")
    return _trim_trailing_blank_rows(rows)


def _cell_to_text(value: object) -> str:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def read_excel_table(content: bytes, extension: str) -> RawTable:
    """Decode the first sheet of an .xlsx/.xls workbook into string cells.

    Date cells are rendered as ISO dates so that day-first parsing never
    reinterprets them.
    """
    engine = "xlrd" if extension == ".xls" else "openpyxl"
    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, engine=engine)
    except Exception as e:
        raise StatementReadError(f"Failed to parse Excel file. Please check the file format. ({e})")

    logger.debug("Read %d spreadsheet rows with %s", len(frame.index), engine)
    rows = [[_cell_to_text(value) for value in record] for record in frame.itertuples(index=False)]
    return _trim_trailing_blank_rows(rows)


def _trim_trailing_blank_rows(rows: RawTable) -> RawTable:
    while rows and not any(cell for cell in rows[-1]):
        rows.pop()
    return rows
