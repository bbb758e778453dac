"""File-format decoders for bank statements."""

from ledgerly.ingest.layouts import GenericLayout, HdfcLayout, PdfLayout, detect_layout
from ledgerly.ingest.pdf import extract_pdf_text
from ledgerly.ingest.tabular import read_csv_table, read_excel_table

__all__ = [
    "GenericLayout",
    "HdfcLayout",
    "PdfLayout",
    "detect_layout",
    "extract_pdf_text",
    "read_csv_table",
    "read_excel_table",
]
