"""
PDF source: text extraction, layout detection and record parsers.
"""

from salary_ingest.pdf.classifier import LINE_BLOCK_RE, classify_format, select_parser
from salary_ingest.pdf.extract import extract_pdf_text, read_pdf_file
from salary_ingest.pdf.parsers import (
    CAMPUS_RE,
    CompactParser,
    LineBlockParser,
    ParseOutcome,
    PdfFormat,
    RecordParser,
    format_period_fte,
)

__all__ = [
    "LINE_BLOCK_RE",
    "classify_format",
    "select_parser",
    "extract_pdf_text",
    "read_pdf_file",
    "CAMPUS_RE",
    "CompactParser",
    "LineBlockParser",
    "ParseOutcome",
    "PdfFormat",
    "RecordParser",
    "format_period_fte",
]
