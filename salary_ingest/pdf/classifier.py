"""
Pick the record parser for a document's text.

The line-block layout puts the campus code alone on a line followed by a
"Last, First" line; anything else is treated as compact. An explicit
override always wins.
"""

import re
from typing import Optional

from salary_ingest.pdf.parsers import CompactParser, LineBlockParser, PdfFormat, RecordParser

LINE_BLOCK_RE = re.compile(r"(UM_ANN-ARBOR|UM_FLINT|UM_DEARBOR)\s*\n[^\n]*,[^\n]*\n")


def classify_format(text: str, override: Optional[PdfFormat] = None) -> PdfFormat:
    """
    Detect the layout of extracted PDF text.

    Example:
        >>> classify_format("UM_ANN-ARBOR\\nSmith, Jane\\nPROFESSOR\\n")
        <PdfFormat.LINE_BLOCK: 'line'>
        >>> classify_format("UM_ANN-ARBOR Smith, Jane PROFESSOR LSA 1.00")
        <PdfFormat.COMPACT: 'compact'>
    """
    if override is not None:
        return override
    if LINE_BLOCK_RE.search(text):
        return PdfFormat.LINE_BLOCK
    return PdfFormat.COMPACT


def select_parser(fmt: PdfFormat) -> RecordParser:
    if fmt == PdfFormat.LINE_BLOCK:
        return LineBlockParser()
    return CompactParser()
