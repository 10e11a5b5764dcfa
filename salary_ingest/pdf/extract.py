"""
PDF text extraction.

Pages are concatenated in order with a newline between them so the
line-block layout keeps one field per line.
"""

import io
from pathlib import Path
from typing import Union

import pdfplumber

from salary_ingest.core.errors import ParseError
from salary_ingest.core.logging import get_logger

logger = get_logger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """
    Extract the text of every page.

    Raises:
        ParseError: If the bytes are not a readable PDF
    """
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            texts = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        raise ParseError(f"Could not read PDF ({len(data)} bytes): {e}") from e

    logger.debug(f"Extracted text from {len(texts)} pages")
    return "\n".join(texts)


def read_pdf_file(path: Union[str, Path]) -> bytes:
    """Read a local PDF; raises FileNotFoundError when missing."""
    return Path(path).read_bytes()
