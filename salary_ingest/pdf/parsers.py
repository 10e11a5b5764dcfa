"""
Record parsers for the University salary PDF.

Every record in the extracted text starts with a campus code
(UM_ANN-ARBOR, UM_FLINT, UM_DEARBOR). Two layouts have been published:

compact (2021, 2023)
    One run of text per record:
    "Last, First TITLE Dept Name 62,232.00 12-Month1.00 0.00"
    Spacing before "-Month" is not reliable.

line-block (2024, 2025)
    One field per line after the campus code:
        Last, First
        TITLE
        Dept Name
        62,232.00  12-Month      (or "113,000.00" then "9-Month")
        1.00
        0.00

Both strategies share the RecordParser contract: parse(text) returns the
rows it could read plus a count of the chunks it could not.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from salary_ingest.core.errors import ParseError
from salary_ingest.core.logging import get_logger
from salary_ingest.db.models import SalaryRow, campus_id_for
from salary_ingest.normalize.fields import PLACEHOLDER, split_department_from_title
from salary_ingest.normalize.rules import COMPACT_DEPARTMENT_PREFIXES
from salary_ingest.utils.currency import parse_currency

logger = get_logger(__name__)

CAMPUS_RE = re.compile(r"(UM_ANN-ARBOR|UM_FLINT|UM_DEARBOR)")

_AMOUNT = r"[\d,]+\.\d{2}"

# FTR, basis, fraction, GF at the end of a compact chunk
COMPACT_TAIL_RE = re.compile(
    rf"({_AMOUNT})\s*(8|9|12)-Month\s*(\d\.\d{{2}})\s*({_AMOUNT})\s*$"
)

FTR_BASIS_SAME_LINE_RE = re.compile(r"^([\d,]+\.?\d*)\s*(8|9|12)-Month\s*$", re.IGNORECASE)
BASIS_ONLY_LINE_RE = re.compile(r"^(8|9|12)-Month\s*$", re.IGNORECASE)

MIN_CHUNK_LEN = 10
MIN_BLOCK_LINES = 6


class PdfFormat(str, Enum):
    """Text layouts of the salary PDF."""
    COMPACT = "compact"
    LINE_BLOCK = "line"

    @classmethod
    def from_option(cls, value: Optional[str]) -> Optional["PdfFormat"]:
        """
        Parse a CLI/env format option; "auto" and empty mean no override.

        Example:
            >>> PdfFormat.from_option("line-block")
            <PdfFormat.LINE_BLOCK: 'line'>
        """
        if value is None:
            return None
        v = value.strip().lower()
        if v in ("", "auto"):
            return None
        if v in ("line", "line-block", "lines"):
            return cls.LINE_BLOCK
        if v == "compact":
            return cls.COMPACT
        raise ValueError(f"Unknown PDF format: {value!r} (expected auto, compact or line)")


@dataclass
class ParseOutcome:
    """Rows read from a document plus how many chunks were unreadable."""

    rows: List[SalaryRow] = field(default_factory=list)
    chunks: int = 0
    failures: int = 0


def format_period_fte(basis: str, fraction: str) -> str:
    """
    Combine appointment basis and fraction, e.g. ("12", "1.00") -> "12Month1.00".
    """
    return f"{basis or '12'}Month{fraction or '1.00'}"


def split_last_name(name_text: str) -> Tuple[str, str]:
    """Split at the first comma into (last name, rest)."""
    comma = name_text.find(",")
    if comma == -1:
        raise ParseError(f"no comma in name: {name_text[:60]!r}")
    return name_text[:comma].strip(), name_text[comma + 1:].strip()


class RecordParser(ABC):
    """Strategy interface for one PDF text layout."""

    format: PdfFormat

    @abstractmethod
    def iter_chunks(self, text: str) -> List[Tuple[str, str]]:
        """Split text into (campus, chunk) pairs."""
        raise NotImplementedError

    @abstractmethod
    def parse_chunk(self, campus: str, chunk: str) -> SalaryRow:
        """
        Parse one record.

        Raises:
            ParseError: If the chunk does not have the expected shape
        """
        raise NotImplementedError

    def parse(self, text: str) -> ParseOutcome:
        """Parse every record in the document; unreadable chunks are counted and skipped."""
        outcome = ParseOutcome()
        for campus, chunk in self.iter_chunks(text):
            outcome.chunks += 1
            try:
                outcome.rows.append(self.parse_chunk(campus, chunk))
            except ParseError as e:
                outcome.failures += 1
                logger.debug(f"[{self.format.value}] skipped chunk: {e}")
        return outcome

    @staticmethod
    def _row(campus: str, last_name: str, first_name: str, title: str, department: str,
             ftr: str, gf: str, period_fte: str) -> SalaryRow:
        title, department = split_department_from_title(title, department)
        if not last_name:
            raise ParseError("empty last name")
        return SalaryRow(
            last_name=last_name,
            first_name=first_name,
            title=title,
            department=department,
            campus=campus,
            campus_id=campus_id_for(campus),
            ftr=parse_currency(ftr),
            gf=parse_currency(gf),
            period_fte=period_fte,
        )


class CompactParser(RecordParser):
    """Parser for the single-run-of-text layout."""

    format = PdfFormat.COMPACT

    def iter_chunks(self, text: str) -> List[Tuple[str, str]]:
        chunks: List[Tuple[str, str]] = []
        matches = list(CAMPUS_RE.finditer(text))
        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            rest = text[match.end():end].strip()
            if len(rest) > MIN_CHUNK_LEN:
                chunks.append((match.group(1), rest))
        return chunks

    def parse_chunk(self, campus: str, chunk: str) -> SalaryRow:
        tail = COMPACT_TAIL_RE.search(chunk)
        if not tail:
            raise ParseError(f"no FTR/basis/fraction/GF tail: {chunk[-60:]!r}")
        ftr, basis, fraction, gf = tail.groups()

        middle = " ".join(chunk[:tail.start()].split())
        if not middle:
            raise ParseError("nothing before the numeric tail")
        last_name, after_name = split_last_name(middle)
        if not last_name or not after_name:
            raise ParseError(f"incomplete name: {middle[:60]!r}")

        before_dept, department = self._split_department(after_name)
        words = before_dept.split()
        first_name = words[0] if words else PLACEHOLDER
        title = " ".join(words[1:]) if len(words) > 1 else PLACEHOLDER

        return self._row(campus, last_name, first_name, title, department,
                         ftr, gf, format_period_fte(basis, fraction))

    @staticmethod
    def _split_department(after_name: str) -> Tuple[str, str]:
        """First listed prefix found wins (list order, not position)."""
        for prefix in COMPACT_DEPARTMENT_PREFIXES:
            idx = after_name.find(f" {prefix} ")
            if idx != -1:
                return after_name[:idx].strip(), after_name[idx + 1:].strip()
        return after_name, PLACEHOLDER


class LineBlockParser(RecordParser):
    """Parser for the one-field-per-line layout."""

    format = PdfFormat.LINE_BLOCK

    def iter_chunks(self, text: str) -> List[Tuple[str, str]]:
        parts = CAMPUS_RE.split(text)
        return [(parts[i], parts[i + 1] if i + 1 < len(parts) else "") for i in range(1, len(parts), 2)]

    def parse_chunk(self, campus: str, chunk: str) -> SalaryRow:
        lines = [line.strip() for line in chunk.strip().split("\n") if line.strip()]
        if len(lines) < MIN_BLOCK_LINES:
            raise ParseError(f"block has {len(lines)} lines, need {MIN_BLOCK_LINES}")

        last_name, first_name = split_last_name(lines[0])
        title = lines[1] or PLACEHOLDER
        department = lines[2] or PLACEHOLDER

        same_line = FTR_BASIS_SAME_LINE_RE.match(lines[3])
        if same_line:
            ftr, basis = same_line.groups()
            fraction, gf = lines[4], lines[5]
        elif len(lines) >= 7 and BASIS_ONLY_LINE_RE.match(lines[4]):
            ftr = lines[3]
            basis = BASIS_ONLY_LINE_RE.match(lines[4]).group(1)
            fraction, gf = lines[5], lines[6]
        else:
            raise ParseError(f"unrecognized amount lines: {lines[3:7]!r}")

        return self._row(campus, last_name, first_name or PLACEHOLDER, title, department,
                         ftr, gf, format_period_fte(basis, fraction))
