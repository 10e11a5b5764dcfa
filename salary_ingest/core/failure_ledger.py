"""
Failure ledger for per-department import failures.

The ledger is append-only and keyed by (year_key, source_encoded_id). A run in
retry mode reads the entries for its year_key back as its working set and
removes the keys whose retry succeeded.

Two stores implement the same interface:
- JsonlFailureLedger: one JSON object per line on disk (import-failures.log)
- InMemoryFailureLedger: list-backed, for tests and dry runs
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from salary_ingest.core.logging import get_logger

logger = get_logger(__name__)


class FailureLedgerEntry(BaseModel):
    """
    One failed department for one fiscal year.

    Serialized with camelCase keys. The older key names written by the
    first importer (encodedName, name, error) are still accepted on read.
    """
    year_key: int = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("yearKey", "year_key"),
        serialization_alias="yearKey",
    )
    source_encoded_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("sourceEncodedId", "encodedName", "source_encoded_id"),
        serialization_alias="sourceEncodedId",
    )
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("displayName", "name", "display_name"),
        serialization_alias="displayName",
    )
    error_message: str = Field(
        default="",
        validation_alias=AliasChoices("errorMessage", "error", "error_message"),
        serialization_alias="errorMessage",
    )
    recorded_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        validation_alias=AliasChoices("recordedAt", "recorded_at"),
        serialization_alias="recordedAt",
    )

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("error_message")
    @classmethod
    def truncate_message(cls, v: str) -> str:
        """Keep ledger lines readable."""
        return v[:2000]

    @property
    def key(self) -> tuple:
        return (self.year_key, self.source_encoded_id)

    def to_json_line(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), ensure_ascii=False)


class FailureLedger(ABC):
    """Store interface used by the run controller."""

    @abstractmethod
    def append(self, entry: FailureLedgerEntry) -> None:
        """Record one failure."""
        raise NotImplementedError

    @abstractmethod
    def read_filtered(self, year_key: int) -> List[FailureLedgerEntry]:
        """Return entries for one year_key in the order they were written."""
        raise NotImplementedError

    @abstractmethod
    def remove_keys(self, year_key: int, keys: Iterable[str]) -> int:
        """Drop entries for year_key whose source_encoded_id is in keys. Returns count removed."""
        raise NotImplementedError


class InMemoryFailureLedger(FailureLedger):
    """List-backed ledger."""

    def __init__(self, entries: Optional[Iterable[FailureLedgerEntry]] = None):
        self.entries: List[FailureLedgerEntry] = list(entries or [])

    def append(self, entry: FailureLedgerEntry) -> None:
        self.entries.append(entry)

    def read_filtered(self, year_key: int) -> List[FailureLedgerEntry]:
        return [e for e in self.entries if e.year_key == year_key]

    def remove_keys(self, year_key: int, keys: Iterable[str]) -> int:
        to_remove = set(keys)
        if not to_remove:
            return 0
        before = len(self.entries)
        self.entries = [
            e for e in self.entries
            if not (e.year_key == year_key and e.source_encoded_id in to_remove)
        ]
        return before - len(self.entries)


class JsonlFailureLedger(FailureLedger):
    """
    JSON Lines ledger on local disk.

    Lines that cannot be parsed are ignored on read and kept verbatim
    when the file is rewritten by remove_keys().

    Usage:
        >>> ledger = JsonlFailureLedger(Path("import-failures.log"))
        >>> ledger.append(FailureLedgerEntry(year_key=0, source_encoded_id="LSA+History",
        ...                                  display_name="LSA History", error_message="HTTP 503"))
        >>> [e.display_name for e in ledger.read_filtered(0)]
        ['LSA History']
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, entry: FailureLedgerEntry) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(entry.to_json_line())
            f.write("\n")

    def _read_lines(self) -> List[str]:
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8").splitlines()

    @staticmethod
    def _parse_line(line: str) -> Optional[FailureLedgerEntry]:
        try:
            return FailureLedgerEntry.model_validate(json.loads(line))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning(f"Ignoring unreadable ledger line ({e.__class__.__name__}): {line[:120]}")
            return None

    def read_filtered(self, year_key: int) -> List[FailureLedgerEntry]:
        out: List[FailureLedgerEntry] = []
        for line in self._read_lines():
            if not line.strip():
                continue
            entry = self._parse_line(line)
            if entry is not None and entry.year_key == year_key:
                out.append(entry)
        return out

    def remove_keys(self, year_key: int, keys: Iterable[str]) -> int:
        to_remove = set(keys)
        if not to_remove or not self.path.exists():
            return 0

        kept: List[str] = []
        removed = 0
        for line in self._read_lines():
            if not line.strip():
                continue
            entry = self._parse_line(line)
            if entry is not None and entry.year_key == year_key and entry.source_encoded_id in to_remove:
                removed += 1
                continue
            kept.append(line)

        # temp file + replace: the ledger is never half-written
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
        tmp_path.replace(self.path)
        return removed
