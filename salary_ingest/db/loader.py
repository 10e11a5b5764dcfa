"""
Batch Loader: deduplicating, idempotent bulk insert into salary_records.

Each batch is a single PostgREST upsert with ignore_duplicates, i.e.
INSERT ... ON CONFLICT (<identity columns>) DO NOTHING RETURNING *. The
returned rows are the ones actually inserted; the rest of the batch already
existed. A batch is the unit of atomicity: batches sent before a failure
stay applied, and re-running the same load is always safe.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence, Tuple

from salary_ingest.core.errors import LoadError
from salary_ingest.core.logging import get_logger
from salary_ingest.db.models import IDENTITY_COLUMNS, SalaryRecord

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 100


@dataclass(frozen=True)
class UniquenessPolicy:
    """Columns that define a duplicate."""

    columns: Tuple[str, ...] = IDENTITY_COLUMNS

    @property
    def on_conflict(self) -> str:
        return ",".join(self.columns)


IDENTITY_POLICY = UniquenessPolicy()


@dataclass
class LoadResult:
    """Counts returned by BatchLoader.load()."""

    inserted: int = 0
    skipped_as_duplicate: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.skipped_as_duplicate

    def __add__(self, other: "LoadResult") -> "LoadResult":
        return LoadResult(
            inserted=self.inserted + other.inserted,
            skipped_as_duplicate=self.skipped_as_duplicate + other.skipped_as_duplicate,
        )


def chunked(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    """Yield consecutive slices of at most size items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchLoader:
    """
    Insert-or-skip loader over a Supabase table.

    Usage:
        >>> loader = BatchLoader(require_supabase(), "salary_records")
        >>> result = loader.load(records)
        >>> result.inserted, result.skipped_as_duplicate
        (2, 0)
    """

    def __init__(
        self,
        client: Any,
        table: str = "salary_records",
        batch_size: int = DEFAULT_BATCH_SIZE,
        policy: UniquenessPolicy = IDENTITY_POLICY,
    ):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._client = client
        self.table = table
        self.batch_size = batch_size
        self.policy = policy

    def load(self, records: Sequence[SalaryRecord]) -> LoadResult:
        """
        Insert records in fixed-size batches, skipping duplicates.

        Args:
            records: Canonical records (year already attached)

        Returns:
            LoadResult with inserted / skipped_as_duplicate counts

        Raises:
            LoadError: If any batch fails; earlier batches stay applied
        """
        result = LoadResult()
        records = list(records)
        if not records:
            return result

        for index, batch in enumerate(chunked(records, self.batch_size)):
            inserted = self._insert_batch(index, batch)
            result = result + LoadResult(inserted=inserted, skipped_as_duplicate=len(batch) - inserted)

        logger.debug(
            f"Loaded {len(records)} records into '{self.table}': "
            f"{result.inserted} new, {result.skipped_as_duplicate} duplicates"
        )
        return result

    def _insert_batch(self, index: int, batch: Sequence[SalaryRecord]) -> int:
        rows: List[dict] = [record.to_row() for record in batch]
        try:
            response = (
                self._client.table(self.table)
                .upsert(rows, on_conflict=self.policy.on_conflict, ignore_duplicates=True)
                .execute()
            )
        except Exception as e:
            raise LoadError(f"Batch {index} ({len(rows)} rows) failed: {e}", batch_index=index) from e

        data = getattr(response, "data", None) or []
        return min(len(data), len(rows))
