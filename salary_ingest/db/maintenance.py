"""
Administrative operations on salary_records.

- repair_title_department: standalone title-leak repair pass
- delete_year: remove every row for one year_key
- count_by_year / top_earners: quick checks after an import
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from salary_ingest.core.errors import LoadError
from salary_ingest.core.logging import get_logger
from salary_ingest.db.models import StoredSalaryRow
from salary_ingest.normalize.fields import repair_title_leak
from salary_ingest.utils.fiscal_years import FISCAL_YEARS

logger = get_logger(__name__)

# PostgREST caps a response at 1000 rows by default
PAGE_SIZE = 1000

REPAIR_COLUMNS = "id,last_name,first_name,title,department,year_key"


@dataclass
class TitleChange:
    """One planned or applied repair."""

    id: Any
    last_name: str
    first_name: str
    old_title: str
    new_title: str
    old_department: str
    rule: str


@dataclass
class RepairResult:
    """Outcome of repair_title_department."""

    scanned: int = 0
    changes: List[TitleChange] = field(default_factory=list)
    updated: int = 0
    failed: int = 0
    dry_run: bool = False


def _fetch_rows_with_department(client: Any, table: str, page_size: int) -> List[StoredSalaryRow]:
    rows: List[StoredSalaryRow] = []
    start = 0
    while True:
        response = (
            client.table(table)
            .select(REPAIR_COLUMNS)
            .neq("department", "")
            .order("year_key")
            .order("last_name")
            .order("first_name")
            .order("id")
            .range(start, start + page_size - 1)
            .execute()
        )
        page = response.data or []
        rows.extend(StoredSalaryRow.model_validate(r) for r in page)
        if len(page) < page_size:
            return rows
        start += page_size


def repair_title_department(
    client: Any,
    table: str = "salary_records",
    dry_run: bool = False,
    page_size: int = PAGE_SIZE,
) -> RepairResult:
    """
    Move job titles found in the department column into the title column.

    All candidate rows are read before any update, since an update takes a
    row out of the "department is not empty" set that is being paged.

    Args:
        client: Supabase client
        table: Table name
        dry_run: Report changes without applying them
        page_size: Rows per select

    Returns:
        RepairResult with the planned changes and counts
    """
    result = RepairResult(dry_run=dry_run)
    rows = _fetch_rows_with_department(client, table, page_size)
    result.scanned = len(rows)

    for row in rows:
        repair = repair_title_leak(row.title, row.department)
        if not repair.changed:
            continue
        result.changes.append(TitleChange(
            id=row.id,
            last_name=row.last_name,
            first_name=row.first_name or "",
            old_title=row.title or "",
            new_title=repair.title,
            old_department=row.department or "",
            rule=repair.rule or "",
        ))

    logger.info(f"Found {len(result.changes)} of {result.scanned} records where department appears to be a job title")

    if dry_run:
        for change in result.changes:
            logger.info(
                f"[dry-run] id={change.id} | {change.last_name}, {change.first_name} | "
                f"title: '{change.old_title or '(empty)'}' -> '{change.new_title}' | "
                f"dept: '{change.old_department}' -> '' ({change.rule})"
            )
        return result

    for change in result.changes:
        try:
            response = (
                client.table(table)
                .update({"title": change.new_title, "department": ""})
                .eq("id", change.id)
                .execute()
            )
        except Exception as e:
            # Usually a unique-key collision with an already-correct row
            result.failed += 1
            logger.warning(f"Could not update id={change.id} ({change.last_name}, {change.first_name}): {e}")
            continue
        if response.data:
            result.updated += 1

    logger.info(f"Updated {result.updated} records ({result.failed} failed)")
    return result


def delete_year(client: Any, table: str, year_key: int) -> int:
    """
    Delete all rows for one year_key.

    Returns:
        Number of rows deleted

    Raises:
        LoadError: If the delete fails
    """
    try:
        response = client.table(table).delete().eq("year_key", year_key).execute()
    except Exception as e:
        raise LoadError(f"Deleting year_key={year_key} failed: {e}") from e
    deleted = len(response.data or [])
    logger.info(f"Deleted {deleted} rows for year_key={year_key}")
    return deleted


def count_by_year(client: Any, table: str) -> Dict[int, int]:
    """Row counts per year_key, only for years that have rows."""
    counts: Dict[int, int] = {}
    for year_key in range(len(FISCAL_YEARS)):
        response = (
            client.table(table)
            .select("id", count="exact")
            .eq("year_key", year_key)
            .limit(1)
            .execute()
        )
        n = response.count or 0
        if n:
            counts[year_key] = n
    return counts


def top_earners(client: Any, table: str, n: int) -> List[Dict[str, Any]]:
    """Highest FTR rows across all years."""
    response = (
        client.table(table)
        .select("first_name,last_name,title,department,ftr,fiscal_year")
        .order("ftr", desc=True)
        .limit(n)
        .execute()
    )
    return response.data or []
