"""
Run controller for the umsalary.info HTML source.

One run imports one fiscal year (year_key). The working set is either the
department roster or, in retry mode, the failure ledger entries for that
year. Departments are processed strictly one after another:

    LISTING -> ITERATING -> (FETCHING -> PARSING -> LOADING) per unit -> DONE

A department that fails is written to the ledger and the run moves on. A
store failure (LoadError) or a roster fetch failure aborts the run; batches
already written stay in the table and a re-run skips them as duplicates.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from salary_ingest.core.errors import FetchError, RunAborted, is_fatal
from salary_ingest.core.failure_ledger import FailureLedger, FailureLedgerEntry
from salary_ingest.core.logging import get_logger
from salary_ingest.core.run_models import RunSource, RunState, RunSummary, UnitFailure
from salary_ingest.crawler.fetcher import Fetcher
from salary_ingest.crawler.roster import DepartmentEntry, parse_department_list
from salary_ingest.crawler.table_scraper import TableScraper
from salary_ingest.db.loader import BatchLoader
from salary_ingest.utils.fiscal_years import fiscal_year_label
from salary_ingest.utils.url_utils import dept_list_url

logger = get_logger(__name__)


@dataclass
class RunOptions:
    """
    Options for one HTML import run.

    Working-set selection, first that applies:
    retry_failed > only_indices (1-based) > skip then limit.
    """

    year_key: int = 0
    limit: Optional[int] = None
    skip: int = 0
    only_indices: List[int] = field(default_factory=list)
    retry_failed: bool = False
    clear: bool = False
    dry_run: bool = False


def select_working_set(departments: List[DepartmentEntry], options: RunOptions) -> List[DepartmentEntry]:
    """
    Apply only_indices or skip/limit to the roster.

    Example:
        >>> depts = [DepartmentEntry(n, n) for n in "ABCDE"]
        >>> [d.display_name for d in select_working_set(depts, RunOptions(skip=1, limit=2))]
        ['B', 'C']
        >>> [d.display_name for d in select_working_set(depts, RunOptions(only_indices=[5, 1]))]
        ['E', 'A']
    """
    if options.only_indices:
        selected = []
        for index in options.only_indices:
            if 1 <= index <= len(departments):
                selected.append(departments[index - 1])
            else:
                logger.warning(f"Ignoring department index {index} (roster has {len(departments)})")
        return selected

    selected = departments[max(options.skip, 0):]
    if options.limit is not None and options.limit > 0:
        selected = selected[:options.limit]
    return selected


def ledger_working_set(entries: List[FailureLedgerEntry]) -> List[DepartmentEntry]:
    """Ledger entries as departments, first occurrence of each id wins."""
    seen = set()
    departments: List[DepartmentEntry] = []
    for entry in entries:
        if entry.source_encoded_id in seen:
            continue
        seen.add(entry.source_encoded_id)
        departments.append(DepartmentEntry(
            display_name=entry.display_name or entry.source_encoded_id,
            source_encoded_id=entry.source_encoded_id,
        ))
    return departments


class RunController:
    """
    Drive one HTML import run.

    Args:
        fetcher: Fetcher for the roster request
        scraper: TableScraper for the per-department pages (owns the politeness delay)
        loader: BatchLoader; may be None for dry runs
        ledger: Failure ledger store
        options: RunOptions
        base_url: Site root
        clear_year: Deletes a year's rows and returns the count; used when options.clear

    Usage:
        >>> controller = RunController(fetcher, scraper, loader, ledger, RunOptions(year_key=1))
        >>> summary = controller.run()
        >>> summary.ok
        True
    """

    def __init__(
        self,
        fetcher: Fetcher,
        scraper: TableScraper,
        loader: Optional[BatchLoader],
        ledger: FailureLedger,
        options: RunOptions,
        base_url: str = "https://www.umsalary.info",
        clear_year: Optional[Callable[[int], int]] = None,
    ):
        if loader is None and not options.dry_run:
            raise ValueError("A loader is required unless dry_run is set")
        self.fetcher = fetcher
        self.scraper = scraper
        self.loader = loader
        self.ledger = ledger
        self.options = options
        self.base_url = base_url
        self.clear_year = clear_year
        self.summary: Optional[RunSummary] = None

    def _set_state(self, state: RunState) -> None:
        self.summary.state = state

    def run(self) -> RunSummary:
        """
        Execute the run.

        Returns:
            RunSummary; fatal_error is set if the run was aborted

        Raises:
            ConfigurationError: If year_key is out of range (before any request)
        """
        opts = self.options
        fiscal_year = fiscal_year_label(opts.year_key)
        self.summary = RunSummary(
            source=RunSource.HTML,
            year_key=opts.year_key,
            fiscal_year=fiscal_year,
            dry_run=opts.dry_run,
        )
        logger.info(
            f"HTML import: year_key={opts.year_key} ({fiscal_year}), retry_failed={opts.retry_failed}, "
            f"clear={opts.clear}, dry_run={opts.dry_run}"
        )

        try:
            departments = self._list_units()
            self.summary.units_total = len(departments)
            if opts.clear and not opts.dry_run:
                self._clear()

            self._set_state(RunState.ITERATING)
            for index, dept in enumerate(departments, start=1):
                self._process(index, len(departments), dept)
            self.summary.finish(RunState.DONE)
        except RunAborted as e:
            self.summary.fatal_error = str(e)
            self.summary.finish(RunState.ABORTED)
            logger.error(f"Run aborted: {e}")

        for line in self.summary.summary_lines():
            logger.info(line)
        return self.summary

    def _list_units(self) -> List[DepartmentEntry]:
        self._set_state(RunState.LISTING)
        opts = self.options

        if opts.retry_failed:
            departments = ledger_working_set(self.ledger.read_filtered(opts.year_key))
            logger.info(f"Retry mode: {len(departments)} failed departments for year_key={opts.year_key}")
            return departments

        url = dept_list_url(self.base_url)
        self.scraper.pause()
        try:
            html = self.fetcher.fetch_text(url)
        except FetchError as e:
            raise RunAborted(f"Roster fetch failed: {e}", cause=e) from e

        roster = parse_department_list(html)
        departments = select_working_set(roster, opts)
        logger.info(f"Roster: {len(roster)} departments, {len(departments)} selected")
        return departments

    def _clear(self) -> None:
        if self.clear_year is None:
            logger.warning("clear requested but no clear function configured; skipping")
            return
        try:
            self.summary.cleared = self.clear_year(self.options.year_key)
        except Exception as e:
            raise RunAborted(f"Clearing year_key={self.options.year_key} failed: {e}", cause=e) from e

    def _process(self, index: int, total: int, dept: DepartmentEntry) -> None:
        prefix = f"[{index}/{total}] {dept.label()}"
        try:
            records_parsed, inserted, skipped = self._run_unit(dept)
        except Exception as e:
            if is_fatal(e):
                raise RunAborted(f"{dept.display_name}: {e}", cause=e) from e
            self._record_failure(dept, e)
            logger.warning(f"{prefix} ... FAILED: {e}")
            self._set_state(RunState.ITERATING)
            return

        self.summary.units_succeeded += 1
        if self.options.dry_run:
            logger.info(f"{prefix} ... {records_parsed} rows (dry run)")
        else:
            logger.info(f"{prefix} ... {records_parsed} rows, {inserted} new, {skipped} duplicates")

        if self.options.retry_failed and not self.options.dry_run:
            removed = self.ledger.remove_keys(self.options.year_key, [dept.source_encoded_id])
            self.summary.ledger_entries_removed += removed
        self._set_state(RunState.ITERATING)

    def _run_unit(self, dept: DepartmentEntry) -> tuple:
        year_key = self.options.year_key

        self._set_state(RunState.FETCHING)
        pages = self.scraper.fetch_pages(dept, year_key)

        self._set_state(RunState.PARSING)
        records = self.scraper.parse_pages(pages, year_key)
        self.summary.records_parsed += len(records)

        if self.options.dry_run or not records:
            return len(records), 0, 0

        self._set_state(RunState.LOADING)
        result = self.loader.load(records)
        self.summary.inserted += result.inserted
        self.summary.skipped_as_duplicate += result.skipped_as_duplicate
        return len(records), result.inserted, result.skipped_as_duplicate

    def _record_failure(self, dept: DepartmentEntry, exc: Exception) -> None:
        self._set_state(RunState.FAILED)
        message = str(exc) or exc.__class__.__name__
        self.summary.failures.append(UnitFailure(
            source_encoded_id=dept.source_encoded_id,
            display_name=dept.display_name,
            error_message=message,
        ))
        if self.options.dry_run:
            return
        year_key = self.options.year_key
        if any(e.source_encoded_id == dept.source_encoded_id for e in self.ledger.read_filtered(year_key)):
            logger.debug(f"{dept.display_name} already in the failure ledger for year_key={year_key}")
            return
        self.ledger.append(FailureLedgerEntry(
            year_key=self.options.year_key,
            source_encoded_id=dept.source_encoded_id,
            display_name=dept.display_name,
            error_message=message,
        ))
