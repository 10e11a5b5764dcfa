"""
Import run for the University salary PDF.

The document is the single unit of the run: read from a file or downloaded,
text-extracted, classified, parsed, stamped with the run's year and loaded.
Chunks the parser cannot read are counted and logged; nothing is written to
the failure ledger for this source.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from salary_ingest.core.errors import ConfigurationError, FetchError, ParseError, RunAborted, is_fatal
from salary_ingest.core.logging import get_logger
from salary_ingest.core.run_models import RunSource, RunState, RunSummary, UnitFailure
from salary_ingest.crawler.fetcher import Fetcher
from salary_ingest.db.loader import BatchLoader
from salary_ingest.db.models import SalaryRecord
from salary_ingest.pdf.classifier import classify_format, select_parser
from salary_ingest.pdf.extract import extract_pdf_text, read_pdf_file
from salary_ingest.pdf.parsers import PdfFormat
from salary_ingest.utils.fiscal_years import fiscal_year_label

logger = get_logger(__name__)

PREVIEW_COUNT = 5


@dataclass
class PdfImportOptions:
    """Options for one PDF import run. file takes precedence over url."""

    year_key: int = 0
    file: Optional[Path] = None
    url: Optional[str] = None
    format: Optional[PdfFormat] = None
    limit: Optional[int] = None
    clear: bool = False
    dry_run: bool = False

    @property
    def source_label(self) -> str:
        return str(self.file) if self.file else (self.url or "")


@dataclass(frozen=True)
class ManifestEntry:
    """One file of a batch import."""

    file_name: str
    year_key: int
    format: PdfFormat


DEFAULT_MANIFEST: Tuple[ManifestEntry, ...] = (
    ManifestEntry("salary-disclosure-2021.pdf", 4, PdfFormat.COMPACT),
    ManifestEntry("salary-disclosure-2023.pdf", 2, PdfFormat.COMPACT),
    ManifestEntry("salary_disclosure_2024.pdf", 1, PdfFormat.LINE_BLOCK),
)


def preview_line(index: int, record: SalaryRecord) -> str:
    return (
        f"[{index}] {record.last_name}, {record.first_name} | {record.title} | "
        f"{record.department} | FTR={record.ftr:.2f} GF={record.gf:.2f}"
    )


class PdfImportRun:
    """
    Import one salary PDF.

    Args:
        options: PdfImportOptions
        fetcher: Used only when the source is a URL
        loader: BatchLoader; may be None for dry runs
        clear_year: Deletes a year's rows and returns the count; used when options.clear

    Usage:
        >>> run = PdfImportRun(PdfImportOptions(file=Path("salaries/salary_disclosure_2024.pdf"), year_key=1),
        ...                    loader=loader)
        >>> run.run().inserted
    """

    def __init__(
        self,
        options: PdfImportOptions,
        fetcher: Optional[Fetcher] = None,
        loader: Optional[BatchLoader] = None,
        clear_year: Optional[Callable[[int], int]] = None,
    ):
        self.options = options
        self.fetcher = fetcher
        self.loader = loader
        self.clear_year = clear_year
        self.summary: Optional[RunSummary] = None

    def validate(self) -> None:
        """
        Check the source and year before doing any work.

        Raises:
            ConfigurationError: If no source is given, the file is missing,
                year_key is out of range, or no loader is set for a real run
        """
        opts = self.options
        fiscal_year_label(opts.year_key)
        if opts.file is None and not opts.url:
            raise ConfigurationError("No PDF source: pass --file or --url (or set PDF_URL)")
        if opts.file is not None and not Path(opts.file).is_file():
            raise ConfigurationError(f"File not found: {Path(opts.file).resolve()}")
        if self.loader is None and not opts.dry_run:
            raise ConfigurationError("A database loader is required unless --dry-run is set")
        if opts.file is None and self.fetcher is None:
            raise ConfigurationError("A fetcher is required to download the PDF")

    def read_source(self) -> bytes:
        """
        Raises:
            FetchError: If the download fails after retries
            OSError: If a local file cannot be read
        """
        opts = self.options
        if opts.file is not None:
            logger.info(f"Reading PDF from file: {Path(opts.file).resolve()}")
            return read_pdf_file(opts.file)
        logger.info(f"Fetching PDF from URL: {opts.url}")
        return self.fetcher.fetch_bytes(opts.url)

    def run(self) -> RunSummary:
        """
        Execute the import.

        Raises:
            ConfigurationError: Before any I/O, see validate()
        """
        self.validate()
        opts = self.options
        fiscal_year = fiscal_year_label(opts.year_key)
        self.summary = RunSummary(
            source=RunSource.PDF,
            year_key=opts.year_key,
            fiscal_year=fiscal_year,
            dry_run=opts.dry_run,
            units_total=1,
        )
        logger.info(
            f"PDF import: year_key={opts.year_key} ({fiscal_year}), limit={opts.limit}, "
            f"clear={opts.clear}, dry_run={opts.dry_run}"
        )

        try:
            self._import(fiscal_year)
            self.summary.units_succeeded = 1
            self.summary.finish(RunState.DONE)
        except RunAborted as e:
            self.summary.fatal_error = str(e)
            self.summary.failures.append(UnitFailure(
                source_encoded_id=opts.source_label,
                display_name=Path(opts.source_label).name,
                error_message=str(e.cause or e),
            ))
            self.summary.finish(RunState.ABORTED)
            logger.error(f"Run aborted: {e}")

        for line in self.summary.summary_lines():
            logger.info(line)
        return self.summary

    def _import(self, fiscal_year: str) -> None:
        opts = self.options

        self.summary.state = RunState.FETCHING
        try:
            data = self.read_source()
        except FetchError as e:
            raise RunAborted(f"PDF download failed: {e}", cause=e) from e
        except OSError as e:
            raise RunAborted(f"Could not read PDF file: {e}", cause=e) from e

        self.summary.state = RunState.PARSING
        try:
            text = extract_pdf_text(data)
        except ParseError as e:
            raise RunAborted(str(e), cause=e) from e

        fmt = classify_format(text, override=opts.format)
        parser = select_parser(fmt)
        logger.info(f"Using {fmt.value} parser" + (" (forced)" if opts.format else ""))

        outcome = parser.parse(text)
        self.summary.parse_failures = outcome.failures
        logger.info(f"Parsed {len(outcome.rows)} records from {outcome.chunks} chunks")
        if outcome.failures:
            logger.warning(f"Skipped {outcome.failures} chunks that could not be parsed")

        records = [SalaryRecord.from_row(row, opts.year_key, fiscal_year) for row in outcome.rows]
        if opts.limit is not None and opts.limit > 0:
            records = records[:opts.limit]
        self.summary.records_parsed = len(records)
        logger.info(f"Records to insert: {len(records)}")

        if opts.dry_run:
            for i, record in enumerate(records[:PREVIEW_COUNT], start=1):
                logger.info(preview_line(i, record))
            logger.info("Dry run: no database writes.")
            return

        if opts.clear:
            self._clear()

        if not records:
            logger.warning("No records parsed; nothing to load")
            return

        self.summary.state = RunState.LOADING
        try:
            result = self.loader.load(records)
        except Exception as e:
            if is_fatal(e):
                raise RunAborted(str(e), cause=e) from e
            raise
        self.summary.inserted = result.inserted
        self.summary.skipped_as_duplicate = result.skipped_as_duplicate

    def _clear(self) -> None:
        if self.clear_year is None:
            logger.warning("clear requested but no clear function configured; skipping")
            return
        try:
            self.summary.cleared = self.clear_year(self.options.year_key)
        except Exception as e:
            raise RunAborted(f"Clearing year_key={self.options.year_key} failed: {e}", cause=e) from e


def run_pdf_batch(
    directory: Path,
    make_run: Callable[[PdfImportOptions], PdfImportRun],
    manifest: Tuple[ManifestEntry, ...] = DEFAULT_MANIFEST,
    dry_run: bool = False,
    clear: bool = False,
) -> List[RunSummary]:
    """
    Import every manifest file found in directory, in manifest order.

    Missing files are skipped with a warning. A file that fails does not
    stop the later ones; the caller checks each summary's ok flag.

    Args:
        directory: Folder holding the PDFs
        make_run: Builds a PdfImportRun for one file's options
        manifest: (file name, year_key, format) entries
        dry_run: Parse only
        clear: Delete each file's year before loading it

    Returns:
        One RunSummary per file that was found
    """
    directory = Path(directory)
    summaries: List[RunSummary] = []

    for entry in manifest:
        path = directory / entry.file_name
        if not path.is_file():
            logger.warning(f"Skipping {entry.file_name}: not found in {directory.resolve()}")
            continue

        logger.info(f"=== {entry.file_name} (year_key={entry.year_key}, {entry.format.value}) ===")
        options = PdfImportOptions(
            year_key=entry.year_key,
            file=path,
            format=entry.format,
            clear=clear,
            dry_run=dry_run,
        )
        summaries.append(make_run(options).run())

    failed = [s for s in summaries if not s.ok]
    logger.info(f"Batch done: {len(summaries) - len(failed)}/{len(summaries)} files imported")
    return summaries
