#!/usr/bin/env python3
"""
salary-ingest command line.

Usage:
    salary-ingest import-html --year 0 [--limit N] [--skip N] [--only 3,7] [--retry-failed] [--clear] [--dry-run]
    salary-ingest import-pdf --year 1 (--file PATH | --url URL) [--format auto|compact|line] [--limit N]
    salary-ingest import-pdf-all [--dir salaries] [--dry-run]
    salary-ingest fix-titles [--dry-run]
    salary-ingest delete-year --year 4
    salary-ingest stats [--top 10]

--year accepts a year_key (0 = most recent) or a label such as 2024-25.
Exit status is 1 only when a run hits a fatal error.
"""

import argparse
import sys
from functools import partial
from pathlib import Path
from typing import List, Optional

from salary_ingest import __version__
from salary_ingest.core.config import Config, get_config
from salary_ingest.core.errors import ConfigurationError, LoadError
from salary_ingest.core.failure_ledger import JsonlFailureLedger
from salary_ingest.core.logging import get_logger, init_ingest_logging
from salary_ingest.crawler.fetcher import Fetcher
from salary_ingest.crawler.table_scraper import TableScraper
from salary_ingest.db.loader import BatchLoader
from salary_ingest.db.maintenance import count_by_year, delete_year, repair_title_department, top_earners
from salary_ingest.db.supabase_client import require_supabase
from salary_ingest.pdf.parsers import PdfFormat
from salary_ingest.pipeline.html_import import RunController, RunOptions
from salary_ingest.pipeline.pdf_import import PdfImportOptions, PdfImportRun, run_pdf_batch
from salary_ingest.utils.fiscal_years import fiscal_year_label, year_key_for_label

logger = get_logger(__name__)


def parse_year(value: str) -> int:
    """argparse type for --year: an int year_key or a fiscal year label."""
    value = value.strip()
    try:
        year_key = int(value)
    except ValueError:
        try:
            return year_key_for_label(value)
        except ConfigurationError as e:
            raise argparse.ArgumentTypeError(str(e)) from None
    try:
        fiscal_year_label(year_key)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from None
    return year_key


def parse_indices(value: str) -> List[int]:
    """argparse type for --only: comma-separated 1-based indices."""
    try:
        indices = [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated integers, got {value!r}") from None
    if any(i < 1 for i in indices):
        raise argparse.ArgumentTypeError("indices are 1-based")
    return indices


def parse_format(value: str) -> Optional[PdfFormat]:
    try:
        return PdfFormat.from_option(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="salary-ingest", description="Import University salary disclosure data.")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("--env", type=Path, default=None, help="Path to .env file (default: configs/.env)")
    ap.add_argument("-v", "--verbose", action="store_true", help="DEBUG logging")
    sub = ap.add_subparsers(dest="command", required=True)

    html = sub.add_parser("import-html", help="Import one fiscal year from umsalary.info")
    html.add_argument("--year", type=parse_year, default=0, help="year_key or label (default 0)")
    html.add_argument("--delay", type=float, default=None, help="Seconds between requests (default REQUEST_DELAY_S)")
    html.add_argument("--limit", type=int, default=None, help="Process at most N departments")
    html.add_argument("--skip", type=int, default=0, help="Skip the first N departments")
    html.add_argument("--only", type=parse_indices, default=None, help="Only these 1-based roster indices, e.g. 3,7")
    html.add_argument("--retry-failed", action="store_true", help="Re-run departments from the failure ledger")
    html.add_argument("--clear", action="store_true", help="Delete this year's rows first")
    html.add_argument("--dry-run", action="store_true", help="Fetch and parse only")

    pdf = sub.add_parser("import-pdf", help="Import one salary PDF")
    pdf.add_argument("--year", type=parse_year, default=0, help="year_key or label (default 0)")
    pdf.add_argument("--file", type=Path, default=None, help="Local PDF path")
    pdf.add_argument("--url", default=None, help="PDF URL (default PDF_URL)")
    pdf.add_argument("--format", type=parse_format, default=None, help="auto, compact or line")
    pdf.add_argument("--limit", type=int, default=None, help="Import at most N records")
    pdf.add_argument("--clear", action="store_true", help="Delete this year's rows first")
    pdf.add_argument("--dry-run", action="store_true", help="Parse and preview only")

    batch = sub.add_parser("import-pdf-all", help="Import every known PDF found in a directory")
    batch.add_argument("--dir", type=Path, default=None, help="Folder with the PDFs (default PDF_DIR)")
    batch.add_argument("--clear", action="store_true", help="Delete each year's rows first")
    batch.add_argument("--dry-run", action="store_true", help="Parse and preview only")

    fix = sub.add_parser("fix-titles", help="Move job titles out of the department column")
    fix.add_argument("--dry-run", action="store_true", help="Report changes without applying them")

    delete = sub.add_parser("delete-year", help="Delete all rows for one fiscal year")
    delete.add_argument("--year", type=parse_year, required=True, help="year_key or label")

    stats = sub.add_parser("stats", help="Record counts per fiscal year")
    stats.add_argument("--top", type=int, default=0, help="Also list the N highest FTRs")

    return ap


def _fetcher(config: Config) -> Fetcher:
    return Fetcher(
        max_retries=config.fetch_max_retries,
        backoff_s=config.fetch_backoff_s,
        timeout_s=config.http_timeout_s,
    )


def _loader(config: Config, client) -> BatchLoader:
    return BatchLoader(client, table=config.salary_table, batch_size=config.load_batch_size)


def cmd_import_html(args: argparse.Namespace, config: Config) -> int:
    client = None if args.dry_run else require_supabase(config)
    options = RunOptions(
        year_key=args.year,
        limit=args.limit,
        skip=args.skip,
        only_indices=args.only or [],
        retry_failed=args.retry_failed,
        clear=args.clear,
        dry_run=args.dry_run,
    )
    delay = config.request_delay_s if args.delay is None else args.delay

    with _fetcher(config) as fetcher:
        controller = RunController(
            fetcher=fetcher,
            scraper=TableScraper(fetcher, base_url=config.umsalary_base_url, delay_s=delay),
            loader=_loader(config, client) if client is not None else None,
            ledger=JsonlFailureLedger(config.failures_log),
            options=options,
            base_url=config.umsalary_base_url,
            clear_year=partial(delete_year, client, config.salary_table) if client is not None else None,
        )
        summary = controller.run()
    return 0 if summary.ok else 1


def _pdf_run_factory(config: Config, client, fetcher: Fetcher):
    def make_run(options: PdfImportOptions) -> PdfImportRun:
        return PdfImportRun(
            options,
            fetcher=fetcher,
            loader=_loader(config, client) if client is not None else None,
            clear_year=partial(delete_year, client, config.salary_table) if client is not None else None,
        )
    return make_run


def cmd_import_pdf(args: argparse.Namespace, config: Config) -> int:
    client = None if args.dry_run else require_supabase(config)
    options = PdfImportOptions(
        year_key=args.year,
        file=args.file,
        url=None if args.file else (args.url or config.pdf_url),
        format=args.format,
        limit=args.limit,
        clear=args.clear,
        dry_run=args.dry_run,
    )
    with _fetcher(config) as fetcher:
        summary = _pdf_run_factory(config, client, fetcher)(options).run()
    return 0 if summary.ok else 1


def cmd_import_pdf_all(args: argparse.Namespace, config: Config) -> int:
    client = None if args.dry_run else require_supabase(config)
    directory = args.dir or config.pdf_dir
    with _fetcher(config) as fetcher:
        summaries = run_pdf_batch(
            directory,
            make_run=_pdf_run_factory(config, client, fetcher),
            dry_run=args.dry_run,
            clear=args.clear,
        )
    return 0 if all(s.ok for s in summaries) else 1


def cmd_fix_titles(args: argparse.Namespace, config: Config) -> int:
    client = require_supabase(config)
    result = repair_title_department(client, config.salary_table, dry_run=args.dry_run)
    if args.dry_run:
        print(f"Dry run: {len(result.changes)} of {result.scanned} rows would change. Run without --dry-run to apply.")
    else:
        print(f"Updated {result.updated} rows ({result.failed} failed).")
    return 0


def cmd_delete_year(args: argparse.Namespace, config: Config) -> int:
    client = require_supabase(config)
    deleted = delete_year(client, config.salary_table, args.year)
    print(f"Deleted {deleted} rows for {fiscal_year_label(args.year)} (year_key={args.year})")
    return 0


def cmd_stats(args: argparse.Namespace, config: Config) -> int:
    client = require_supabase(config)
    counts = count_by_year(client, config.salary_table)
    print(f"Total records: {sum(counts.values())}")
    if not counts:
        print("No data by year (table may be empty).")
        return 0

    print("\nBy year:")
    for year_key, n in sorted(counts.items()):
        print(f"  year_key={year_key} fiscal_year={fiscal_year_label(year_key)}  count={n}")

    if args.top > 0:
        print(f"\nTop {args.top} earners (by FTR):")
        for i, row in enumerate(top_earners(client, config.salary_table, args.top), start=1):
            print(
                f"  {i}. {row.get('first_name') or ''} {row.get('last_name')} | {row.get('title') or ''} | "
                f"{row.get('department') or ''} | ${float(row.get('ftr') or 0):,.2f}"
            )
    return 0


COMMANDS = {
    "import-html": cmd_import_html,
    "import-pdf": cmd_import_pdf,
    "import-pdf-all": cmd_import_pdf_all,
    "fix-titles": cmd_fix_titles,
    "delete-year": cmd_delete_year,
    "stats": cmd_stats,
}

DRY_RUN_COMMANDS = {"import-html", "import-pdf", "import-pdf-all"}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = get_config(env_path=args.env)
    except ConfigurationError as e:
        # before setup_logging; goes to the last-resort stderr handler
        logger.error(str(e))
        return 1
    init_ingest_logging(verbose=args.verbose, level=config.log_level, log_dir=config.log_dir)

    needs_store = not (args.command in DRY_RUN_COMMANDS and args.dry_run)
    try:
        config.validate(require_store=needs_store)
        return COMMANDS[args.command](args, config)
    except (ConfigurationError, LoadError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted; re-run to resume (duplicates are skipped)")
        return 1


if __name__ == "__main__":
    sys.exit(main())
