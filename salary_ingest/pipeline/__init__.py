"""
Import runs.

Module Structure:
- html_import: RunController for the paginated HTML source
- pdf_import: PdfImportRun and the multi-file batch import
"""

from salary_ingest.pipeline.html_import import RunController, RunOptions, select_working_set
from salary_ingest.pipeline.pdf_import import (
    DEFAULT_MANIFEST,
    ManifestEntry,
    PdfImportOptions,
    PdfImportRun,
    run_pdf_batch,
)

__all__ = [
    "RunController",
    "RunOptions",
    "select_working_set",
    "DEFAULT_MANIFEST",
    "ManifestEntry",
    "PdfImportOptions",
    "PdfImportRun",
    "run_pdf_batch",
]
