"""
Unit tests for PDF text extraction, the single-document PDF import run
and the multi-file batch import.

Text extraction is replaced with fixture text so no real PDF is needed.
"""

from pathlib import Path

import httpx
import pytest

import salary_ingest.pdf.extract as extract_module
import salary_ingest.pipeline.pdf_import as pdf_import_module
from salary_ingest.core.errors import ConfigurationError, ParseError
from salary_ingest.core.run_models import RunSource, RunState
from salary_ingest.db.loader import BatchLoader
from salary_ingest.db.maintenance import delete_year
from salary_ingest.pdf.extract import extract_pdf_text
from salary_ingest.pdf.parsers import PdfFormat
from salary_ingest.pipeline.pdf_import import (
    DEFAULT_MANIFEST,
    ManifestEntry,
    PdfImportOptions,
    PdfImportRun,
    run_pdf_batch,
)


class _FakePage:
    def __init__(self, text):
        self._text = text

    def extract_text(self):
        return self._text


class _FakePdf:
    def __init__(self, texts):
        self.pages = [_FakePage(t) for t in texts]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    path = tmp_path / "salary.pdf"
    path.write_bytes(b"%PDF-1.4 placeholder")
    return path


@pytest.fixture
def extracted_text(monkeypatch, compact_pdf_text):
    """Make every PDF 'contain' the compact fixture text."""
    texts = {"value": compact_pdf_text}
    monkeypatch.setattr(pdf_import_module, "extract_pdf_text", lambda data: texts["value"])
    return texts


class TestExtractPdfText:
    """Tests for extract_pdf_text."""

    def test_joins_pages_with_newlines(self, monkeypatch):
        """Pages are joined in order; a page without text contributes an empty line."""
        monkeypatch.setattr(extract_module.pdfplumber, "open", lambda fp: _FakePdf(["page one", None, "page three"]))
        assert extract_pdf_text(b"%PDF") == "page one\n\npage three"

    def test_unreadable_bytes_raise_parse_error(self):
        with pytest.raises(ParseError, match="Could not read PDF"):
            extract_pdf_text(b"this is not a pdf")


class TestPdfImportValidation:
    """Source and option checks that happen before any I/O."""

    def test_no_source(self):
        with pytest.raises(ConfigurationError, match="No PDF source"):
            PdfImportRun(PdfImportOptions(dry_run=True)).run()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="File not found"):
            PdfImportRun(PdfImportOptions(file=tmp_path / "nope.pdf", dry_run=True)).run()

    def test_year_out_of_range(self, pdf_file):
        with pytest.raises(ConfigurationError, match="year_key"):
            PdfImportRun(PdfImportOptions(file=pdf_file, year_key=99, dry_run=True)).run()

    def test_loader_required_for_real_run(self, pdf_file):
        with pytest.raises(ConfigurationError, match="loader"):
            PdfImportRun(PdfImportOptions(file=pdf_file)).run()


class TestPdfImportRun:
    """Tests for PdfImportRun.run."""

    def test_dry_run_parses_and_previews(self, pdf_file, extracted_text, caplog):
        """Dry run counts rows and failures and logs a preview without loading."""
        caplog.set_level("INFO")
        summary = PdfImportRun(PdfImportOptions(file=pdf_file, year_key=2, dry_run=True)).run()

        assert summary.ok
        assert summary.source == RunSource.PDF
        assert summary.state == RunState.DONE
        assert summary.fiscal_year == "2023-24"
        assert summary.records_parsed == 2
        assert summary.parse_failures == 1
        assert summary.inserted == 0
        assert "[1] Doe, Jane | PROFESSOR | LSA History | FTR=62232.00 GF=0.00" in caplog.text
        assert "Dry run: no database writes." in caplog.text

    def test_loads_and_reimport_is_noop(self, pdf_file, extracted_text, fake_supabase):
        """Second import of the same document inserts nothing."""
        loader = BatchLoader(fake_supabase, "salary_records")
        options = PdfImportOptions(file=pdf_file, year_key=4)

        first = PdfImportRun(options, loader=loader).run()
        second = PdfImportRun(options, loader=loader).run()

        assert (first.inserted, first.skipped_as_duplicate) == (2, 0)
        assert (second.inserted, second.skipped_as_duplicate) == (0, 2)
        rows = fake_supabase.store().rows
        assert {r["fiscal_year"] for r in rows} == {"2021-22"}
        assert {r["year_key"] for r in rows} == {4}

    def test_record_limit(self, pdf_file, extracted_text, fake_supabase):
        loader = BatchLoader(fake_supabase, "salary_records")
        summary = PdfImportRun(PdfImportOptions(file=pdf_file, limit=1), loader=loader).run()
        assert summary.records_parsed == 1
        assert summary.inserted == 1

    def test_format_override_is_used(self, pdf_file, extracted_text, line_block_pdf_text, monkeypatch):
        """A forced format picks the parser regardless of the text."""
        extracted_text["value"] = line_block_pdf_text
        chosen = []
        real_select = pdf_import_module.select_parser
        monkeypatch.setattr(pdf_import_module, "select_parser", lambda fmt: chosen.append(fmt) or real_select(fmt))

        PdfImportRun(PdfImportOptions(file=pdf_file, format=PdfFormat.COMPACT, dry_run=True)).run()
        PdfImportRun(PdfImportOptions(file=pdf_file, dry_run=True)).run()

        assert chosen == [PdfFormat.COMPACT, PdfFormat.LINE_BLOCK]

    def test_clear_deletes_only_that_year(self, pdf_file, extracted_text, fake_supabase):
        store = fake_supabase.store()
        store.rows = [{"id": 100, "year_key": 4, "last_name": "Old"}, {"id": 101, "year_key": 3, "last_name": "Keep"}]
        loader = BatchLoader(fake_supabase, "salary_records")

        summary = PdfImportRun(
            PdfImportOptions(file=pdf_file, year_key=4, clear=True),
            loader=loader,
            clear_year=lambda yk: delete_year(fake_supabase, "salary_records", yk),
        ).run()

        assert summary.cleared == 1
        assert summary.inserted == 2
        assert "Old" not in {r["last_name"] for r in store.rows}
        assert "Keep" in {r["last_name"] for r in store.rows}

    def test_load_failure_aborts(self, pdf_file, extracted_text, fake_supabase):
        fake_supabase.store().fail_on = "upsert"
        summary = PdfImportRun(PdfImportOptions(file=pdf_file),
                               loader=BatchLoader(fake_supabase, "salary_records")).run()

        assert not summary.ok
        assert summary.state == RunState.ABORTED
        assert "simulated upsert failure" in summary.fatal_error

    def test_download_failure_aborts(self, make_fetcher, extracted_text):
        fetcher = make_fetcher(lambda request: httpx.Response(404))
        summary = PdfImportRun(
            PdfImportOptions(url="https://hr.umich.edu/salary.pdf", dry_run=True),
            fetcher=fetcher,
        ).run()

        assert summary.state == RunState.ABORTED
        assert "PDF download failed" in summary.fatal_error
        assert summary.failures[0].source_encoded_id == "https://hr.umich.edu/salary.pdf"

    def test_downloads_from_url(self, make_fetcher, extracted_text):
        fetcher = make_fetcher(lambda request: httpx.Response(200, content=b"%PDF"))
        summary = PdfImportRun(
            PdfImportOptions(url="https://hr.umich.edu/salary.pdf", dry_run=True),
            fetcher=fetcher,
        ).run()
        assert summary.ok
        assert summary.records_parsed == 2


class TestRunPdfBatch:
    """Tests for run_pdf_batch."""

    def test_default_manifest(self):
        assert [(e.file_name, e.year_key, e.format) for e in DEFAULT_MANIFEST] == [
            ("salary-disclosure-2021.pdf", 4, PdfFormat.COMPACT),
            ("salary-disclosure-2023.pdf", 2, PdfFormat.COMPACT),
            ("salary_disclosure_2024.pdf", 1, PdfFormat.LINE_BLOCK),
        ]

    def test_missing_files_are_skipped(self, tmp_path, extracted_text):
        (tmp_path / "salary-disclosure-2021.pdf").write_bytes(b"%PDF")
        (tmp_path / "salary_disclosure_2024.pdf").write_bytes(b"%PDF")

        summaries = run_pdf_batch(tmp_path, make_run=lambda options: PdfImportRun(options), dry_run=True)

        assert [s.year_key for s in summaries] == [4, 1]
        assert all(s.ok for s in summaries)

    def test_failing_file_does_not_stop_later_ones(self, tmp_path, monkeypatch, compact_pdf_text):
        manifest = (
            ManifestEntry("bad.pdf", 3, PdfFormat.COMPACT),
            ManifestEntry("good.pdf", 2, PdfFormat.COMPACT),
        )
        (tmp_path / "bad.pdf").write_bytes(b"bad")
        (tmp_path / "good.pdf").write_bytes(b"%PDF")

        def fake_extract(data):
            if data == b"bad":
                raise ParseError("Could not read PDF")
            return compact_pdf_text

        monkeypatch.setattr(pdf_import_module, "extract_pdf_text", fake_extract)
        summaries = run_pdf_batch(tmp_path, make_run=lambda options: PdfImportRun(options),
                                  manifest=manifest, dry_run=True)

        assert [s.ok for s in summaries] == [False, True]
        assert summaries[1].records_parsed == 2

    def test_unreadable_file_does_not_stop_later_ones(self, tmp_path, monkeypatch, extracted_text):
        manifest = (
            ManifestEntry("locked.pdf", 3, PdfFormat.COMPACT),
            ManifestEntry("good.pdf", 2, PdfFormat.COMPACT),
        )
        (tmp_path / "locked.pdf").write_bytes(b"%PDF")
        (tmp_path / "good.pdf").write_bytes(b"%PDF")
        real_read = pdf_import_module.read_pdf_file

        def fake_read(path):
            if Path(path).name == "locked.pdf":
                raise PermissionError(13, "Permission denied", str(path))
            return real_read(path)

        monkeypatch.setattr(pdf_import_module, "read_pdf_file", fake_read)
        summaries = run_pdf_batch(tmp_path, make_run=lambda options: PdfImportRun(options),
                                  manifest=manifest, dry_run=True)

        assert [s.ok for s in summaries] == [False, True]
        assert summaries[0].state == RunState.ABORTED
        assert "Permission denied" in summaries[0].fatal_error
        assert summaries[0].failures[0].display_name == "locked.pdf"
