"""
Pydantic models describing an import run.

RunState tracks the controller's state machine; RunSummary is what a run
returns and what the CLI prints at the end.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class RunState(str, Enum):
    """
    Run controller states.

    listing -> iterating -> (per unit: fetching -> parsing -> loading) -> done.
    A unit that fails ends in FAILED without stopping the run; a fatal
    condition ends the whole run in ABORTED.
    """
    LISTING = "listing"
    ITERATING = "iterating"
    FETCHING = "fetching"
    PARSING = "parsing"
    LOADING = "loading"
    FAILED = "failed"
    DONE = "done"
    ABORTED = "aborted"


class RunSource(str, Enum):
    """Which external source a run ingests."""
    HTML = "html"
    PDF = "pdf"


class UnitFailure(BaseModel):
    """A department (or document) that failed during a run."""
    source_encoded_id: str
    display_name: str = ""
    error_message: str = ""


class RunSummary(BaseModel):
    """
    Outcome of one import run.

    Counts are cumulative over all units. fatal_error is set only when the
    run was aborted; soft per-unit failures are listed in failures.
    """
    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: RunSource
    year_key: int = Field(..., ge=0)
    fiscal_year: str
    dry_run: bool = False

    state: RunState = RunState.LISTING
    units_total: int = 0
    units_succeeded: int = 0
    failures: List[UnitFailure] = Field(default_factory=list)

    records_parsed: int = 0
    parse_failures: int = 0
    inserted: int = 0
    skipped_as_duplicate: int = 0
    cleared: int = 0
    ledger_entries_removed: int = 0

    fatal_error: Optional[str] = None

    started_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    completed_at: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @property
    def ok(self) -> bool:
        """True unless the run hit a fatal condition."""
        return self.fatal_error is None

    def finish(self, state: RunState) -> "RunSummary":
        self.state = state
        self.completed_at = datetime.now(timezone.utc).isoformat()
        return self

    def calculate_duration(self) -> Optional[float]:
        """
        Calculate duration from started_at and completed_at timestamps.

        Returns:
            Duration in seconds, or None if the run has not finished
        """
        if not self.completed_at:
            return None

        try:
            start = datetime.fromisoformat(self.started_at)
            end = datetime.fromisoformat(self.completed_at)
            return round((end - start).total_seconds(), 3)
        except ValueError:
            return None

    def summary_lines(self, max_failures: int = 20) -> List[str]:
        """Human-readable end-of-run report."""
        lines = [
            f"Run {self.run_id} ({self.source.value}, year_key={self.year_key}, {self.fiscal_year}): {self.state.value}",
            f"  units: {self.units_succeeded}/{self.units_total} succeeded, {len(self.failures)} failed",
            f"  records parsed: {self.records_parsed} (unparseable chunks: {self.parse_failures})",
        ]
        if self.dry_run:
            lines.append("  dry run: no database writes")
        else:
            lines.append(f"  inserted: {self.inserted}, skipped (duplicates): {self.skipped_as_duplicate}")
        if self.cleared:
            lines.append(f"  cleared before import: {self.cleared}")
        if self.ledger_entries_removed:
            lines.append(f"  removed from failure ledger (retry succeeded): {self.ledger_entries_removed}")
        if self.failures:
            lines.append("  failed units:")
            for f in self.failures[:max_failures]:
                lines.append(f"    - {f.display_name or f.source_encoded_id}: {f.error_message}")
            if len(self.failures) > max_failures:
                lines.append(f"    ... and {len(self.failures) - max_failures} more")
        if self.fatal_error:
            lines.append(f"  FATAL: {self.fatal_error}")
        duration = self.calculate_duration()
        if duration is not None:
            lines.append(f"  duration: {duration:.1f}s")
        return lines
