"""
Exception taxonomy for the ingestion pipeline.

Fatal vs. soft failures:
- FetchError: retryable network failure. Soft for a single department
  (recorded in the failure ledger), fatal for the roster or PDF download.
- ParseError: a page or chunk did not have the expected shape.
- LoadError: a batch could not be written to the store. Always fatal.
- ConfigurationError: a required input is missing or invalid. Raised
  before any network activity.
- RunAborted: a fatal condition stopped a run; wraps the cause.
"""

from typing import Optional


class SalaryIngestError(Exception):
    """Base class for every error raised by the pipeline."""


class FetchError(SalaryIngestError):
    """Network failure or non-success status after all retries."""

    def __init__(self, message: str, url: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class ParseError(SalaryIngestError):
    """Source content did not match the expected layout."""


class LoadError(SalaryIngestError):
    """Writing a batch to the canonical store failed."""

    def __init__(self, message: str, batch_index: Optional[int] = None):
        super().__init__(message)
        self.batch_index = batch_index


class ConfigurationError(SalaryIngestError, ValueError):
    """A required run input is missing or invalid."""


class RunAborted(SalaryIngestError):
    """A fatal condition stopped the run before all units were processed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


def is_fatal(exc: BaseException) -> bool:
    """
    Return True if the exception must stop the whole run.

    Per-unit failures (fetch, parse, anything unexpected inside one
    department) are soft. Store and configuration failures are not.
    """
    return isinstance(exc, (LoadError, ConfigurationError, RunAborted))
