"""
Core utilities for the salary ingestion pipeline.

This module contains shared utilities used across all components:
- Configuration management
- Structured logging
- Error taxonomy
- Failure ledger
- Run state and summary models
"""

from salary_ingest.core.logging import get_logger, init_ingest_logging, setup_logging
from salary_ingest.core.config import get_config, Config
from salary_ingest.core.errors import (
    SalaryIngestError,
    FetchError,
    ParseError,
    LoadError,
    ConfigurationError,
    RunAborted,
)
from salary_ingest.core.failure_ledger import (
    FailureLedger,
    FailureLedgerEntry,
    InMemoryFailureLedger,
    JsonlFailureLedger,
)
from salary_ingest.core.run_models import RunState, RunSource, RunSummary, UnitFailure

__all__ = [
    "get_logger",
    "setup_logging",
    "init_ingest_logging",
    "get_config",
    "Config",
    "SalaryIngestError",
    "FetchError",
    "ParseError",
    "LoadError",
    "ConfigurationError",
    "RunAborted",
    "FailureLedger",
    "FailureLedgerEntry",
    "InMemoryFailureLedger",
    "JsonlFailureLedger",
    "RunState",
    "RunSource",
    "RunSummary",
    "UnitFailure",
]
