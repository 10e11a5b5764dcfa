"""
Shared utility functions for the salary ingestion pipeline.

This module contains reusable utilities used across components:
- Source URL construction and decoding
- Fiscal year labels
- Currency parsing
- Retry logic with backoff
"""

from salary_ingest.utils.url_utils import (
    dept_list_url,
    dept_search_url,
    extract_dept_param,
    decode_dept_param,
)
from salary_ingest.utils.fiscal_years import FISCAL_YEARS, fiscal_year_label, year_key_for_label
from salary_ingest.utils.currency import parse_currency
from salary_ingest.utils.retry import retry_with_backoff, RetryConfig

__all__ = [
    # URL utilities
    "dept_list_url",
    "dept_search_url",
    "extract_dept_param",
    "decode_dept_param",
    # Fiscal years
    "FISCAL_YEARS",
    "fiscal_year_label",
    "year_key_for_label",
    # Parsing
    "parse_currency",
    # Retry utilities
    "retry_with_backoff",
    "RetryConfig",
]
