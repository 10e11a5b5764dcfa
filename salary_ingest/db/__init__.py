"""
Database module for the salary ingestion pipeline.

This module handles all store operations including:
- Pydantic models for the canonical record
- Supabase client access
- Deduplicating batch loader
- Administrative maintenance operations
"""

from salary_ingest.db.models import (
    CAMPUS_IDS,
    IDENTITY_COLUMNS,
    SalaryRow,
    SalaryRecord,
    campus_id_for,
)

from salary_ingest.db.supabase_client import (
    require_supabase,
)

from salary_ingest.db.loader import (
    BatchLoader,
    LoadResult,
    UniquenessPolicy,
    IDENTITY_POLICY,
)

__all__ = [
    # Models
    "CAMPUS_IDS",
    "IDENTITY_COLUMNS",
    "SalaryRow",
    "SalaryRecord",
    "campus_id_for",
    # Client functions
    "require_supabase",
    # Loader
    "BatchLoader",
    "LoadResult",
    "UniquenessPolicy",
    "IDENTITY_POLICY",
]
