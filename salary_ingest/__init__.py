"""
salary-ingest: University salary disclosure ingestion.

Sources:
- the University's annual salary PDF (two text layouts)
- umsalary.info, paginated per department

Both are normalized into one salary_records table in Supabase.
"""

__version__ = "0.1.0"
