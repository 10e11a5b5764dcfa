"""
salary-ingest Test Suite

Structure:
- unit/: Fast, isolated unit tests (HTTP via httpx.MockTransport,
  Supabase via the in-memory fake in conftest.py)
"""
