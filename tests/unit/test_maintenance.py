"""
Unit tests for administrative store operations.
"""

import pytest

from salary_ingest.core.errors import LoadError
from salary_ingest.db.maintenance import count_by_year, delete_year, repair_title_department, top_earners


@pytest.fixture
def stored_rows(fake_supabase):
    store = fake_supabase.store()
    store.rows = [
        {"id": 1, "last_name": "Smith", "first_name": "Aaron", "title": "Aaron", "department": "ASST PROFESSOR",
         "year_key": 0, "ftr": 90000.0, "fiscal_year": "2025-26"},
        {"id": 2, "last_name": "Jones", "first_name": "Beth", "title": "Clerk", "department": "LSA History",
         "year_key": 0, "ftr": 40000.0, "fiscal_year": "2025-26"},
        {"id": 3, "last_name": "Lee", "first_name": "Chris", "title": "Clerk", "department": "",
         "year_key": 3, "ftr": 50000.0, "fiscal_year": "2022-23"},
        {"id": 4, "last_name": "Kim", "first_name": "Dana", "title": "Dana", "department": "Research Fellow",
         "year_key": 3, "ftr": 60000.0, "fiscal_year": "2022-23"},
        {"id": 5, "last_name": "Park", "first_name": "Eli", "title": "Clerk", "department": "Professor Program Office",
         "year_key": 3, "ftr": 120000.0, "fiscal_year": "2022-23"},
    ]
    return store


class TestRepairTitleDepartment:
    """Tests for repair_title_department."""

    def test_dry_run_reports_without_updating(self, fake_supabase, stored_rows):
        result = repair_title_department(fake_supabase, "salary_records", dry_run=True, page_size=2)

        assert result.dry_run
        assert result.scanned == 4  # the empty department is not scanned
        assert sorted(c.id for c in result.changes) == [1, 4]
        assert stored_rows.ops("update") == []
        assert len(stored_rows.ops("select")) == 3  # 2 + 2 + 0 rows

    def test_applies_changes(self, fake_supabase, stored_rows):
        result = repair_title_department(fake_supabase, "salary_records", page_size=2)

        assert result.updated == 2
        by_id = {r["id"]: r for r in stored_rows.rows}
        assert (by_id[1]["title"], by_id[1]["department"]) == ("ASST PROFESSOR", "")
        assert (by_id[4]["title"], by_id[4]["department"]) == ("Research Fellow", "")
        assert by_id[5]["department"] == "Professor Program Office"

    def test_failed_update_is_counted(self, fake_supabase, stored_rows):
        stored_rows.fail_on = "update"
        result = repair_title_department(fake_supabase, "salary_records")
        assert (result.updated, result.failed) == (0, 2)


class TestDeleteYear:
    """Tests for delete_year."""

    def test_deletes_only_that_year(self, fake_supabase, stored_rows):
        assert delete_year(fake_supabase, "salary_records", 3) == 3
        assert {r["year_key"] for r in stored_rows.rows} == {0}

    def test_failure_raises_load_error(self, fake_supabase, stored_rows):
        stored_rows.fail_on = "delete"
        with pytest.raises(LoadError, match="year_key=3"):
            delete_year(fake_supabase, "salary_records", 3)


class TestStats:
    """Tests for count_by_year and top_earners."""

    def test_count_by_year(self, fake_supabase, stored_rows):
        assert count_by_year(fake_supabase, "salary_records") == {0: 2, 3: 3}

    def test_top_earners(self, fake_supabase, stored_rows):
        top = top_earners(fake_supabase, "salary_records", 2)
        assert [r["last_name"] for r in top] == ["Park", "Smith"]
