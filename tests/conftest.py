"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite.
"""

import pytest
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import httpx

from salary_ingest.core.failure_ledger import InMemoryFailureLedger
from salary_ingest.crawler.fetcher import Fetcher
from salary_ingest.crawler.table_scraper import TableScraper
from salary_ingest.db.models import SalaryRecord


# ============================================================================
# Paths and Directories
# ============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def test_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


# ============================================================================
# Sample Data Fixtures
# ============================================================================

def salary_page(rows: List[List[str]], total_pages: int = 1, page: int = 1) -> str:
    """Build a umsalary.info-style result page."""
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    pager = f"<p>Page: {page} of {total_pages}</p>" if total_pages > 1 else ""
    return f"""
    <html><body>
      <table><tr><td>site navigation</td></tr></table>
      {pager}
      <table>
        <tr><th>Name</th><th>Title</th><th>Department</th><th>FTR</th><th>GF</th></tr>
        {body}
      </table>
    </body></html>
    """


@pytest.fixture
def make_salary_page() -> Callable[..., str]:
    return salary_page


@pytest.fixture
def sample_roster_html() -> str:
    """Roster with a duplicate, a job-title entry and an unrelated link."""
    return """
    <html><body>
      <a href="index.php">Home</a>
      <a href="deptsearch.php?Dept=LSA+History">LSA History</a>
      <a href="deptsearch.php?Dept=MM+Cardiology">MM Cardiology</a>
      <a href="deptsearch.php?Dept=LSA+History">LSA History</a>
      <a href="deptsearch.php?Dept=ASSOC+PROFESSOR">ASSOC PROFESSOR</a>
      <a href="deptsearch.php?Dept=Research+Lab+Services">Research Lab Services</a>
      <a href="deptsearch.php?Dept=Empty"></a>
      <a href="deptsearch.php?Dept=Ross+School%20of+Business">Ross School of Business</a>
    </body></html>
    """


@pytest.fixture
def sample_record() -> SalaryRecord:
    """Return a canonical record."""
    return SalaryRecord(
        last_name="Smith",
        first_name="Aaron",
        title="Professor",
        department="LSA History",
        fiscal_year="2025-26",
        year_key=0,
        ftr=100000.0,
        gf=5000.0,
    )


@pytest.fixture
def compact_pdf_text() -> str:
    """Compact (2021/2023) layout, one unparseable chunk included."""
    return (
        "University of Michigan Salary Record\n"
        "UM_ANN-ARBOR Doe, Jane PROFESSOR LSA History 62,232.00 12-Month1.00 0.00\n"
        "UM_FLINT Roe, Richard ASSOC PROFESSOR College of Arts 80,100.50 9-Month 0.50 40,050.25\n"
        "UM_DEARBOR Poe, Edgar LECTURER garbled line without numbers here\n"
    )


@pytest.fixture
def line_block_pdf_text() -> str:
    """Line-block (2024) layout with both amount sub-layouts and one short block."""
    return (
        "UM_ANN-ARBOR\n"
        "Doe, Jane\n"
        "PROFESSOR\n"
        "LSA History\n"
        "62,232.00 12-Month\n"
        "1.00\n"
        "0.00\n"
        "UM_DEARBOR\n"
        "Roe, Richard\n"
        "LECTURER\n"
        "CoE Mechanical Engineering\n"
        "113,000.00\n"
        "9-Month\n"
        "0.75\n"
        "50,000.00\n"
        "UM_FLINT\n"
        "Short, Block\n"
        "TITLE\n"
    )


# ============================================================================
# HTTP Fixtures
# ============================================================================

class FakeSite:
    """
    httpx.MockTransport handler serving a roster and per-department pages.

    pages maps a decoded department name to its list of page HTML.
    fail maps a decoded department name to a status code returned for it.
    """

    def __init__(self, roster_html: str = "", pages: Optional[Dict[str, List[str]]] = None,
                 fail: Optional[Dict[str, int]] = None, roster_status: int = 200):
        self.roster_html = roster_html
        self.pages = pages or {}
        self.fail = fail or {}
        self.roster_status = roster_status
        self.requests: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        parsed = urlparse(url)
        if parsed.path.endswith("dept_list.php"):
            return httpx.Response(self.roster_status, text=self.roster_html)

        query = parse_qs(parsed.query)
        dept = query.get("Dept", [""])[0]
        if dept in self.fail:
            return httpx.Response(self.fail[dept], text="error")
        page = int(query.get("page", ["1"])[0])
        pages = self.pages.get(dept)
        if not pages or page > len(pages):
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=pages[page - 1])

    def dept_requests(self, dept_fragment: str) -> List[str]:
        return [u for u in self.requests if f"Dept={dept_fragment}" in u]


@pytest.fixture
def no_sleep(monkeypatch):
    """Make retry backoff instant."""
    import salary_ingest.utils.retry as retry_module
    sleeps: List[float] = []
    monkeypatch.setattr(retry_module.time, "sleep", lambda s: sleeps.append(s))
    return sleeps


@pytest.fixture
def make_fetcher(no_sleep) -> Callable[..., Fetcher]:
    """Build a Fetcher over an httpx.MockTransport handler."""
    def _make(handler, max_retries: int = 2) -> Fetcher:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return Fetcher(client=client, max_retries=max_retries, backoff_s=2.0)
    return _make


@pytest.fixture
def make_scraper() -> Callable[..., TableScraper]:
    """TableScraper whose politeness delay is recorded instead of slept."""
    def _make(fetcher: Fetcher, delay_s: float = 1.5) -> TableScraper:
        scraper = TableScraper(fetcher, base_url="https://www.umsalary.info", delay_s=delay_s,
                               sleep=lambda s: scraper.delays.append(s))
        scraper.delays = []
        return scraper
    return _make


@pytest.fixture
def memory_ledger() -> InMemoryFailureLedger:
    return InMemoryFailureLedger()


# ============================================================================
# Mock Fixtures
# ============================================================================

class FakeResult:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable stand-in for a supabase-py query builder."""

    def __init__(self, table: "FakeTable"):
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._on_conflict: Optional[str] = None
        self._ignore_duplicates = False
        self._count: Optional[str] = None
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._orders: List[tuple] = []
        self._range: Optional[tuple] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = "*", count: Optional[str] = None):
        self._op = "select"
        self._count = count
        return self

    def upsert(self, rows, on_conflict: Optional[str] = None, ignore_duplicates: bool = False):
        self._op = "upsert"
        self._payload = rows
        self._on_conflict = on_conflict
        self._ignore_duplicates = ignore_duplicates
        return self

    def update(self, values: Dict[str, Any]):
        self._op = "update"
        self._payload = values
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self._filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column: str, value: Any):
        self._filters.append(lambda r: r.get(column) != value)
        return self

    def order(self, column: str, desc: bool = False):
        self._orders.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        return [r for r in self._table.rows if all(f(r) for f in self._filters)]

    def execute(self) -> FakeResult:
        self._table.calls.append((self._op, self))
        if self._table.fail_on == self._op and len(self._table.ops(self._op)) > self._table.fail_after:
            raise RuntimeError(f"simulated {self._op} failure")
        return getattr(self, f"_execute_{self._op}")()

    def _execute_select(self) -> FakeResult:
        rows = self._matching()
        for column, desc in reversed(self._orders):
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        total = len(rows)
        if self._range is not None:
            rows = rows[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            rows = rows[:self._limit]
        return FakeResult([dict(r) for r in rows], count=total if self._count else None)

    def _execute_upsert(self) -> FakeResult:
        columns = [c.strip() for c in (self._on_conflict or "id").split(",")]
        inserted = []
        for row in self._payload:
            key = tuple(row.get(c) for c in columns)
            existing = [r for r in self._table.rows if tuple(r.get(c) for c in columns) == key]
            if existing:
                if self._ignore_duplicates:
                    continue
                existing[0].update(row)
                inserted.append(dict(existing[0]))
                continue
            stored = dict(row, id=self._table.next_id())
            self._table.rows.append(stored)
            inserted.append(dict(stored))
        return FakeResult(inserted)

    def _execute_update(self) -> FakeResult:
        changed = []
        for row in self._matching():
            row.update(self._payload)
            changed.append(dict(row))
        return FakeResult(changed)

    def _execute_delete(self) -> FakeResult:
        doomed = self._matching()
        self._table.rows = [r for r in self._table.rows if r not in doomed]
        return FakeResult([dict(r) for r in doomed])


class FakeTable:
    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None
        self.fail_after = 0
        self._next_id = 0

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def ops(self, op: str) -> List["FakeQuery"]:
        return [q for name, q in self.calls if name == op]


class FakeSupabaseClient:
    """In-memory Supabase client honouring on_conflict / ignore_duplicates."""

    def __init__(self):
        self.tables: Dict[str, FakeTable] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.store(name))

    def store(self, name: str = "salary_records") -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable()
        return self.tables[name]


@pytest.fixture
def fake_supabase() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def mock_supabase_client(monkeypatch, fake_supabase):
    """Install the fake client as the process-wide Supabase client."""
    import salary_ingest.db.supabase_client as supabase_module
    monkeypatch.setattr(supabase_module, "_client", fake_supabase)
    return fake_supabase


# ============================================================================
# Configuration
# ============================================================================

CONFIG_ENV_VARS = [
    "SUPABASE_ENABLED", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SALARY_TABLE",
    "LOAD_BATCH_SIZE", "UMSALARY_BASE_URL", "PDF_URL", "PDF_DIR", "REQUEST_DELAY_S",
    "FETCH_MAX_RETRIES", "FETCH_BACKOFF_S", "HTTP_TIMEOUT_S", "FAILURES_LOG",
    "LOG_LEVEL", "LOG_DIR",
]


@pytest.fixture
def make_env_file(monkeypatch, tmp_path) -> Callable[..., Path]:
    """
    Write a .env file under tmp_path with a clean process environment.

    Every config variable is registered with monkeypatch first, so values
    that load_dotenv writes into os.environ are undone after the test.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    def _make(**values: str) -> Path:
        path = tmp_path / ".env"
        path.write_text("".join(f"{k}={v}\n" for k, v in values.items()), encoding="utf-8")
        return path
    return _make


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
