"""
HTML Table Scraper for umsalary.info department result pages.

One department is fetched page by page ("Page 1 of N"), every request
preceded by the politeness delay. Each page carries a table whose header
row mentions FTR and GF; the data rows under it have five cells:
name, title, department, FTR, GF.
"""

import re
import time
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from salary_ingest.core.logging import get_logger
from salary_ingest.crawler.fetcher import Fetcher
from salary_ingest.crawler.roster import DepartmentEntry
from salary_ingest.db.models import DEFAULT_CAMPUS, SalaryRecord, campus_id_for
from salary_ingest.utils.currency import parse_currency
from salary_ingest.utils.fiscal_years import fiscal_year_label
from salary_ingest.utils.url_utils import dept_search_url

logger = get_logger(__name__)

_TOTAL_PAGES_RES = (
    re.compile(r"Page:\s*1\s+of\s+(\d+)", re.IGNORECASE),
    re.compile(r"Page\s+1\s+of\s+(\d+)", re.IGNORECASE),
)

# The site publishes neither campus nor appointment basis
HTML_PERIOD_FTE = "12-Month1.00"


def parse_total_pages(html: str) -> int:
    """
    Read N from the "Page 1 of N" marker; 1 when absent.

    Example:
        >>> parse_total_pages("<p>Page: 1 of 14</p>")
        14
        >>> parse_total_pages("<p>no pager</p>")
        1
    """
    for pattern in _TOTAL_PAGES_RES:
        match = pattern.search(html)
        if match:
            return max(1, int(match.group(1)))
    return 1


def split_name(name: str) -> tuple:
    """
    Split "Last, First" into (last, first).

    Anything after a second comma is kept in the first name.

    Example:
        >>> split_name("Smith, Aaron")
        ('Smith', 'Aaron')
    """
    parts = [p.strip() for p in name.split(",")]
    last_name = parts[0] if parts else ""
    first_name = " ".join(p for p in parts[1:] if p).strip()
    return last_name, first_name


def row_to_record(cells: List[str], year_key: int, fiscal_year: str) -> Optional[SalaryRecord]:
    """
    Convert the five text cells of a data row into a record.

    Returns:
        SalaryRecord, or None if the row has no last name
    """
    if len(cells) < 5:
        return None
    name, title, department, ftr, gf = (c.strip() for c in cells[:5])
    last_name, first_name = split_name(name)
    if not last_name:
        return None
    return SalaryRecord(
        last_name=last_name,
        first_name=first_name,
        title=title,
        department=department,
        fiscal_year=fiscal_year,
        year_key=year_key,
        campus=DEFAULT_CAMPUS,
        campus_id=campus_id_for(DEFAULT_CAMPUS),
        ftr=parse_currency(ftr),
        gf=parse_currency(gf),
        period_fte=HTML_PERIOD_FTE,
    )


def parse_salary_table(html: str, year_key: int, fiscal_year: str) -> List[SalaryRecord]:
    """
    Extract records from one result page.

    The first table with an FTR/GF header row that yields rows wins.

    Args:
        html: Result page HTML
        year_key: Ordinal fiscal year
        fiscal_year: Label for year_key

    Returns:
        Records in table order
    """
    soup = BeautifulSoup(html, "html.parser")
    records: List[SalaryRecord] = []
    saw_header = False

    for table in soup.find_all("table"):
        data_started = False
        for tr in table.find_all("tr"):
            headers = tr.find_all("th")
            if len(headers) >= 5:
                text = tr.get_text(" ", strip=True).lower()
                if "ftr" in text and "gf" in text:
                    data_started = True
                    saw_header = True
                continue

            cells = tr.find_all("td")
            if data_started and len(cells) >= 5:
                record = row_to_record([c.get_text(" ", strip=True) for c in cells], year_key, fiscal_year)
                if record is not None:
                    records.append(record)

        if records:
            return records

    if not saw_header:
        logger.warning("No salary table (FTR/GF header) found on page")
    return records


class TableScraper:
    """
    Fetch and parse every result page for one department.

    Args:
        fetcher: Fetcher used for every request
        base_url: Site root, e.g. https://www.umsalary.info
        delay_s: Politeness delay before each request
        sleep: Sleep function (replaced in tests)
    """

    def __init__(
        self,
        fetcher: Fetcher,
        base_url: str = "https://www.umsalary.info",
        delay_s: float = 1.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher
        self.base_url = base_url
        self.delay_s = delay_s
        self._sleep = sleep

    def pause(self) -> None:
        if self.delay_s > 0:
            self._sleep(self.delay_s)

    def fetch_pages(self, dept: DepartmentEntry, year_key: int) -> List[str]:
        """
        Fetch page 1, read the page count, then fetch pages 2..N in order.

        Raises:
            FetchError: If any page cannot be fetched
        """
        self.pause()
        first = self.fetcher.fetch_text(dept_search_url(self.base_url, dept.source_encoded_id, year_key))
        pages = [first]
        total_pages = parse_total_pages(first)

        for page in range(2, total_pages + 1):
            self.pause()
            pages.append(self.fetcher.fetch_text(
                dept_search_url(self.base_url, dept.source_encoded_id, year_key, page=page)
            ))
        return pages

    @staticmethod
    def parse_pages(pages: List[str], year_key: int) -> List[SalaryRecord]:
        fiscal_year = fiscal_year_label(year_key)
        records: List[SalaryRecord] = []
        for html in pages:
            records.extend(parse_salary_table(html, year_key, fiscal_year))
        return records

    def scrape_department(self, dept: DepartmentEntry, year_key: int) -> List[SalaryRecord]:
        """All rows for one department across all pages."""
        return self.parse_pages(self.fetch_pages(dept, year_key), year_key)
