"""
HTML Roster Parser for umsalary.info's department list.

The list mixes real organizational units with job-title strings; entries
that read like job titles are dropped so their pages are never imported
with title and department swapped.
"""

from dataclasses import dataclass
from typing import List

from bs4 import BeautifulSoup

from salary_ingest.core.logging import get_logger
from salary_ingest.normalize.fields import looks_like_title
from salary_ingest.utils.url_utils import DEPT_SEARCH_PATH, decode_dept_param, extract_dept_param

logger = get_logger(__name__)


@dataclass(frozen=True)
class DepartmentEntry:
    """A department as addressed by the HTML source."""

    display_name: str
    source_encoded_id: str

    def label(self, max_len: int = 40) -> str:
        """Display name shortened for log lines."""
        if len(self.display_name) <= max_len:
            return self.display_name
        return self.display_name[:max_len] + "…"


def parse_department_list(html: str) -> List[DepartmentEntry]:
    """
    Extract departments from the roster page.

    Args:
        html: dept_list.php HTML

    Returns:
        Departments in page order, de-duplicated by decoded name, with
        job-title entries removed

    Example:
        >>> html = '<a href="deptsearch.php?Dept=LSA+History">LSA History</a>'
        >>> parse_department_list(html)
        [DepartmentEntry(display_name='LSA History', source_encoded_id='LSA+History')]
    """
    soup = BeautifulSoup(html, "html.parser")
    seen = set()
    departments: List[DepartmentEntry] = []
    skipped_titles = 0

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if DEPT_SEARCH_PATH not in href:
            continue
        text = anchor.get_text(strip=True)
        encoded = extract_dept_param(href)
        if not text or not encoded:
            continue

        name = decode_dept_param(encoded)
        if name in seen:
            continue
        if looks_like_title(name):
            skipped_titles += 1
            continue

        seen.add(name)
        departments.append(DepartmentEntry(display_name=name, source_encoded_id=encoded))

    if skipped_titles:
        logger.debug(f"Roster: skipped {skipped_titles} entries that look like job titles")
    return departments
