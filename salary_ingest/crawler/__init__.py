"""
Crawler module for the umsalary.info HTML source.

Module Structure:
- fetcher: HTTP GET with bounded retries
- roster: department list parsing
- table_scraper: paginated per-department result pages
"""

from salary_ingest.crawler.fetcher import Fetcher, USER_AGENT
from salary_ingest.crawler.roster import DepartmentEntry, parse_department_list
from salary_ingest.crawler.table_scraper import (
    TableScraper,
    parse_salary_table,
    parse_total_pages,
    split_name,
)

__all__ = [
    "Fetcher",
    "USER_AGENT",
    "DepartmentEntry",
    "parse_department_list",
    "TableScraper",
    "parse_salary_table",
    "parse_total_pages",
    "split_name",
]
