"""
URL helpers for the umsalary.info source.

The roster links look like deptsearch.php?Dept=LSA+History&Year=0. The raw
Dept value is kept as the department's source id and sent back verbatim;
the decoded form is only for display and de-duplication.
"""

from typing import Optional
from urllib.parse import unquote_plus, urlparse

DEPT_LIST_PATH = "dept_list.php"
DEPT_SEARCH_PATH = "deptsearch.php"


def dept_list_url(base_url: str) -> str:
    """
    Build the roster URL.

    Example:
        >>> dept_list_url("https://www.umsalary.info/")
        'https://www.umsalary.info/dept_list.php'
    """
    return f"{base_url.rstrip('/')}/{DEPT_LIST_PATH}"


def dept_search_url(base_url: str, encoded_id: str, year_key: int, page: int = 1) -> str:
    """
    Build a per-department result page URL.

    Page 1 carries no page parameter.

    Example:
        >>> dept_search_url("https://www.umsalary.info", "LSA+History", 2, page=3)
        'https://www.umsalary.info/deptsearch.php?Dept=LSA+History&Year=2&page=3'
    """
    url = f"{base_url.rstrip('/')}/{DEPT_SEARCH_PATH}?Dept={encoded_id}&Year={year_key}"
    if page > 1:
        url += f"&page={page}"
    return url


def extract_dept_param(href: str) -> Optional[str]:
    """
    Return the raw (still encoded) Dept value from a roster href.

    Example:
        >>> extract_dept_param("deptsearch.php?Dept=LSA+History&Year=0")
        'LSA+History'
        >>> extract_dept_param("/about.php") is None
        True
    """
    if not href:
        return None
    query = urlparse(href).query
    for part in query.split("&"):
        name, sep, value = part.partition("=")
        if sep and name == "Dept" and value:
            return value
    return None


def decode_dept_param(encoded: str) -> str:
    """
    Decode a Dept value for display ('+' is a space).

    Example:
        >>> decode_dept_param("Ross+School%20of+Bus")
        'Ross School of Bus'
    """
    return unquote_plus(encoded).strip()
