"""
Fiscal year helpers.

year_key is an ordinal: 0 is the most recent fiscal year, each step back
is one year older. Labels follow the University's "2024-25" style.
"""

from typing import List

from salary_ingest.core.errors import ConfigurationError

FISCAL_YEARS: List[str] = [
    "2025-26", "2024-25", "2023-24", "2022-23", "2021-22", "2020-21",
    "2019-20", "2018-19", "2017-18", "2016-17", "2015-16", "2014-15",
    "2013-14", "2012-13", "2011-12", "2010-11", "2009-10", "2008-09",
    "2007-08", "2006-07", "2005-06", "2004-05", "2003-04", "2002-03",
]


def fiscal_year_label(year_key: int) -> str:
    """
    Map a year_key to its display label.

    Args:
        year_key: 0 = most recent fiscal year

    Returns:
        Label such as "2024-25"

    Raises:
        ConfigurationError: If year_key is outside the known range

    Example:
        >>> fiscal_year_label(1)
        '2024-25'
    """
    if not isinstance(year_key, int) or year_key < 0 or year_key >= len(FISCAL_YEARS):
        raise ConfigurationError(
            f"year_key must be between 0 and {len(FISCAL_YEARS) - 1}, got {year_key!r}"
        )
    return FISCAL_YEARS[year_key]


def year_key_for_label(label: str) -> int:
    """
    Inverse of fiscal_year_label.

    Example:
        >>> year_key_for_label("2021-22")
        4
    """
    try:
        return FISCAL_YEARS.index(label.strip())
    except ValueError:
        raise ConfigurationError(f"Unknown fiscal year label: {label!r}") from None
