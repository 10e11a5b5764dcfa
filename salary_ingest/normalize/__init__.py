"""
Heuristic title/department normalization.

- rules: ordered rule tables (org-unit whitelist, title blacklist, department prefixes)
- fields: repair_title_leak and split_department_from_title
"""

from salary_ingest.normalize.fields import (
    PLACEHOLDER,
    FieldRepair,
    looks_like_title,
    match_title_rule,
    repair_title_leak,
    split_department_from_title,
)

__all__ = [
    "PLACEHOLDER",
    "FieldRepair",
    "looks_like_title",
    "match_title_rule",
    "repair_title_leak",
    "split_department_from_title",
]
