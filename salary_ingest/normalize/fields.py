"""
Title/department field normalization.

Two operations over the rule tables in salary_ingest.normalize.rules:
- repair_title_leak: a stored department that is really a job title is
  moved into the title column (standalone repair pass over the store)
- split_department_from_title: department text appended to a parsed title
  is split off into the department column (applied by the PDF parsers)
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from salary_ingest.normalize.rules import (
    DEPARTMENT_PREFIX_RULES,
    MIN_TITLE_CANDIDATE_LEN,
    ORG_UNIT_RULES,
    TITLE_RULES,
    FieldRule,
    first_match,
)

PLACEHOLDER = "N/A"

_TRAILING_DASH_RE = re.compile(r"\s*[-–]\s*$")


def match_title_rule(text: Optional[str]) -> Optional[FieldRule]:
    """
    Return the title rule that classifies text as a job title, if any.

    The organizational-unit whitelist is checked first; a whitelist match
    always returns None.

    Example:
        >>> match_title_rule("ASSOC PROFESSOR").name
        'professor'
        >>> match_title_rule("Professor Program Office") is None
        True
    """
    if not text or len(text) < MIN_TITLE_CANDIDATE_LEN:
        return None
    if first_match(ORG_UNIT_RULES, text):
        return None
    return first_match(TITLE_RULES, text)


def looks_like_title(text: Optional[str]) -> bool:
    """True if text reads like a job title rather than a department."""
    return match_title_rule(text) is not None


@dataclass(frozen=True)
class FieldRepair:
    """Result of repair_title_leak."""

    title: str
    department: str
    changed: bool
    rule: Optional[str] = None


def repair_title_leak(title: Optional[str], department: Optional[str]) -> FieldRepair:
    """
    Move a job title found in the department column into the title column.

    Args:
        title: Stored title (may be wrong, e.g. a first name)
        department: Stored department

    Returns:
        FieldRepair with the new values; changed is False when nothing applies

    Example:
        >>> repair_title_leak("Aaron", "ASST PROFESSOR").title
        'ASST PROFESSOR'
    """
    title = title or ""
    department = department or ""
    rule = match_title_rule(department)
    if rule is None:
        return FieldRepair(title=title, department=department, changed=False)
    return FieldRepair(title=department, department="", changed=True, rule=rule.name)


def split_department_from_title(title: Optional[str], department: Optional[str]) -> Tuple[str, str]:
    """
    Split department text out of a title such as "PROFESSOR - LSA History".

    The first prefix rule (in table order) found mid-title splits it: text
    before becomes the title, text from the prefix on becomes the
    department, but only if the department is still empty or N/A. Both
    sides must be at least two characters. Empty results become N/A.

    Example:
        >>> split_department_from_title("PROFESSOR - LSA History", "N/A")
        ('PROFESSOR', 'LSA History')
    """
    t = (title or "").strip()
    d = (department or "").strip()
    if not t:
        return PLACEHOLDER, d or PLACEHOLDER

    for rule in DEPARTMENT_PREFIX_RULES:
        match = rule.search(t)
        if not match:
            continue
        before = _TRAILING_DASH_RE.sub("", t[:match.start()]).strip()
        after = t[match.start():].strip()
        if len(before) >= 2 and len(after) >= 2:
            t = before
            if not d or d == PLACEHOLDER:
                d = after
            break

    return t or PLACEHOLDER, d or PLACEHOLDER
