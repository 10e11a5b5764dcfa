"""
Rule tables for title/department disambiguation.

Both sources sometimes put a job title in the department column, or append
the department to the title. These tables drive the heuristics in
salary_ingest.normalize.fields. They are ordered: the first matching rule
wins, and ORG_UNIT_RULES is always consulted before TITLE_RULES.

ORG_UNIT_RULES (whitelist)
    Keywords that mark a string as an organizational unit. A whitelist
    match means "this is a department", whatever else matches.

TITLE_RULES (blacklist)
    Role keywords that mark a string as a job title.

DEPARTMENT_PREFIX_RULES
    Tokens that start a department name inside a longer string, e.g. the
    "LSA" in "PROFESSOR LSA History". Used to split titles and, with a
    narrower list, to find the department in compact PDF rows.

These are best-effort pattern matches over source data with no ground
truth: a genuine unit name that only matches a title rule (no whitelist
keyword) will be treated as a title.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class FieldRule:
    """A named, compiled pattern."""

    name: str
    pattern: "re.Pattern[str]"
    description: str = ""

    def search(self, text: str) -> Optional["re.Match[str]"]:
        return self.pattern.search(text)


def _rule(name: str, regex: str, description: str = "") -> FieldRule:
    return FieldRule(name=name, pattern=re.compile(regex, re.IGNORECASE), description=description)


ORG_UNIT_RULES: Tuple[FieldRule, ...] = (
    _rule(
        "org_unit_keyword",
        r"\b(department|office|center|centre|program|admin|services|division|institute|lab|laboratory)\b",
        "Organizational-unit keyword",
    ),
)

TITLE_RULES: Tuple[FieldRule, ...] = (
    _rule("professor", r"professor", "Any professor rank"),
    _rule("scientist", r"\b(research\s+)?scientist\b", "Scientist / research scientist"),
    _rule("teaching_or_coaching", r"\b(coach|lecturer|instructor)\b"),
    _rule("adjunct", r"\badjunct\b"),
    _rule("fellow", r"\b(fellow|postdoc|post-doc)\b", "Fellows and postdocs"),
    _rule("abbrev_rank", r"\b(assoc|asst)\s+(prof|res)", "Abbreviated rank, e.g. ASSOC PROF"),
    _rule("academic_officer", r"\b(acad|academic)\s+.*\s+(ofcr|officer)\b"),
    _rule("rank_prefix", r"^(asst|assoc|assistant|associate)\s+", "Leading rank word"),
    _rule("vice_president", r"\b(vp|vice\s+president)\b"),
    _rule("director_of", r"\b(chief|dir|director)\s+of\b", "Chief/Director of ..."),
    _rule("senior_research", r"^(sr|sr\.|senior)\s+(res|research)\b"),
)

DEPARTMENT_PREFIX_RULES: Tuple[FieldRule, ...] = tuple(
    _rule(token.lower().replace(" ", "_"), r"\s+" + token.replace(" ", r"\s+") + r"\s+")
    for token in (
        "MM", "LSA", "DENT", "Ross", "College", "School of", "Building",
        "OUA", "UMH", "DPSS", "SRC", "CoE", "Dbn",
    )
)

# Prefixes that open the department column in compact PDF rows, in priority order.
COMPACT_DEPARTMENT_PREFIXES: Sequence[str] = (
    "MM", "LSA", "DENT", "Ross", "College", "School of", "Building",
)

MIN_TITLE_CANDIDATE_LEN = 3


def first_match(rules: Sequence[FieldRule], text: str) -> Optional[FieldRule]:
    """Return the first rule whose pattern matches text, in table order."""
    for rule in rules:
        if rule.search(text):
            return rule
    return None
