"""
Pydantic models for the canonical salary schema.

SalaryRow is what a parser produces; SalaryRecord adds the fiscal year and
is what the Batch Loader writes. Over-long strings are truncated to the
column sizes of the salary_records table.
"""

from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, ConfigDict

CAMPUS_IDS: Dict[str, int] = {
    "UM_ANN-ARBOR": 1,
    "UM_DEARBOR": 2,
    "UM_FLINT": 3,
}
DEFAULT_CAMPUS = "UM_ANN-ARBOR"

# Column sizes in salary_records
MAX_LEN: Dict[str, int] = {
    "last_name": 255,
    "first_name": 255,
    "title": 500,
    "department": 500,
    "period_fte": 50,
    "campus": 100,
}

# Identity tuple: one row per (person, title, department, year)
IDENTITY_COLUMNS: Tuple[str, ...] = ("last_name", "first_name", "title", "department", "year_key")


def campus_id_for(campus: str) -> int:
    """Campus code to small integer id; unknown codes map to Ann Arbor."""
    return CAMPUS_IDS.get(campus, CAMPUS_IDS[DEFAULT_CAMPUS])


class SalaryRow(BaseModel):
    """
    One parsed person/appointment, before a fiscal year is attached.
    """
    last_name: str = Field(..., min_length=1, description="Family name")
    first_name: str = Field(default="", description="Given name(s)")
    title: str = Field(default="", description="Appointment title")
    department: str = Field(default="", description="Appointing department")

    campus: str = Field(default=DEFAULT_CAMPUS, description="Campus code")
    campus_id: int = Field(default=1, ge=0, description="Campus id (1 Ann Arbor, 2 Dearborn, 3 Flint)")

    ftr: float = Field(default=0.0, ge=0, description="Annual full-time rate")
    gf: float = Field(default=0.0, ge=0, description="Portion paid from general fund")
    period_fte: str = Field(default="12-Month1.00", description="Basis and appointment fraction")

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    @field_validator("last_name", "first_name", "title", "department", "campus", "period_fte", mode="after")
    @classmethod
    def truncate_to_column(cls, v: str, info) -> str:
        """Clip strings to the column size."""
        max_len = MAX_LEN.get(info.field_name)
        if max_len and len(v) > max_len:
            return v[:max_len]
        return v

    @field_validator("ftr", "gf", mode="before")
    @classmethod
    def round_money(cls, v: Any) -> Any:
        """Store money with two decimals."""
        if isinstance(v, (int, float)):
            return round(float(v), 2)
        return v


class SalaryRecord(SalaryRow):
    """
    Canonical salary record as stored.

    Identity: (last_name, first_name, title, department, year_key).
    """
    fiscal_year: str = Field(..., min_length=1, description="Display label, e.g. 2024-25")
    year_key: int = Field(..., ge=0, description="0 = most recent fiscal year")

    @classmethod
    def from_row(cls, row: SalaryRow, year_key: int, fiscal_year: str) -> "SalaryRecord":
        """
        Attach a fiscal year to a parsed row.

        Args:
            row: Parsed row
            year_key: Ordinal fiscal year (0 = latest)
            fiscal_year: Display label for year_key

        Returns:
            SalaryRecord ready for the Batch Loader
        """
        return cls(**row.model_dump(), year_key=year_key, fiscal_year=fiscal_year)

    @property
    def identity(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, col) for col in IDENTITY_COLUMNS)

    def to_row(self) -> Dict[str, Any]:
        """Column dict for insertion."""
        return self.model_dump()


class StoredSalaryRow(BaseModel):
    """Subset of a stored row read back by the repair pass."""
    id: Any
    last_name: str
    first_name: Optional[str] = None
    title: Optional[str] = None
    department: Optional[str] = None
    year_key: int

    model_config = ConfigDict(extra="ignore")
