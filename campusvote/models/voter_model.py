from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from campusvote.config import VALID_YEARS


def _upper(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().upper()


class VoterIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reg_no: str
    name: str
    email: str
    year: str
    section: str = ""
    department: str
    password: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, v):
        return str(v).strip() if v is not None else v


class VoterUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reg_no: str
    name: Optional[str] = None
    email: Optional[str] = None
    year: Optional[str] = None
    section: Optional[str] = None
    department: Optional[str] = None
    has_voted: Optional[bool] = None

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, v):
        return str(v).strip() if v is not None else v


class VoterFilter(BaseModel):
    model_config = ConfigDict(extra="forbid")

    year: Optional[str] = None
    section: Optional[str] = None
    department: Optional[str] = None
    reg_no: Optional[str] = None
    email: Optional[str] = None

    def to_query(self) -> dict:
        query = {}
        if self.year:
            query["year"] = str(self.year).strip()
        if self.section:
            query["section"] = _upper(self.section)
        if self.department:
            query["department"] = _upper(self.department)
        if self.reg_no:
            query["reg_no"] = _upper(self.reg_no)
        if self.email:
            query["email"] = self.email.strip().lower()
        return query


class GroupKey(BaseModel):
    """Structured address of a voter group: year, optionally narrowed by
    section and/or department."""

    model_config = ConfigDict(extra="forbid")

    year: str
    section: Optional[str] = None
    department: Optional[str] = None

    @field_validator("year")
    @classmethod
    def year_is_valid(cls, v):
        v = str(v).strip()
        if v not in VALID_YEARS:
            raise ValueError("year must be 1, 2, 3, or 4")
        return v

    @field_validator("section", "department")
    @classmethod
    def blank_is_none(cls, v):
        v = _upper(v)
        return v or None

    @property
    def kind(self) -> str:
        if self.section and self.department:
            return "year-section-department"
        if self.section:
            return "year-section"
        if self.department:
            return "year-department"
        return "year"

    def to_query(self) -> dict:
        query = {"year": self.year}
        if self.section:
            query["section"] = self.section
        if self.department:
            query["department"] = self.department
        return query

    def label(self) -> str:
        return "-".join(part for part in (self.year, self.section, self.department) if part)


BulkAction = Literal["send-credentials", "reset-passwords", "mark-voted", "mark-not-voted", "delete"]
GroupBy = Literal["none", "year", "year-section"]


class BulkActionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: BulkAction
    voter_ids: List[str] = Field(default_factory=list)
    filters: Optional[VoterFilter] = None

    @model_validator(mode="after")
    def filters_limited_to_placement(self):
        # bulk selectors address academic placement only
        if self.filters is not None:
            self.filters.reg_no = None
            self.filters.email = None
        return self


class SendCredentialsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    voter_id: Optional[str] = None
