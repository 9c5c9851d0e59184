from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from campusvote.config import VALID_YEARS


def _clean_candidates(candidates: List[str]) -> List[str]:
    cleaned = [str(c).strip() for c in candidates]
    if not cleaned:
        raise ValueError("at least one candidate is required")
    if any(not c for c in cleaned):
        raise ValueError("candidate names cannot be blank")
    if len(set(cleaned)) != len(cleaned):
        raise ValueError("candidate names must be unique")
    return cleaned


def _clean_year(v):
    v = str(v).strip()
    if v not in VALID_YEARS:
        raise ValueError("target year must be 1, 2, 3, or 4")
    return v


def _clean_target(v):
    if v is None:
        return ""
    return str(v).strip().upper()


class PollCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1)
    description: str = ""
    target_year: str
    target_section: str = ""
    target_department: str = Field(..., min_length=1)
    candidates: List[str]

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("title cannot be blank")
        return v.strip()

    @field_validator("target_year", mode="before")
    @classmethod
    def year_is_valid(cls, v):
        return _clean_year(v)

    @field_validator("target_section", "target_department", mode="before")
    @classmethod
    def target_upper(cls, v):
        return _clean_target(v)

    @field_validator("candidates")
    @classmethod
    def candidates_are_valid(cls, v):
        return _clean_candidates(v)


class PollUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    target_year: Optional[str] = None
    target_section: Optional[str] = None
    target_department: Optional[str] = None
    candidates: Optional[List[str]] = None

    @field_validator("target_year", mode="before")
    @classmethod
    def year_is_valid(cls, v):
        return None if v is None else _clean_year(v)

    @field_validator("target_section", "target_department", mode="before")
    @classmethod
    def target_upper(cls, v):
        return None if v is None else _clean_target(v)

    @field_validator("candidates")
    @classmethod
    def candidates_are_valid(cls, v):
        return None if v is None else _clean_candidates(v)


class PollToggle(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_active: bool
