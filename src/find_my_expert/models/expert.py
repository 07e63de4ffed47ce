"""
Pydantic models for discovered experts.

These are the data contracts between the response parser and the
presentation layer. Callers receive these models - they never see raw
model output.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class Expert(BaseModel):
    """One academic expert parsed from a discovery response."""

    id: str  # "<Name-With-Hyphens>-<ordinal>", unique within one search only
    name: str = Field(min_length=1)
    university: str = Field(min_length=1)
    department: str = Field(min_length=1)
    expertise: str = Field(min_length=1)
    gender: Gender = Gender.UNKNOWN
    justification: str | None = None
    image_url: str | None = None

    @field_validator("name", "university", "department", "expertise", mode="before")
    @classmethod
    def strip_required(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: Any) -> Gender:
        """Lowercase recognised values; anything else is unknown."""
        if isinstance(v, Gender):
            return v
        if isinstance(v, str):
            try:
                return Gender(v.strip().lower())
            except ValueError:
                pass
        return Gender.UNKNOWN

    @property
    def last_name(self) -> str:
        return self.name.split(" ")[-1]


class ExpertDetails(BaseModel):
    """Publications and projects for one expert.

    Both lists are always present. Values that are not lists are coerced to
    an empty list and non-string items are dropped, since the model's JSON
    shape is not guaranteed.
    """

    publications: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)

    @field_validator("publications", "projects", mode="before")
    @classmethod
    def coerce_string_list(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, str)]
