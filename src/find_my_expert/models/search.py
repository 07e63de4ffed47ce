"""Pydantic models for search inputs and grounding sources."""

from enum import Enum

from pydantic import BaseModel

from find_my_expert.constants import UNTITLED_SOURCE


class Filters(BaseModel):
    """Optional free-text criteria that shape the discovery prompt."""

    university: str = ""
    department: str = ""
    keywords: str = ""
    country: str = ""
    state: str = ""
    zip_code: str = ""


class Source(BaseModel):
    """A web citation returned alongside a search-grounded response."""

    uri: str
    title: str = UNTITLED_SOURCE


class SortOrder(str, Enum):
    RELEVANCE = "relevance"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    UNIVERSITY_ASC = "university-asc"
    UNIVERSITY_DESC = "university-desc"
