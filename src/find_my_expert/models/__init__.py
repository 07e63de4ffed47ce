"""Data models for Find My Expert."""

from find_my_expert.models.expert import Expert, ExpertDetails, Gender
from find_my_expert.models.search import Filters, SortOrder, Source

__all__ = ["Expert", "ExpertDetails", "Gender", "Filters", "SortOrder", "Source"]
