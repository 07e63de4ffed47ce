"""
Expert search orchestration.

One search makes a single mandatory discovery call, then fans out the
best-effort follow-ups (search suggestions and background art) in
parallel. Expert details are fetched lazily, one expert at a time, and
memoised for the lifetime of the result set.

Only discovery and details are critical: their failures propagate as
TransportFailure / MalformedResponse. Every other call logs its failure
and degrades to an empty value.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from find_my_expert.constants import NO_RESULTS_MESSAGE
from find_my_expert.errors import ExpertSearchError
from find_my_expert.models.expert import Expert, ExpertDetails
from find_my_expert.models.search import Filters, SortOrder, Source
from find_my_expert.services.llm import (
    generate_image,
    query_small_llm,
    search_llm,
)
from find_my_expert.services.parsing import (
    parse_detail_envelope,
    parse_expert_blocks,
    parse_string_array_envelope,
)
from find_my_expert.services.prompts import (
    compose_background_image_prompt,
    compose_detail_prompt,
    compose_discovery_prompt,
    compose_interview_suggestions_prompt,
    compose_suggestions_prompt,
    compose_trending_prompt,
)
from find_my_expert.utils.preferences import PreferencesStore

logger = logging.getLogger(__name__)


class DiscoveryResult(BaseModel):
    experts: list[Expert] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Everything one search produced. `error` is set for no-results and transport failures."""

    query: str
    filters: Filters = Field(default_factory=Filters)
    experts: list[Expert] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    background_image_url: str | None = None
    error: str | None = None


# ── Critical calls ───────────────────────────────────────────────────────────


async def find_experts(subject: str, filters: Filters | None = None) -> DiscoveryResult:
    """Run the discovery call and parse the experts and grounding sources.

    Raises:
        TransportFailure: if the model call fails.
    """
    response = await search_llm(compose_discovery_prompt(subject, filters))
    experts = parse_expert_blocks(response.text)
    logger.info(f"Discovery for '{subject}' returned {len(experts)} experts")
    return DiscoveryResult(experts=experts, sources=response.sources)


async def get_expert_details(expert: Expert) -> ExpertDetails:
    """Fetch publications and projects for one expert.

    Raises:
        TransportFailure: if the model call fails.
        MalformedResponse: if the model did not return valid JSON.
    """
    response = await search_llm(compose_detail_prompt(expert))
    return parse_detail_envelope(response.text)


# ── Best-effort calls ────────────────────────────────────────────────────────


async def _string_list(prompt: str, what: str) -> list[str]:
    try:
        return parse_string_array_envelope(await query_small_llm(prompt))
    except ExpertSearchError as e:
        logger.warning(f"Could not get {what}: {e}")
        return []
    except Exception:
        logger.exception(f"Unexpected error getting {what}")
        return []


async def get_search_suggestions(subject: str) -> list[str]:
    return await _string_list(compose_suggestions_prompt(subject), "search suggestions")


async def get_trending_topics() -> list[str]:
    return await _string_list(compose_trending_prompt(), "trending topics")


async def get_interview_suggestions(expert: Expert, details: ExpertDetails) -> list[str]:
    return await _string_list(
        compose_interview_suggestions_prompt(expert, details), "interview suggestions"
    )


async def generate_background_image(subject: str) -> str | None:
    try:
        return await generate_image(compose_background_image_prompt(subject))
    except ExpertSearchError as e:
        logger.warning(f"Could not generate background image for '{subject}': {e}")
        return None
    except Exception:
        logger.exception(f"Unexpected error generating background image for '{subject}'")
        return None


# ── Sorting ──────────────────────────────────────────────────────────────────


def sort_experts(experts: list[Expert], order: SortOrder = SortOrder.RELEVANCE) -> list[Expert]:
    """Return experts in the requested order. Relevance keeps the source order."""
    if order == SortOrder.NAME_ASC:
        return sorted(experts, key=lambda e: e.name.casefold())
    if order == SortOrder.NAME_DESC:
        return sorted(experts, key=lambda e: e.name.casefold(), reverse=True)
    if order == SortOrder.UNIVERSITY_ASC:
        return sorted(experts, key=lambda e: e.university.casefold())
    if order == SortOrder.UNIVERSITY_DESC:
        return sorted(experts, key=lambda e: e.university.casefold(), reverse=True)
    return list(experts)


# ── Session ──────────────────────────────────────────────────────────────────


class SearchSession:
    """
    State of the current result set.

    Each call to search() replaces the experts, sources, suggestions,
    background image and detail cache, and bumps `generation`. Results of
    calls started under an older generation are discarded when they land.
    """

    def __init__(self, preferences: PreferencesStore | None = None):
        self.preferences = preferences
        self.generation = 0
        self.result: SearchResult | None = None
        self.sort_order = SortOrder.RELEVANCE
        self.details: dict[str, ExpertDetails] = {}
        self._detail_tasks: dict[str, asyncio.Task[ExpertDetails]] = {}

    @property
    def experts(self) -> list[Expert]:
        return self.result.experts if self.result else []

    def _reset(self, query: str, filters: Filters) -> int:
        self.generation += 1
        self.result = SearchResult(query=query, filters=filters)
        self.sort_order = SortOrder.RELEVANCE
        self.details = {}
        self._detail_tasks = {}
        return self.generation

    async def search(self, query: str, filters: Filters | None = None) -> SearchResult | None:
        """Run a full search. A blank query is ignored and returns None.

        Transport failures and empty results are reported through
        SearchResult.error rather than raised.
        """
        if not query.strip():
            return None

        filters = filters or Filters()
        generation = self._reset(query, filters)
        result = self.result

        try:
            discovery = await find_experts(query, filters)
        except ExpertSearchError as e:
            logger.error(f"Search for '{query}' failed: {e}")
            result.error = e.message
            return result

        if generation != self.generation:
            logger.debug(f"Discarding superseded results for '{query}'")
            return result

        result.experts = discovery.experts
        result.sources = discovery.sources
        if not discovery.experts:
            result.error = NO_RESULTS_MESSAGE
            return result

        suggestions, image_url = await asyncio.gather(
            get_search_suggestions(query), generate_background_image(query)
        )
        if generation == self.generation:
            result.suggestions = suggestions
            result.background_image_url = image_url
        return result

    def get_expert(self, expert_id: str) -> Expert:
        for expert in self.experts:
            if expert.id == expert_id:
                return expert
        raise KeyError(expert_id)

    async def get_details(self, expert_id: str) -> ExpertDetails:
        """Return details for an expert in the current result set, fetching at most once.

        Concurrent requests for the same expert share one model call. A
        failed fetch is not cached, so it can be retried.

        Raises:
            KeyError: if the id is not in the current result set.
            TransportFailure, MalformedResponse: if the fetch fails.
        """
        if expert_id in self.details:
            return self.details[expert_id]

        expert = self.get_expert(expert_id)
        generation = self.generation
        task = self._detail_tasks.get(expert_id)
        if task is None:
            task = asyncio.ensure_future(get_expert_details(expert))
            self._detail_tasks[expert_id] = task

        try:
            details = await task
        finally:
            if self._detail_tasks.get(expert_id) is task:
                del self._detail_tasks[expert_id]

        if generation == self.generation:
            self.details[expert_id] = details
        return details

    def sorted_experts(self, order: SortOrder | None = None) -> list[Expert]:
        return sort_experts(self.experts, order or self.sort_order)

    def toggle_favorite(self, expert_id: str) -> bool:
        """Flip the favourite flag for an expert; returns the new state."""
        if self.preferences is None:
            raise RuntimeError("No preferences store attached to this session")
        return self.preferences.toggle_favorite(expert_id)

    def is_favorite(self, expert_id: str) -> bool:
        return self.preferences is not None and expert_id in self.preferences.favorites
