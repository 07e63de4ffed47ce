"""Unit tests for expert search orchestration (model calls mocked)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from find_my_expert.constants import NO_RESULTS_MESSAGE, TRANSPORT_FAILURE_MESSAGE
from find_my_expert.errors import MalformedResponse, TransportFailure
from find_my_expert.models.expert import Expert, ExpertDetails
from find_my_expert.models.search import Filters, SortOrder, Source
from find_my_expert.services.expert_search import (
    SearchSession,
    find_experts,
    generate_background_image,
    get_expert_details,
    get_interview_suggestions,
    get_search_suggestions,
    get_trending_topics,
    sort_experts,
)
from find_my_expert.services.llm import SearchResponse
from find_my_expert.utils.preferences import PreferencesStore

MODULE = "find_my_expert.services.expert_search"

DETAILS_JSON = '```json\n{"publications": ["P1"], "projects": ["X1"]}\n```'


def _expert(name: str, university: str, ordinal: int) -> Expert:
    return Expert(
        id=f"{name}-{ordinal}",
        name=name,
        university=university,
        department="D",
        expertise="E",
    )


# ── Critical calls ───────────────────────────────────────────────────────────


async def test_find_experts_parses_text_and_sources(discovery_text):
    sources = [Source(uri="https://a.edu", title="A")]
    mock = AsyncMock(return_value=SearchResponse(text=discovery_text, sources=sources))
    with patch(f"{MODULE}.search_llm", new=mock):
        result = await find_experts("Neural Networks", Filters(state="Ohio"))

    assert [e.name for e in result.experts] == ["Jane Q. Doe", "John Smith"]
    assert result.sources == sources
    prompt = mock.call_args.args[0]
    assert "'Neural Networks'" in prompt
    assert "in the state of Ohio" in prompt


async def test_find_experts_propagates_transport_failure():
    with patch(f"{MODULE}.search_llm", new=AsyncMock(side_effect=TransportFailure("boom"))):
        with pytest.raises(TransportFailure):
            await find_experts("Optics")


async def test_get_expert_details_parses_fenced_json(sample_expert):
    with patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=DETAILS_JSON))):
        details = await get_expert_details(sample_expert)
    assert details == ExpertDetails(publications=["P1"], projects=["X1"])


async def test_get_expert_details_propagates_malformed_response(sample_expert):
    with patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text="{oops"))):
        with pytest.raises(MalformedResponse):
            await get_expert_details(sample_expert)


# ── Best-effort calls ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "call",
    [
        lambda e, d: get_search_suggestions("Optics"),
        lambda e, d: get_trending_topics(),
        lambda e, d: get_interview_suggestions(e, d),
    ],
)
async def test_string_list_calls_return_parsed_list(call, sample_expert, sample_details):
    with patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value='["a", "b"]')):
        assert await call(sample_expert, sample_details) == ["a", "b"]


@pytest.mark.parametrize(
    "side_effect, return_value",
    [
        (TransportFailure("down"), None),
        (None, "not json"),
        (None, '{"not": "a list"}'),
    ],
)
async def test_string_list_calls_degrade_to_empty(side_effect, return_value, sample_expert, sample_details):
    mock = AsyncMock(side_effect=side_effect, return_value=return_value)
    with patch(f"{MODULE}.query_small_llm", new=mock):
        assert await get_search_suggestions("Optics") == []
        assert await get_trending_topics() == []
        assert await get_interview_suggestions(sample_expert, sample_details) == []


async def test_background_image_degrades_to_none():
    with patch(f"{MODULE}.generate_image", new=AsyncMock(side_effect=TransportFailure("down"))):
        assert await generate_background_image("Optics") is None


async def test_background_image_degrades_to_none_on_unexpected_error():
    with patch(f"{MODULE}.generate_image", new=AsyncMock(side_effect=KeyError("candidates"))):
        assert await generate_background_image("Optics") is None


async def test_string_list_calls_degrade_on_unexpected_error(sample_expert, sample_details):
    with patch(f"{MODULE}.query_small_llm", new=AsyncMock(side_effect=RuntimeError("sdk bug"))):
        assert await get_search_suggestions("Optics") == []
        assert await get_trending_topics() == []
        assert await get_interview_suggestions(sample_expert, sample_details) == []


async def test_background_image_returns_data_uri():
    with patch(f"{MODULE}.generate_image", new=AsyncMock(return_value="data:image/png;base64,AAA")):
        assert await generate_background_image("Optics") == "data:image/png;base64,AAA"


# ── Sorting ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "order, expected",
    [
        (SortOrder.RELEVANCE, ["carol", "Alice", "Bob"]),
        (SortOrder.NAME_ASC, ["Alice", "Bob", "carol"]),
        (SortOrder.NAME_DESC, ["carol", "Bob", "Alice"]),
        (SortOrder.UNIVERSITY_ASC, ["Bob", "carol", "Alice"]),
        (SortOrder.UNIVERSITY_DESC, ["Alice", "carol", "Bob"]),
    ],
)
def test_sort_experts(order, expected):
    experts = [
        _expert("carol", "MIT", 0),
        _expert("Alice", "Yale", 1),
        _expert("Bob", "Harvard", 2),
    ]
    assert [e.name for e in sort_experts(experts, order)] == expected
    # Input is never reordered in place
    assert [e.name for e in experts] == ["carol", "Alice", "Bob"]


# ── SearchSession ────────────────────────────────────────────────────────────


@pytest.fixture
def session(tmp_path) -> SearchSession:
    return SearchSession(PreferencesStore(tmp_path / "prefs.json"))


class TestSearchSession:
    async def test_search_populates_result(self, session, discovery_text):
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value='["Deep RL"]')),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value="data:image/png;base64,AAA")),
        ):
            result = await session.search("Neural Networks")

        assert result.error is None
        assert result.query == "Neural Networks"
        assert [e.id for e in result.experts] == ["Jane-Q.-Doe-0", "John-Smith-1"]
        assert result.suggestions == ["Deep RL"]
        assert result.background_image_url == "data:image/png;base64,AAA"
        assert session.generation == 1

    async def test_blank_query_is_ignored(self, session):
        with patch(f"{MODULE}.search_llm", new=AsyncMock()) as mock:
            assert await session.search("   ") is None
        mock.assert_not_called()
        assert session.generation == 0

    async def test_no_results_sets_message_and_skips_follow_ups(self, session):
        suggestions = AsyncMock(return_value='["x"]')
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text="Sorry, none."))),
            patch(f"{MODULE}.query_small_llm", new=suggestions),
        ):
            result = await session.search("Obscure")

        assert result.experts == []
        assert result.error == NO_RESULTS_MESSAGE
        suggestions.assert_not_called()

    async def test_transport_failure_sets_error(self, session):
        with patch(f"{MODULE}.search_llm", new=AsyncMock(side_effect=TransportFailure("503"))):
            result = await session.search("Optics")
        assert result.error == TRANSPORT_FAILURE_MESSAGE
        assert result.experts == []

    async def test_failed_follow_ups_do_not_affect_experts(self, session, discovery_text):
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(side_effect=TransportFailure("x"))),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value="data:image/png;base64,BBB")),
        ):
            result = await session.search("Neural Networks")

        assert len(result.experts) == 2
        assert result.error is None
        assert result.suggestions == []
        assert result.background_image_url == "data:image/png;base64,BBB"

    async def test_unexpected_follow_up_errors_do_not_affect_experts(self, session, discovery_text):
        request = httpx.Request("POST", "https://generativelanguage.googleapis.com")
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(side_effect=RuntimeError("sdk bug"))),
            patch(
                f"{MODULE}.generate_image",
                new=AsyncMock(side_effect=httpx.ConnectError("dns failure", request=request)),
            ),
        ):
            result = await session.search("AI")

        assert len(result.experts) == 2
        assert result.error is None
        assert result.suggestions == []
        assert result.background_image_url is None

    async def test_image_network_failure_does_not_affect_experts(self, session, discovery_text):
        image_client = MagicMock()
        image_client.aio.models.generate_content = AsyncMock(side_effect=httpx.ConnectError("dns failure"))
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value='["Deep RL"]')),
            patch("find_my_expert.services.llm.get_image_client", return_value=image_client),
        ):
            result = await session.search("AI")

        assert len(result.experts) == 2
        assert result.suggestions == ["Deep RL"]
        assert result.background_image_url is None

    async def test_new_search_resets_state(self, session, discovery_text):
        search = AsyncMock(return_value=SearchResponse(text=discovery_text))
        with (
            patch(f"{MODULE}.search_llm", new=search),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value="[]")),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value=None)),
        ):
            await session.search("First")
            session.sort_order = SortOrder.NAME_DESC
            session.details["Jane-Q.-Doe-0"] = ExpertDetails(publications=["old"])

            await session.search("Second")

        assert session.sort_order == SortOrder.RELEVANCE
        assert session.details == {}
        assert session.result.query == "Second"
        assert session.generation == 2

    async def test_superseded_search_results_are_discarded(self, session, discovery_text):
        release_first = asyncio.Event()

        async def slow_then_fast(prompt: str) -> SearchResponse:
            if "'First'" in prompt:
                await release_first.wait()
                return SearchResponse(text="Name: Stale\nUniversity: U\nDepartment: D\nExpertise: E")
            return SearchResponse(text=discovery_text)

        with (
            patch(f"{MODULE}.search_llm", new=slow_then_fast),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value="[]")),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value=None)),
        ):
            first = asyncio.create_task(session.search("First"))
            await asyncio.sleep(0)
            await session.search("Second")
            release_first.set()
            stale = await first

        assert stale.experts == []
        assert [e.name for e in session.experts] == ["Jane Q. Doe", "John Smith"]
        assert session.result.query == "Second"

    async def test_details_are_memoised(self, session, discovery_text):
        detail_call = AsyncMock(return_value=SearchResponse(text=DETAILS_JSON))
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value="[]")),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value=None)),
        ):
            await session.search("Neural Networks")

        with patch(f"{MODULE}.search_llm", new=detail_call):
            first = await session.get_details("John-Smith-1")
            second = await session.get_details("John-Smith-1")

        assert first == second == ExpertDetails(publications=["P1"], projects=["X1"])
        detail_call.assert_awaited_once()

    async def test_concurrent_detail_requests_share_one_call(self, session, discovery_text):
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value="[]")),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value=None)),
        ):
            await session.search("Neural Networks")

        detail_call = AsyncMock(return_value=SearchResponse(text=DETAILS_JSON))
        with patch(f"{MODULE}.search_llm", new=detail_call):
            a, b = await asyncio.gather(
                session.get_details("Jane-Q.-Doe-0"), session.get_details("Jane-Q.-Doe-0")
            )

        assert a == b
        detail_call.assert_awaited_once()

    async def test_failed_details_are_not_cached(self, session, discovery_text):
        with (
            patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=discovery_text))),
            patch(f"{MODULE}.query_small_llm", new=AsyncMock(return_value="[]")),
            patch(f"{MODULE}.generate_image", new=AsyncMock(return_value=None)),
        ):
            await session.search("Neural Networks")

        with patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text="not json"))):
            with pytest.raises(MalformedResponse):
                await session.get_details("Jane-Q.-Doe-0")
        assert "Jane-Q.-Doe-0" not in session.details

        with patch(f"{MODULE}.search_llm", new=AsyncMock(return_value=SearchResponse(text=DETAILS_JSON))):
            details = await session.get_details("Jane-Q.-Doe-0")
        assert details.publications == ["P1"]

    async def test_unknown_expert_id(self, session):
        with pytest.raises(KeyError):
            await session.get_details("Nobody-0")

    def test_favorites(self, session):
        assert session.toggle_favorite("Ada-0") is True
        assert session.is_favorite("Ada-0")
        assert session.toggle_favorite("Ada-0") is False
        assert not session.is_favorite("Ada-0")

    def test_favorites_without_store(self):
        session = SearchSession()
        assert not session.is_favorite("Ada-0")
        with pytest.raises(RuntimeError):
            session.toggle_favorite("Ada-0")
