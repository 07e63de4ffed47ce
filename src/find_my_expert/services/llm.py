"""Generic LLM call helpers."""

import base64
import logging
from functools import lru_cache
from typing import Any, AsyncIterator

import httpx
from anthropic import APIError, AsyncAnthropic, NOT_GIVEN
from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import BaseModel

from find_my_expert.config import get_settings
from find_my_expert.errors import TransportFailure
from find_my_expert.models.search import Source
from find_my_expert.services.parsing import extract_sources

load_dotenv()

logger = logging.getLogger(__name__)


class SearchResponse(BaseModel):
    """Text of a search-grounded response plus the web sources it drew on."""

    text: str
    sources: list[Source] = []


@lru_cache
def get_client() -> AsyncAnthropic:
    return AsyncAnthropic(api_key=get_settings().anthropic_api_key or None)


@lru_cache
def get_image_client() -> genai.Client:
    return genai.Client(api_key=get_settings().google_api_key or None)


def response_text(content: list[Any]) -> str:
    """Concatenate the text blocks of a Messages API response."""
    return "".join(block.text for block in content if getattr(block, "type", None) == "text")


async def _create(model: str, prompt: str, system: str = "", **kwargs: Any) -> Any:
    try:
        return await get_client().messages.create(
            model=model,
            max_tokens=get_settings().max_tokens,
            system=system or NOT_GIVEN,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
    except APIError as e:
        logger.error("LLM call to %s failed: %s", model, e)
        raise TransportFailure(str(e)) from e


async def query_llm(prompt: str, system: str = "") -> str:
    response = await _create(get_settings().llm_model, prompt, system)
    return response_text(response.content)


async def query_small_llm(prompt: str, system: str = "") -> str:
    response = await _create(get_settings().small_llm_model, prompt, system)
    return response_text(response.content)


async def search_llm(prompt: str, system: str = "") -> SearchResponse:
    """Query the main model with server-side web search enabled.

    Returns:
        SearchResponse with the concatenated answer text and the de-duplicated
        web sources the search surfaced.
    """
    settings = get_settings()
    response = await _create(
        settings.llm_model,
        prompt,
        system,
        tools=[
            {
                "type": "web_search_20250305",
                "name": "web_search",
                "max_uses": settings.web_search_max_uses,
            }
        ],
    )
    return SearchResponse(
        text=response_text(response.content),
        sources=extract_sources(response.content),
    )


async def stream_llm(messages: list[dict[str, str]], system: str = "") -> AsyncIterator[str]:
    """Yield successive text deltas of the main model's reply to a conversation.

    Args:
        messages: Alternating user/assistant turns, ending with a user turn.
        system:   Optional system prompt.

    Raises:
        TransportFailure: if the call fails before or during streaming.
    """
    settings = get_settings()
    try:
        async with get_client().messages.stream(
            model=settings.llm_model,
            max_tokens=settings.max_tokens,
            system=system or NOT_GIVEN,
            messages=messages,
        ) as stream:
            async for text in stream.text_stream:
                yield text
    except APIError as e:
        logger.error("Streaming LLM call failed: %s", e)
        raise TransportFailure(str(e)) from e


async def generate_image(prompt: str) -> str | None:
    """Generate an image and return it as a base64 data URI, or None if no image came back.

    Raises:
        TransportFailure: if the image model call fails.
    """
    try:
        response = await get_image_client().aio.models.generate_content(
            model=get_settings().image_model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(response_modalities=["IMAGE"]),
        )
    except (genai_errors.APIError, httpx.HTTPError, ValueError) as e:
        # httpx errors surface unwrapped once the SDK gives up retrying.
        # ValueError: the client was built without an API key
        logger.error("Image generation failed: %s", e)
        raise TransportFailure(str(e)) from e

    for candidate in response.candidates or []:
        for part in (candidate.content.parts if candidate.content else None) or []:
            if part.inline_data and part.inline_data.data:
                mime_type = part.inline_data.mime_type or "image/png"
                encoded = base64.b64encode(part.inline_data.data).decode("ascii")
                return f"data:{mime_type};base64,{encoded}"
    return None
