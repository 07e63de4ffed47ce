"""
Response normalizer.

Turns raw model output into validated records:

    - delimited prose ("Name: ...\\nUniversity: ...\\n---") -> list[Expert]
    - fenced or bare JSON -> ExpertDetails / list[str]
    - web search citations -> list[Source]

The discovery format is an informal contract with the model, so field
extraction never raises: blocks that are missing a required field are
dropped. JSON parsing is the exception: invalid JSON raises
MalformedResponse and each caller decides whether that is fatal.
"""

import json
import logging
import re
from typing import Any, Iterable

from find_my_expert.constants import (
    EXPERT_LABELS,
    IMAGE_URL_SENTINEL,
    RECORD_SEPARATOR,
    REQUIRED_EXPERT_LABELS,
    UNTITLED_SOURCE,
)
from find_my_expert.errors import MalformedResponse
from find_my_expert.models.expert import Expert, ExpertDetails
from find_my_expert.models.search import Source

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

# Labels that own the rest of their line.
_LINE_LABELS = ("Name", "University", "Department", "Gender", "ImageUrl")
_LINE_PATTERNS = {
    label: re.compile(rf"^[ \t]*{label}:[ \t]*(.*)$", re.MULTILINE)
    for label in _LINE_LABELS
}
_NEXT_LABEL = "|".join(label for label in EXPERT_LABELS if label != "Expertise")
_EXPERTISE_RE = re.compile(
    rf"^[ \t]*Expertise:\s*([\s\S]*?)(?=^[ \t]*(?:{_NEXT_LABEL}):|\Z)", re.MULTILINE
)
_JUSTIFICATION_RE = re.compile(r"^[ \t]*Justification:\s*([\s\S]*)", re.MULTILINE)


def expert_id(name: str, ordinal: int) -> str:
    """Build the per-search identifier: whitespace runs become hyphens, case kept."""
    return f"{_WHITESPACE_RE.sub('-', name.strip())}-{ordinal}"


def _extract_fields(block: str) -> dict[str, str]:
    """Pull every recognised label out of one block. Missing labels are absent."""
    fields: dict[str, str] = {}
    for label, pattern in _LINE_PATTERNS.items():
        match = pattern.search(block)
        if match:
            fields[label] = match.group(1).strip()

    match = _EXPERTISE_RE.search(block)
    if match:
        fields["Expertise"] = match.group(1).strip()

    match = _JUSTIFICATION_RE.search(block)
    if match:
        fields["Justification"] = match.group(1).strip()

    return fields


def _normalize_image_url(value: str | None) -> str | None:
    if not value or value == IMAGE_URL_SENTINEL:
        return None
    return value


def parse_expert_blocks(raw_text: str) -> list[Expert]:
    """Parse a discovery response into experts, in source (relevance) order.

    Args:
        raw_text: Model output with one labelled block per expert, blocks
                  separated by '---'.

    Returns:
        One Expert per block that has non-blank Name, University, Department
        and Expertise. Other blocks are skipped. Empty input returns [].
    """
    if not raw_text:
        return []

    experts: list[Expert] = []
    blocks = [b for b in raw_text.split(RECORD_SEPARATOR) if b.strip()]

    for block in blocks:
        fields = _extract_fields(block)
        missing = [label for label in REQUIRED_EXPERT_LABELS if not fields.get(label)]
        if missing:
            logger.debug("Dropping expert block missing %s", ", ".join(missing))
            continue

        experts.append(
            Expert(
                id=expert_id(fields["Name"], len(experts)),
                name=fields["Name"],
                university=fields["University"],
                department=fields["Department"],
                expertise=fields["Expertise"],
                gender=fields.get("Gender"),
                justification=fields.get("Justification") or None,
                image_url=_normalize_image_url(fields.get("ImageUrl")),
            )
        )

    logger.debug("Parsed %d of %d expert blocks", len(experts), len(blocks))
    return experts


def strip_fence(raw_text: str) -> str:
    """Return the contents of a ```json fence if present, else the trimmed text.

    The fence may sit anywhere in the text, so unfenced JSON whose string
    values contain triple backticks is cut down to the backtick span.
    Models asked for a fenced envelope rarely do this, and the same loose
    match is what the web app used.
    """
    text = raw_text.strip()
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1)
    return text


def parse_json_envelope(raw_text: str) -> Any:
    """Parse model output as JSON, tolerating a markdown code fence.

    Raises:
        MalformedResponse: if the (fence-stripped) text is not valid JSON.
    """
    text = strip_fence(raw_text)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponse(raw_text, str(e)) from e


def parse_detail_envelope(raw_text: str) -> ExpertDetails:
    """Parse a detail response. Missing or non-list keys become empty lists.

    Raises:
        MalformedResponse: if the text is not valid JSON.
    """
    data = parse_json_envelope(raw_text)
    if not isinstance(data, dict):
        logger.warning("Detail response was %s, not an object", type(data).__name__)
        return ExpertDetails()
    return ExpertDetails(
        publications=data.get("publications", []),
        projects=data.get("projects", []),
    )


def parse_string_array_envelope(raw_text: str) -> list[str]:
    """Parse a JSON array of strings. A non-array value becomes [].

    Raises:
        MalformedResponse: if the text is not valid JSON.
    """
    data = parse_json_envelope(raw_text)
    if not isinstance(data, list):
        logger.warning("Expected a JSON array, got %s", type(data).__name__)
        return []
    return [item for item in data if isinstance(item, str)]


def _source_candidates(content: Iterable[Any]) -> Iterable[tuple[str | None, str | None]]:
    for block in content:
        block_type = getattr(block, "type", None)
        if block_type == "web_search_tool_result":
            results = getattr(block, "content", None)
            # An error result is a single object rather than a list
            if isinstance(results, list):
                for result in results:
                    yield getattr(result, "url", None), getattr(result, "title", None)
        elif block_type == "text":
            for citation in getattr(block, "citations", None) or []:
                yield getattr(citation, "url", None), getattr(citation, "title", None)


def extract_sources(content: Iterable[Any]) -> list[Source]:
    """Collect grounding sources from the content blocks of a search-enabled response.

    Entries without a URI are skipped, duplicates keep their first position,
    and a missing title becomes "Untitled".
    """
    sources: list[Source] = []
    seen: set[str] = set()
    for uri, title in _source_candidates(content):
        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(Source(uri=uri, title=title or UNTITLED_SOURCE))
    return sources
