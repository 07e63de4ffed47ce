"""
Speech voice selection for the interview.

Picks a text-to-speech voice for an expert from whatever voices the
platform offers, matching well-known voice names against the expert's
gender. Always falls back to the first voice in the requested language.
"""

import re
from typing import Sequence

from pydantic import BaseModel

from find_my_expert.constants import FEMALE_VOICE_KEYWORDS, MALE_VOICE_KEYWORDS
from find_my_expert.models.expert import Gender

_MARKDOWN_EMPHASIS_RE = re.compile(r"\*\*|__|[*_]")


class Voice(BaseModel):
    name: str
    lang: str


def _matches(voice: Voice, keywords: Sequence[str]) -> bool:
    # Whole words only: "male" must not match "Female"
    name = voice.name.lower()
    return any(re.search(rf"\b{re.escape(kw)}\b", name) for kw in keywords)


def select_voice(voices: Sequence[Voice], gender: Gender, lang: str = "en") -> Voice | None:
    """
    Choose the best voice for an expert.

    Order of preference:
        1. a voice whose name suggests the expert's gender, "Google" voices first
        2. a voice whose name does not suggest the other gender
        3. the first voice in the language
    Returns None when no voice matches the language.
    """
    lang_voices = [v for v in voices if v.lang.startswith(lang)]
    if not lang_voices:
        return None

    if gender == Gender.FEMALE:
        preferred, opposite = FEMALE_VOICE_KEYWORDS, MALE_VOICE_KEYWORDS
    elif gender == Gender.MALE:
        preferred, opposite = MALE_VOICE_KEYWORDS, FEMALE_VOICE_KEYWORDS
    else:
        return lang_voices[0]

    matching = [v for v in lang_voices if _matches(v, preferred)]
    if matching:
        return next((v for v in matching if "google" in v.name.lower()), matching[0])

    neutral = [v for v in lang_voices if not _matches(v, opposite)]
    return neutral[0] if neutral else lang_voices[0]


def clean_for_speech(text: str) -> str:
    """Strip markdown emphasis markers (**, __, *, _) before speaking."""
    return _MARKDOWN_EMPHASIS_RE.sub("", text)
