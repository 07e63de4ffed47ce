"""CSV and transcript exports for the current results."""

import re
from datetime import datetime
from typing import Iterable

from pydantic import BaseModel

from find_my_expert.models.expert import Expert

CSV_HEADERS = ("Name", "University", "Department", "Expertise", "Justification")

_WHITESPACE_RE = re.compile(r"\s")


class TranscriptMessage(BaseModel):
    author: str  # "user" or "model"
    text: str


def escape_csv(field: str | None) -> str:
    """Quote a field when it contains a comma, double quote or newline."""
    if field is None:
        return ""
    if any(c in field for c in (",", '"', "\n")):
        return '"' + field.replace('"', '""') + '"'
    return field


def experts_to_csv(experts: Iterable[Expert]) -> str:
    rows = [",".join(CSV_HEADERS)]
    for expert in experts:
        rows.append(
            ",".join(
                escape_csv(value)
                for value in (
                    expert.name,
                    expert.university,
                    expert.department,
                    expert.expertise,
                    expert.justification,
                )
            )
        )
    return "\n".join(rows)


def csv_filename(subject: str) -> str:
    return f"experts-on-{_WHITESPACE_RE.sub('_', subject)}.csv"


def format_transcript(
    expert: Expert, messages: Iterable[TranscriptMessage], when: datetime | None = None
) -> str:
    """Render an interview as plain text, one "<Speaker>:\\n<utterance>" block per turn."""
    when = when or datetime.now()
    speaker = f"Dr. {expert.name}"
    transcript = f"Conversation with {speaker}\n"
    transcript += f"Date: {when.strftime('%Y-%m-%d %H:%M:%S')}\n\n"
    for message in messages:
        author = "You" if message.author == "user" else speaker
        transcript += f"{author}:\n{message.text}\n\n"
    return transcript.strip()


def transcript_filename(expert: Expert, when: datetime | None = None) -> str:
    when = when or datetime.now()
    name = _WHITESPACE_RE.sub("_", expert.name)
    return f"interview-with-AI-{name}-{when.date().isoformat()}.txt"
