"""
Simulated interview with a discovered expert.

An InterviewSession holds one conversation. Replies stream as an async
iterator of text deltas, and only one reply may be in flight at a time:
sending while a reply is still streaming raises InterviewBusyError. A reply
claims the session when iteration starts, not when it is requested.
Closing the session makes any active reply stop at the next delta
without raising.
"""

import logging
from typing import AsyncIterator

from find_my_expert.constants import (
    INTERVIEW_ERROR_REPLY,
    INTERVIEW_FALLBACK_GREETING,
    INTERVIEW_OPENER,
)
from find_my_expert.errors import InterviewBusyError, InterviewClosedError, TransportFailure
from find_my_expert.models.expert import Expert, ExpertDetails
from find_my_expert.services.expert_search import get_interview_suggestions
from find_my_expert.services.llm import stream_llm
from find_my_expert.services.prompts import compose_interview_system_prompt
from find_my_expert.utils.export import TranscriptMessage, format_transcript

logger = logging.getLogger(__name__)


class InterviewSession:
    def __init__(self, expert: Expert, details: ExpertDetails):
        self.expert = expert
        self.details = details
        self.system = compose_interview_system_prompt(expert, details)
        self.messages: list[TranscriptMessage] = []
        self.suggestions: list[str] = []
        self.busy = False
        self.closed = False
        # Turns sent to the model; only successful exchanges are kept so roles alternate.
        self._history: list[dict[str, str]] = []

    async def load_suggestions(self) -> list[str]:
        """Fetch fresh question ideas. Failures leave an empty list."""
        self.suggestions = await get_interview_suggestions(self.expert, self.details)
        return self.suggestions

    def start(self) -> AsyncIterator[str]:
        """Stream the expert's self-introduction."""
        return self._exchange(INTERVIEW_OPENER, show_user=False, fallback=INTERVIEW_FALLBACK_GREETING)

    def send_message(self, text: str) -> AsyncIterator[str]:
        """Stream the expert's reply to a user message.

        Raises:
            InterviewBusyError: if a reply is still streaming.
            InterviewClosedError: if the session was closed.
        """
        return self._exchange(text, show_user=True, fallback=INTERVIEW_ERROR_REPLY)

    def _check_ready(self) -> None:
        if self.closed:
            raise InterviewClosedError()
        if self.busy:
            raise InterviewBusyError()

    def _exchange(self, text: str, show_user: bool, fallback: str) -> AsyncIterator[str]:
        # Checked eagerly so callers fail before they start iterating
        self._check_ready()
        if not text.strip():
            return _empty()
        return self._stream_reply(text, show_user, fallback)

    async def _stream_reply(self, text: str, show_user: bool, fallback: str) -> AsyncIterator[str]:
        # The session is only claimed once iteration starts, so a reply stream
        # that is closed or dropped unstarted never leaves it busy.
        if self.closed:
            return
        if self.busy:
            raise InterviewBusyError()
        turns = self._history + [{"role": "user", "content": text}]
        deltas = stream_llm(turns, system=self.system)

        try:
            self.busy = True
            if show_user:
                self.messages.append(TranscriptMessage(author="user", text=text))
                self.suggestions = []
            reply = TranscriptMessage(author="model", text="")
            self.messages.append(reply)

            async for delta in deltas:
                if self.closed:
                    logger.debug("Interview closed mid-reply; stopping stream")
                    return
                reply.text += delta
                yield delta
        except TransportFailure as e:
            logger.error(f"Interview reply from {self.expert.name} failed: {e}")
            partial = bool(reply.text)
            reply.text = fallback
            yield f"\n\n{fallback}" if partial else fallback
            return
        finally:
            self.busy = False
            await deltas.aclose()

        self._history = turns + [{"role": "assistant", "content": reply.text}]

    def close(self) -> None:
        self.closed = True

    def transcript(self) -> str:
        return format_transcript(self.expert, self.messages)


async def _empty() -> AsyncIterator[str]:
    return
    yield
