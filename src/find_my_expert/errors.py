"""Exceptions raised by Find My Expert services."""

from find_my_expert.constants import DETAILS_FAILURE_MESSAGE, TRANSPORT_FAILURE_MESSAGE


class ExpertSearchError(Exception):
    """Base exception for expert search failures."""

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message if detail is None else f"{message} ({detail})")


class TransportFailure(ExpertSearchError):
    """The external model call itself failed."""

    def __init__(self, detail: str | None = None, message: str = TRANSPORT_FAILURE_MESSAGE):
        super().__init__(message, detail)


class MalformedResponse(ExpertSearchError):
    """Model output was not valid JSON where JSON was required."""

    def __init__(self, raw_text: str, detail: str | None = None):
        self.raw_text = raw_text
        super().__init__(DETAILS_FAILURE_MESSAGE, detail)


class InterviewBusyError(ExpertSearchError):
    """A message was sent while the previous reply was still streaming."""

    def __init__(self):
        super().__init__("Please wait for the current reply to finish.")


class InterviewClosedError(ExpertSearchError):
    """The interview conversation has been closed."""

    def __init__(self):
        super().__init__("This interview has been closed.")
