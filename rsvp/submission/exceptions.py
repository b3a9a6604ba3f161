USER_MESSAGE_KEY = "confirm.submitError"


class SubmissionError(Exception):
    """Base exception for failed RSVP submissions.

    Every subclass shows the user the same generic message; the class tells
    operators which side failed.
    """

    user_message_key = USER_MESSAGE_KEY


class LocalFailure(SubmissionError):
    """Raised when no request could be constructed or sent."""


class PayloadBuildError(LocalFailure):
    """Raised when the session cannot be turned into a request payload."""


class TransportFailure(SubmissionError):
    """Raised when the request got no response (connect error, timeout)."""


class ApplicationFailure(SubmissionError):
    """Raised when the server answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Server responded {status_code}: {body}")
        self.status_code = status_code
        self.body = body
