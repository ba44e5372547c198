from __future__ import annotations

from typing import Optional


class FeedbackBotError(Exception):
    """Base class for errors raised by the feedback relay."""


class AuthenticationError(FeedbackBotError):
    """The backend refused or could not complete the credential exchange."""


class SubmissionError(FeedbackBotError):
    """Feedback could not be delivered for a reason other than authentication."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChatApiError(FeedbackBotError):
    """A Telegram call (send, delete, answer) failed."""
