"""
questline.errors — Typed Error Taxonomy
========================================

Every failure that leaves a component is one of these types, so callers
can decide between "tell the user", "retry later" and "log and move on"
without inspecting messages.
"""

from __future__ import annotations

__all__ = [
    "MalformedFrameError",
    "PersistenceError",
    "QuestlineError",
    "QuotaExhaustedError",
    "RateLimitError",
    "TransportError",
    "ValidationError",
]


class QuestlineError(Exception):
    """Base class for all Questline errors."""


class ValidationError(QuestlineError):
    """Caller-supplied input violates a precondition (e.g. empty quest title)."""


class PersistenceError(QuestlineError):
    """A durable store operation failed."""


class MalformedFrameError(QuestlineError):
    """A ``data:`` payload could not be decoded as JSON.

    Recoverable: the stream decoder absorbs it and waits for more data.
    """


class TransportError(QuestlineError):
    """Network or upstream failure while requesting or streaming a reply."""

    default_message = "Failed to get AI response"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message or self.default_message)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Human-readable text substituted into the transcript placeholder."""
        return self.default_message


class RateLimitError(TransportError):
    """HTTP 429 from the assistant endpoint."""

    default_message = "Rate limit reached. Please wait a moment and try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, status_code=429)


class QuotaExhaustedError(TransportError):
    """HTTP 402 from the assistant endpoint — AI credits are used up."""

    default_message = "AI credits exhausted. Please add more credits."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, status_code=402)
