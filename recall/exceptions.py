from datetime import datetime
from typing import Any, Optional


class RecallException(Exception):
    """Base exception for the flashcard service."""


class NotFoundError(RecallException):
    """Entity is absent or belongs to another user."""

    def __init__(self, entity: str, entity_id: Any = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class InvalidStateError(RecallException):
    """Lifecycle transition attempted from a state that does not permit it."""

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        expected_status: Optional[str] = None,
    ):
        self.current_status = current_status
        self.expected_status = expected_status
        super().__init__(message)


class PersistenceError(RecallException):
    """Underlying store failure."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class RateLimitError(RecallException):
    """Request budget exhausted for the current window."""

    def __init__(self, reset_at: datetime, retry_after: int = 0):
        self.reset_at = reset_at
        self.retry_after = retry_after
        super().__init__("Rate limit exceeded")


class DraftGenerationError(RecallException):
    """The AI draft source could not produce flashcards."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason or message
        super().__init__(message)


class LLMConnectionError(DraftGenerationError):
    """Cannot reach the LLM endpoint."""


class LLMTimeoutError(DraftGenerationError):
    """The LLM endpoint did not answer in time."""
