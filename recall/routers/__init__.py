"""Router modules for the flashcards API."""

from . import flashcards, generation_requests, ping, study_sessions

__all__ = ["ping", "flashcards", "generation_requests", "study_sessions"]
