"""Spaced-repetition flashcard service."""
