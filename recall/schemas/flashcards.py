from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FRONT_MAX_LENGTH = 1000
BACK_MAX_LENGTH = 2000


class FlashcardSource(str, Enum):
    MANUAL = "manual"
    AI_GENERATED = "ai_generated"


class FlashcardStatus(str, Enum):
    ACTIVE = "active"
    PENDING_REVIEW = "pending_review"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SchedulingState:
    """Lifecycle status plus the SM-2 fields that depend on it."""

    status: FlashcardStatus
    interval: int
    ease_factor: float
    next_review_at: Optional[datetime]


class FlashcardDraft(BaseModel):
    """A front/back pair supplied by the AI draft source."""

    front: str = Field(..., min_length=1, max_length=FRONT_MAX_LENGTH)
    back: str = Field(..., min_length=1, max_length=BACK_MAX_LENGTH)

    @field_validator("front", "back", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value
