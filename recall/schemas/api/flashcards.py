from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from recall.schemas.api.common import Pagination
from recall.schemas.flashcards import (
    BACK_MAX_LENGTH,
    FRONT_MAX_LENGTH,
    FlashcardSource,
    FlashcardStatus,
)


class FlashcardDTO(BaseModel):
    """Serialized flashcard returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    generation_request_id: Optional[UUID] = None
    front: str
    back: str
    source: FlashcardSource
    status: FlashcardStatus
    next_review_at: Optional[datetime] = Field(
        None, description="When the card is next due; null unless active"
    )
    interval: int = Field(..., ge=0, description="Days until the next review")
    ease_factor: float = Field(..., description="SM-2 ease factor, never below 1.3")
    created_at: datetime
    updated_at: datetime


class CreateFlashcardRequest(BaseModel):
    front: str = Field(..., min_length=1, max_length=FRONT_MAX_LENGTH)
    back: str = Field(..., min_length=1, max_length=BACK_MAX_LENGTH)

    @field_validator("front", "back", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class UpdateFlashcardRequest(BaseModel):
    front: Optional[str] = Field(None, min_length=1, max_length=FRONT_MAX_LENGTH)
    back: Optional[str] = Field(None, min_length=1, max_length=BACK_MAX_LENGTH)
    status: Optional[FlashcardStatus] = None

    @field_validator("front", "back", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _at_least_one_field(self):
        if self.front is None and self.back is None and self.status is None:
            raise ValueError("At least one field (front, back, or status) must be provided")
        return self


class FlashcardsQuery(BaseModel):
    """Query parameters for listing flashcards."""

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    status: Optional[FlashcardStatus] = None
    source: Optional[FlashcardSource] = None
    sort: Literal["created_at", "updated_at", "next_review_at"] = "created_at"
    order: Literal["asc", "desc"] = "desc"


class FlashcardsListResponse(BaseModel):
    flashcards: List[FlashcardDTO]
    pagination: Pagination


class BatchApproveRequest(BaseModel):
    flashcard_ids: List[UUID] = Field(..., min_length=1, max_length=50)


class BatchApprovalFailure(BaseModel):
    id: UUID
    reason: str


class BatchApproveResponse(BaseModel):
    approved: List[UUID] = Field(default_factory=list)
    failed: List[BatchApprovalFailure] = Field(default_factory=list)
