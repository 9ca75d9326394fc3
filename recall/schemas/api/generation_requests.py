from datetime import datetime
from typing import List, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recall.schemas.api.common import Pagination
from recall.schemas.api.flashcards import FlashcardDTO

SOURCE_TEXT_MIN_LENGTH = 1000
SOURCE_TEXT_MAX_LENGTH = 10000


class GenerationRequestDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    source_text: str
    created_at: datetime
    updated_at: datetime


class CreateGenerationRequest(BaseModel):
    source_text: str = Field(
        ...,
        min_length=SOURCE_TEXT_MIN_LENGTH,
        max_length=SOURCE_TEXT_MAX_LENGTH,
        description="Text the flashcards are generated from",
    )

    @field_validator("source_text", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class CreateGenerationRequestResponse(BaseModel):
    generation_request: GenerationRequestDTO
    flashcards: List[FlashcardDTO]


class GenerationRequestListItem(GenerationRequestDTO):
    flashcard_count: int = Field(0, ge=0)


class GenerationRequestsQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort: Literal["created_at", "updated_at"] = "created_at"
    order: Literal["asc", "desc"] = "desc"


class GenerationRequestListResponse(BaseModel):
    generation_requests: List[GenerationRequestListItem]
    pagination: Pagination


class GenerationRequestDetailResponse(BaseModel):
    generation_request: GenerationRequestDTO
    flashcards: List[FlashcardDTO]
