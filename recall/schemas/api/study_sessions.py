from typing import List
from uuid import UUID

from pydantic import BaseModel, Field

from recall.schemas.api.flashcards import FlashcardDTO


class StudySessionInfo(BaseModel):
    flashcards_due: int = Field(..., ge=0, description="Every card due now, may exceed the page")
    flashcards_in_session: int = Field(..., ge=0)


class StudySessionResponse(BaseModel):
    session: StudySessionInfo
    flashcards: List[FlashcardDTO]


class ReviewFlashcardRequest(BaseModel):
    flashcard_id: UUID
    quality: int = Field(..., ge=0, le=5, description="Recall quality, 0 (blackout) to 5 (perfect)")
