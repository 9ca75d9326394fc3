from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from recall.dependencies import CurrentUserDep, SettingsDep, StudySessionServiceDep
from recall.schemas.api.flashcards import FlashcardDTO
from recall.schemas.api.study_sessions import ReviewFlashcardRequest, StudySessionResponse

router = APIRouter(prefix="/study-sessions", tags=["study"])


@router.get("/current", response_model=StudySessionResponse)
def current_session(
    user_id: CurrentUserDep,
    service: StudySessionServiceDep,
    settings: SettingsDep,
    limit: Optional[int] = Query(None, ge=1, description="Maximum cards in this session"),
):
    """Cards due for review, most overdue first, with the total due count."""
    try:
        return service.current_session(user_id, limit or settings.study_session_default_limit)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.post("/review", response_model=FlashcardDTO)
def review_flashcard(body: ReviewFlashcardRequest, user_id: CurrentUserDep, service: StudySessionServiceDep):
    """Record a review and reschedule the card with SM-2."""
    return service.review(user_id, body.flashcard_id, body.quality)
