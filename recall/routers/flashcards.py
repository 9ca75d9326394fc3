import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from recall.dependencies import CurrentUserDep, FlashcardServiceDep
from recall.schemas.api.flashcards import (
    BatchApproveRequest,
    BatchApproveResponse,
    CreateFlashcardRequest,
    FlashcardDTO,
    FlashcardsListResponse,
    FlashcardsQuery,
    UpdateFlashcardRequest,
)

router = APIRouter(prefix="/flashcards", tags=["flashcards"])
logger = logging.getLogger(__name__)


@router.post("", response_model=FlashcardDTO, status_code=status.HTTP_201_CREATED)
def create_flashcard(body: CreateFlashcardRequest, user_id: CurrentUserDep, service: FlashcardServiceDep):
    """Create a manual flashcard, active and due immediately."""
    return service.create_manual(user_id, body.front, body.back)


@router.get("", response_model=FlashcardsListResponse)
def list_flashcards(
    query: Annotated[FlashcardsQuery, Query()],
    user_id: CurrentUserDep,
    service: FlashcardServiceDep,
):
    return service.list(user_id, query)


@router.post("/batch-approve", response_model=BatchApproveResponse)
def batch_approve(body: BatchApproveRequest, user_id: CurrentUserDep, service: FlashcardServiceDep):
    """Approve up to 50 pending cards; failures are reported per id."""
    try:
        return service.batch_approve(user_id, body.flashcard_ids)
    except ValueError as e:
        logger.warning(f"Batch approve rejected: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/{flashcard_id}", response_model=FlashcardDTO)
def get_flashcard(flashcard_id: UUID, user_id: CurrentUserDep, service: FlashcardServiceDep):
    return service.get(user_id, flashcard_id)


@router.patch("/{flashcard_id}", response_model=FlashcardDTO)
def update_flashcard(
    flashcard_id: UUID,
    body: UpdateFlashcardRequest,
    user_id: CurrentUserDep,
    service: FlashcardServiceDep,
):
    return service.update(user_id, flashcard_id, body)


@router.delete("/{flashcard_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_flashcard(flashcard_id: UUID, user_id: CurrentUserDep, service: FlashcardServiceDep):
    service.delete(user_id, flashcard_id)


@router.post("/{flashcard_id}/approve", response_model=FlashcardDTO)
def approve_flashcard(flashcard_id: UUID, user_id: CurrentUserDep, service: FlashcardServiceDep):
    return service.approve(user_id, flashcard_id)


@router.post("/{flashcard_id}/reject", response_model=FlashcardDTO)
def reject_flashcard(flashcard_id: UUID, user_id: CurrentUserDep, service: FlashcardServiceDep):
    return service.reject(user_id, flashcard_id)
