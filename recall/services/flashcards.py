import logging
import math
from typing import List, Optional
from uuid import UUID

from recall.clock import Clock, SystemClock
from recall.exceptions import InvalidStateError, NotFoundError, RecallException
from recall.models.flashcard import Flashcard
from recall.repositories.flashcards import FlashcardsRepository
from recall.schemas.api.common import Pagination
from recall.schemas.api.flashcards import (
    BatchApprovalFailure,
    BatchApproveResponse,
    FlashcardsListResponse,
    FlashcardsQuery,
    FlashcardDTO,
    UpdateFlashcardRequest,
)
from recall.schemas.flashcards import FlashcardSource, FlashcardStatus
from recall.services import lifecycle
from recall.services.persistence import persistence_errors

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50


class FlashcardService:
    """Manual cards, the approval workflow and owner-scoped CRUD."""

    def __init__(
        self,
        repo: FlashcardsRepository,
        clock: Optional[Clock] = None,
        max_batch_size: int = MAX_BATCH_SIZE,
    ):
        self.repo = repo
        self.clock = clock or SystemClock()
        self.max_batch_size = max_batch_size

    def create_manual(self, user_id: UUID, front: str, back: str) -> Flashcard:
        """Manual cards skip review and are due immediately."""
        logger.info("Creating manual flashcard", extra={"user_id": str(user_id)})
        state = lifecycle.initial_state(FlashcardSource.MANUAL, self.clock.now())
        flashcard = Flashcard(
            user_id=user_id,
            generation_request_id=None,
            front=front.strip(),
            back=back.strip(),
            source=FlashcardSource.MANUAL,
        )
        flashcard.apply_state(state)

        with persistence_errors(self.repo.session, "create flashcard"):
            flashcard = self.repo.create(flashcard)

        logger.info("Created flashcard", extra={"flashcard_id": str(flashcard.id)})
        return flashcard

    def get(self, user_id: UUID, flashcard_id: UUID) -> Flashcard:
        with persistence_errors(self.repo.session, "fetch flashcard"):
            flashcard = self.repo.get_for_user(user_id, flashcard_id)
        if flashcard is None:
            logger.warning(
                "Flashcard not found",
                extra={"user_id": str(user_id), "flashcard_id": str(flashcard_id)},
            )
            raise NotFoundError("Flashcard", flashcard_id)
        return flashcard

    def list(self, user_id: UUID, query: FlashcardsQuery) -> FlashcardsListResponse:
        offset = (query.page - 1) * query.limit
        with persistence_errors(self.repo.session, "list flashcards"):
            total = self.repo.count_for_user(user_id, query.status, query.source)
            rows = self.repo.list_for_user(
                user_id,
                status=query.status,
                source=query.source,
                sort=query.sort,
                order=query.order,
                limit=query.limit,
                offset=offset,
            )

        return FlashcardsListResponse(
            flashcards=[FlashcardDTO.model_validate(row) for row in rows],
            pagination=Pagination(
                page=query.page,
                limit=query.limit,
                total=total,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    def update(self, user_id: UUID, flashcard_id: UUID, changes: UpdateFlashcardRequest) -> Flashcard:
        """Edit text and/or status.

        Status changes go through the lifecycle, so ``next_review_at`` stays
        consistent with the new status and illegal transitions raise
        ``InvalidStateError``. ``source`` and the SM-2 fields are never edited here.
        """
        flashcard = self.get(user_id, flashcard_id)

        if changes.status is not None:
            state = lifecycle.change_status(
                flashcard.scheduling_state, changes.status, self.clock.now()
            )
            flashcard.apply_state(state)
        if changes.front is not None:
            flashcard.front = changes.front
        if changes.back is not None:
            flashcard.back = changes.back

        with persistence_errors(self.repo.session, "update flashcard"):
            flashcard = self.repo.update(flashcard)

        logger.info("Updated flashcard", extra={"flashcard_id": str(flashcard.id)})
        return flashcard

    def delete(self, user_id: UUID, flashcard_id: UUID) -> None:
        flashcard = self.get(user_id, flashcard_id)
        with persistence_errors(self.repo.session, "delete flashcard"):
            self.repo.delete(flashcard)
        logger.info("Deleted flashcard", extra={"flashcard_id": str(flashcard_id)})

    def approve(self, user_id: UUID, flashcard_id: UUID) -> Flashcard:
        """pending_review -> active, due immediately."""
        flashcard = self.get(user_id, flashcard_id)
        try:
            state = lifecycle.approve(flashcard.scheduling_state, self.clock.now())
        except InvalidStateError:
            logger.warning(
                "Flashcard is not pending review",
                extra={"flashcard_id": str(flashcard_id), "status": flashcard.status.value},
            )
            raise
        flashcard.apply_state(state)

        with persistence_errors(self.repo.session, "approve flashcard"):
            flashcard = self.repo.update(flashcard)

        logger.info("Approved flashcard", extra={"flashcard_id": str(flashcard_id)})
        return flashcard

    def reject(self, user_id: UUID, flashcard_id: UUID) -> Flashcard:
        """pending_review -> rejected, never scheduled."""
        flashcard = self.get(user_id, flashcard_id)
        try:
            state = lifecycle.reject(flashcard.scheduling_state)
        except InvalidStateError:
            logger.warning(
                "Flashcard is not pending review",
                extra={"flashcard_id": str(flashcard_id), "status": flashcard.status.value},
            )
            raise
        flashcard.apply_state(state)

        with persistence_errors(self.repo.session, "reject flashcard"):
            flashcard = self.repo.update(flashcard)

        logger.info("Rejected flashcard", extra={"flashcard_id": str(flashcard_id)})
        return flashcard

    def batch_approve(self, user_id: UUID, flashcard_ids: List[UUID]) -> BatchApproveResponse:
        """Approve each id on its own; failures are reported per id, never abort the batch."""
        if not 1 <= len(flashcard_ids) <= self.max_batch_size:
            raise ValueError(f"Between 1 and {self.max_batch_size} flashcard ids are required")

        logger.info(
            "Batch approving flashcards",
            extra={"user_id": str(user_id), "count": len(flashcard_ids)},
        )
        result = BatchApproveResponse()
        for flashcard_id in flashcard_ids:
            try:
                self.approve(user_id, flashcard_id)
            except RecallException as e:
                result.failed.append(BatchApprovalFailure(id=flashcard_id, reason=str(e)))
            else:
                result.approved.append(flashcard_id)

        logger.info(
            "Batch approve completed",
            extra={
                "user_id": str(user_id),
                "approved": len(result.approved),
                "failed": len(result.failed),
            },
        )
        return result
