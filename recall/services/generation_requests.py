import logging
import math
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from recall.clock import Clock, SystemClock
from recall.exceptions import NotFoundError, PersistenceError
from recall.models.flashcard import Flashcard
from recall.models.generation_request import GenerationRequest
from recall.repositories.flashcards import FlashcardsRepository
from recall.repositories.generation_requests import GenerationRequestsRepository
from recall.schemas.api.common import Pagination
from recall.schemas.api.flashcards import FlashcardDTO
from recall.schemas.api.generation_requests import (
    GenerationRequestDetailResponse,
    GenerationRequestDTO,
    GenerationRequestListItem,
    GenerationRequestListResponse,
    GenerationRequestsQuery,
)
from recall.schemas.flashcards import FlashcardDraft, FlashcardSource
from recall.services import lifecycle
from recall.services.persistence import persistence_errors

logger = logging.getLogger(__name__)


class GenerationRequestService:
    """Creates a generation request together with its batch of AI-sourced cards.

    With ``atomic=True`` both inserts share one database transaction. With
    ``atomic=False`` they are two commits and a failed card insert is
    compensated by deleting the request row; a crash between the two can
    still leave an empty request behind.
    """

    def __init__(
        self,
        requests_repo: GenerationRequestsRepository,
        flashcards_repo: FlashcardsRepository,
        clock: Optional[Clock] = None,
        atomic: bool = True,
    ):
        self.requests_repo = requests_repo
        self.flashcards_repo = flashcards_repo
        self.clock = clock or SystemClock()
        self.atomic = atomic

    @property
    def session(self):
        return self.requests_repo.session

    def create(
        self, user_id: UUID, source_text: str, drafts: Sequence[FlashcardDraft]
    ) -> tuple[GenerationRequest, List[Flashcard]]:
        logger.info(
            "Creating generation request",
            extra={"user_id": str(user_id), "flashcards_count": len(drafts)},
        )
        now = self.clock.now()
        state = lifecycle.initial_state(FlashcardSource.AI_GENERATED, now)

        with persistence_errors(self.session, "create generation request"):
            request = self.requests_repo.create(
                GenerationRequest(user_id=user_id, source_text=source_text),
                commit=not self.atomic,
            )
        request_id = request.id

        flashcards = []
        for draft in drafts:
            flashcard = Flashcard(
                user_id=user_id,
                generation_request_id=request_id,
                front=draft.front.strip(),
                back=draft.back.strip(),
                source=FlashcardSource.AI_GENERATED,
            )
            flashcard.apply_state(state)
            flashcards.append(flashcard)

        try:
            self.flashcards_repo.add_many(flashcards, commit=True)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to create flashcards: {e}")
            if not self.atomic:
                self._discard_request(request_id)
            raise PersistenceError("Failed to create flashcards", cause=e) from e

        logger.info(
            "Created generation request and flashcards",
            extra={"generation_request_id": str(request_id), "flashcards_count": len(flashcards)},
        )
        return request, flashcards

    def _discard_request(self, request_id: UUID) -> None:
        """Best-effort compensation; safe to repeat, never masks the original error."""
        try:
            deleted = self.requests_repo.delete_by_id(request_id)
            logger.info(
                "Removed generation request after failed flashcard insert",
                extra={"generation_request_id": str(request_id), "deleted": deleted},
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Compensation failed, orphaned generation request {request_id}: {e}"
            )

    def list(self, user_id: UUID, query: GenerationRequestsQuery) -> GenerationRequestListResponse:
        offset = (query.page - 1) * query.limit
        with persistence_errors(self.session, "list generation requests"):
            total = self.requests_repo.count_for_user(user_id)
            rows = self.requests_repo.list_for_user(
                user_id, sort=query.sort, order=query.order, limit=query.limit, offset=offset
            )

        items = [
            GenerationRequestListItem(
                **GenerationRequestDTO.model_validate(request).model_dump(),
                flashcard_count=count,
            )
            for request, count in rows
        ]
        return GenerationRequestListResponse(
            generation_requests=items,
            pagination=Pagination(
                page=query.page,
                limit=query.limit,
                total=total,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    def get(self, user_id: UUID, request_id: UUID) -> GenerationRequestDetailResponse:
        with persistence_errors(self.session, "fetch generation request"):
            request = self.requests_repo.get_for_user(user_id, request_id)
            if request is None:
                logger.warning(
                    "Generation request not found",
                    extra={"user_id": str(user_id), "generation_request_id": str(request_id)},
                )
                raise NotFoundError("Generation request", request_id)
            flashcards = self.flashcards_repo.list_for_request(user_id, request_id)

        return GenerationRequestDetailResponse(
            generation_request=GenerationRequestDTO.model_validate(request),
            flashcards=[FlashcardDTO.model_validate(fc) for fc in flashcards],
        )

    def delete(self, user_id: UUID, request_id: UUID) -> None:
        """Delete a request; its flashcards stay and lose the back-reference."""
        with persistence_errors(self.session, "delete generation request"):
            request = self.requests_repo.get_for_user(user_id, request_id)
            if request is None:
                raise NotFoundError("Generation request", request_id)
            detached = self.flashcards_repo.detach_from_request(request_id, commit=False)
            self.requests_repo.delete_by_id(request_id, commit=False)
            self.session.commit()

        logger.info(
            "Deleted generation request",
            extra={"generation_request_id": str(request_id), "detached_flashcards": detached},
        )
