"""Due-queue selection and review submission."""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from recall.clock import Clock, SystemClock
from recall.exceptions import InvalidStateError, NotFoundError
from recall.models.flashcard import Flashcard
from recall.repositories.flashcards import FlashcardsRepository
from recall.schemas.api.flashcards import FlashcardDTO
from recall.schemas.api.study_sessions import StudySessionInfo, StudySessionResponse
from recall.services import lifecycle
from recall.services.persistence import persistence_errors

logger = logging.getLogger(__name__)

DEFAULT_SESSION_LIMIT = 20
MAX_SESSION_LIMIT = 50


@dataclass
class DueQueue:
    total_due: int
    flashcards: List[Flashcard]


class StudySessionService:
    def __init__(
        self,
        repo: FlashcardsRepository,
        clock: Optional[Clock] = None,
        max_limit: int = MAX_SESSION_LIMIT,
    ):
        self.repo = repo
        self.clock = clock or SystemClock()
        self.max_limit = max_limit

    def select_due(self, user_id: UUID, limit: int = DEFAULT_SESSION_LIMIT) -> DueQueue:
        """Active cards with ``next_review_at <= now``, most overdue first.

        The total and the page are two separate reads; a review landing in
        between can make them disagree by that card.
        """
        if not 1 <= limit <= self.max_limit:
            raise ValueError(f"limit must be between 1 and {self.max_limit}, got {limit}")

        now = self.clock.now()
        logger.info("Selecting due flashcards", extra={"user_id": str(user_id), "limit": limit})

        with persistence_errors(self.repo.session, "count due flashcards"):
            total_due = self.repo.count_due(user_id, now)
        with persistence_errors(self.repo.session, "fetch due flashcards"):
            flashcards = self.repo.get_due(user_id, now, limit)

        logger.info(
            "Retrieved study session",
            extra={
                "user_id": str(user_id),
                "total_due": total_due,
                "in_session": len(flashcards),
            },
        )
        return DueQueue(total_due=total_due, flashcards=flashcards)

    def current_session(self, user_id: UUID, limit: int = DEFAULT_SESSION_LIMIT) -> StudySessionResponse:
        queue = self.select_due(user_id, limit)
        return StudySessionResponse(
            session=StudySessionInfo(
                flashcards_due=queue.total_due,
                flashcards_in_session=len(queue.flashcards),
            ),
            flashcards=[FlashcardDTO.model_validate(card) for card in queue.flashcards],
        )

    def review(self, user_id: UUID, flashcard_id: UUID, quality: int) -> Flashcard:
        """Record one review and reschedule the card with SM-2.

        :raises NotFoundError: card missing or owned by someone else
        :raises InvalidStateError: card is not active
        """
        logger.info(
            "Recording flashcard review",
            extra={"user_id": str(user_id), "flashcard_id": str(flashcard_id), "quality": quality},
        )

        with persistence_errors(self.repo.session, "fetch flashcard"):
            flashcard = self.repo.get_for_user(user_id, flashcard_id)
        if flashcard is None:
            logger.warning(
                "Flashcard not found",
                extra={"user_id": str(user_id), "flashcard_id": str(flashcard_id)},
            )
            raise NotFoundError("Flashcard", flashcard_id)

        previous = flashcard.scheduling_state
        try:
            state = lifecycle.review(previous, quality, self.clock.now())
        except InvalidStateError:
            logger.warning(
                "Flashcard is not reviewable",
                extra={"flashcard_id": str(flashcard_id), "status": previous.status.value},
            )
            raise

        logger.info(
            "SM-2 calculation result",
            extra={
                "flashcard_id": str(flashcard_id),
                "quality": quality,
                "old_interval": previous.interval,
                "new_interval": state.interval,
                "old_ease_factor": previous.ease_factor,
                "new_ease_factor": state.ease_factor,
            },
        )
        flashcard.apply_state(state)

        with persistence_errors(self.repo.session, "update flashcard"):
            flashcard = self.repo.update(flashcard)

        logger.info(
            "Recorded review",
            extra={"flashcard_id": str(flashcard_id), "next_review_at": state.next_review_at.isoformat()},
        )
        return flashcard
