"""Flashcard lifecycle state machine.

::

    (manual) ----------------------------> ACTIVE <--- review(q) keeps ACTIVE
                                              ^
    (ai_generated) --> PENDING_REVIEW --approve
                              |
                              +--reject--> REJECTED

Nothing leaves REJECTED and nothing re-enters PENDING_REVIEW.
"""

import logging
from datetime import datetime
from typing import Optional

from recall.exceptions import InvalidStateError
from recall.schemas.flashcards import (
    DEFAULT_EASE_FACTOR,
    FlashcardSource,
    FlashcardStatus,
    SchedulingState,
)
from recall.services.scheduling import sm2

logger = logging.getLogger(__name__)


def initial_state(source: FlashcardSource, now: datetime) -> SchedulingState:
    """Starting status and scheduling fields for a new card of the given provenance."""
    source = FlashcardSource(source)
    if source is FlashcardSource.MANUAL:
        return SchedulingState(
            status=FlashcardStatus.ACTIVE,
            interval=0,
            ease_factor=DEFAULT_EASE_FACTOR,
            next_review_at=now,
        )
    if source is FlashcardSource.AI_GENERATED:
        return SchedulingState(
            status=FlashcardStatus.PENDING_REVIEW,
            interval=0,
            ease_factor=DEFAULT_EASE_FACTOR,
            next_review_at=None,
        )
    raise ValueError(f"Unknown flashcard source: {source!r}")


def _require(state: SchedulingState, expected: FlashcardStatus) -> None:
    if state.status is not expected:
        raise InvalidStateError(
            f"Flashcard is not in {expected.value} status",
            current_status=state.status.value,
            expected_status=expected.value,
        )


def approve(state: SchedulingState, now: datetime) -> SchedulingState:
    _require(state, FlashcardStatus.PENDING_REVIEW)
    return SchedulingState(
        status=FlashcardStatus.ACTIVE,
        interval=state.interval,
        ease_factor=state.ease_factor,
        next_review_at=now,
    )


def reject(state: SchedulingState) -> SchedulingState:
    _require(state, FlashcardStatus.PENDING_REVIEW)
    return SchedulingState(
        status=FlashcardStatus.REJECTED,
        interval=state.interval,
        ease_factor=state.ease_factor,
        next_review_at=None,
    )


def review(state: SchedulingState, quality: int, now: datetime) -> SchedulingState:
    """Apply one SM-2 review; only active cards are reviewable."""
    _require(state, FlashcardStatus.ACTIVE)
    result = sm2.compute(state.interval, state.ease_factor, quality, now)
    return SchedulingState(
        status=FlashcardStatus.ACTIVE,
        interval=result.interval,
        ease_factor=result.ease_factor,
        next_review_at=result.next_review_at,
    )


def change_status(
    state: SchedulingState, target: Optional[FlashcardStatus], now: datetime
) -> SchedulingState:
    """Status change requested through a generic edit.

    Routed through the same transitions as approve/reject so ``next_review_at``
    always matches the resulting status.
    """
    if target is None:
        return state
    target = FlashcardStatus(target)
    if target is state.status:
        return state

    if state.status is FlashcardStatus.PENDING_REVIEW:
        if target is FlashcardStatus.ACTIVE:
            return approve(state, now)
        if target is FlashcardStatus.REJECTED:
            return reject(state)

    logger.warning(
        "Rejected status change",
        extra={"current_status": state.status.value, "target_status": target.value},
    )
    raise InvalidStateError(
        f"Cannot change flashcard status from {state.status.value} to {target.value}",
        current_status=state.status.value,
        expected_status=FlashcardStatus.PENDING_REVIEW.value,
    )
