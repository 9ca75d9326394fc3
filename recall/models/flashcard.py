import uuid

from sqlalchemy import CheckConstraint, Column, Enum, Float, ForeignKey, Index, Integer, String, Uuid

from recall.db.interfaces.postgresql import Base
from recall.db.types import UTCDateTime, utcnow
from recall.schemas.flashcards import (
    BACK_MAX_LENGTH,
    DEFAULT_EASE_FACTOR,
    FRONT_MAX_LENGTH,
    FlashcardSource,
    FlashcardStatus,
    SchedulingState,
)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Flashcard(Base):
    __tablename__ = "flashcards"

    __table_args__ = (
        Index("ix_flashcards_due_queue", "user_id", "status", "next_review_at"),
        Index("ix_flashcards_generation_request_id", "generation_request_id"),
        CheckConstraint('"interval" >= 0', name="ck_flashcards_interval_non_negative"),
        CheckConstraint("ease_factor >= 1.3", name="ck_flashcards_ease_factor_floor"),
        CheckConstraint(
            "(status = 'active') = (next_review_at IS NOT NULL)",
            name="ck_flashcards_next_review_matches_status",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    generation_request_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("generation_requests.id", ondelete="SET NULL"),
        nullable=True,
    )

    front = Column(String(FRONT_MAX_LENGTH), nullable=False)
    back = Column(String(BACK_MAX_LENGTH), nullable=False)

    source = Column(
        Enum(FlashcardSource, name="flashcard_source_enum", values_callable=_enum_values),
        nullable=False,
    )
    status = Column(
        Enum(FlashcardStatus, name="flashcard_status_enum", values_callable=_enum_values),
        nullable=False,
    )

    # SM-2 scheduling
    interval = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    next_review_at = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def scheduling_state(self) -> SchedulingState:
        return SchedulingState(
            status=self.status,
            interval=self.interval,
            ease_factor=self.ease_factor,
            next_review_at=self.next_review_at,
        )

    def apply_state(self, state: SchedulingState) -> None:
        self.status = state.status
        self.interval = state.interval
        self.ease_factor = state.ease_factor
        self.next_review_at = state.next_review_at
