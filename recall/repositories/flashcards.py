from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session

from recall.models.flashcard import Flashcard
from recall.schemas.flashcards import FlashcardSource, FlashcardStatus

SORT_COLUMNS = {
    "created_at": Flashcard.created_at,
    "updated_at": Flashcard.updated_at,
    "next_review_at": Flashcard.next_review_at,
}


class FlashcardsRepository:
    """Data access layer for flashcards. Every read is scoped to the owner."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, flashcard: Flashcard) -> Flashcard:
        self.session.add(flashcard)
        self.session.commit()
        self.session.refresh(flashcard)
        return flashcard

    def add_many(self, flashcards: Sequence[Flashcard], commit: bool = True) -> List[Flashcard]:
        """Batch insert; with ``commit=False`` the caller owns the transaction."""
        self.session.add_all(flashcards)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return list(flashcards)

    def get_for_user(self, user_id: UUID, flashcard_id: UUID) -> Optional[Flashcard]:
        stmt = select(Flashcard).where(
            and_(Flashcard.id == flashcard_id, Flashcard.user_id == user_id)
        )
        return self.session.scalar(stmt)

    def _filtered(
        self,
        stmt,
        user_id: UUID,
        status: Optional[FlashcardStatus] = None,
        source: Optional[FlashcardSource] = None,
    ):
        stmt = stmt.where(Flashcard.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Flashcard.status == status)
        if source is not None:
            stmt = stmt.where(Flashcard.source == source)
        return stmt

    def count_for_user(
        self,
        user_id: UUID,
        status: Optional[FlashcardStatus] = None,
        source: Optional[FlashcardSource] = None,
    ) -> int:
        stmt = self._filtered(select(func.count(Flashcard.id)), user_id, status, source)
        return self.session.scalar(stmt) or 0

    def list_for_user(
        self,
        user_id: UUID,
        status: Optional[FlashcardStatus] = None,
        source: Optional[FlashcardSource] = None,
        sort: str = "created_at",
        order: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> List[Flashcard]:
        column = SORT_COLUMNS[sort]
        ordering = column.asc() if order == "asc" else column.desc()
        stmt = (
            self._filtered(select(Flashcard), user_id, status, source)
            .order_by(ordering, Flashcard.id)
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.scalars(stmt))

    def _due_filter(self, user_id: UUID, now: datetime):
        return and_(
            Flashcard.user_id == user_id,
            Flashcard.status == FlashcardStatus.ACTIVE,
            Flashcard.next_review_at.isnot(None),
            Flashcard.next_review_at <= now,
        )

    def count_due(self, user_id: UUID, now: datetime) -> int:
        stmt = select(func.count(Flashcard.id)).where(self._due_filter(user_id, now))
        return self.session.scalar(stmt) or 0

    def get_due(self, user_id: UUID, now: datetime, limit: int) -> List[Flashcard]:
        """Due cards, most overdue first."""
        stmt = (
            select(Flashcard)
            .where(self._due_filter(user_id, now))
            .order_by(Flashcard.next_review_at.asc(), Flashcard.id)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def list_for_request(self, user_id: UUID, generation_request_id: UUID) -> List[Flashcard]:
        stmt = (
            select(Flashcard)
            .where(
                and_(
                    Flashcard.user_id == user_id,
                    Flashcard.generation_request_id == generation_request_id,
                )
            )
            .order_by(Flashcard.created_at.asc(), Flashcard.id)
        )
        return list(self.session.scalars(stmt))

    def detach_from_request(self, generation_request_id: UUID, commit: bool = True) -> int:
        """Null the back-reference of every card created by a request."""
        stmt = (
            update(Flashcard)
            .where(Flashcard.generation_request_id == generation_request_id)
            .values(generation_request_id=None)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        if commit:
            self.session.commit()
        return result.rowcount or 0

    def update(self, flashcard: Flashcard) -> Flashcard:
        self.session.add(flashcard)
        self.session.commit()
        self.session.refresh(flashcard)
        return flashcard

    def delete(self, flashcard: Flashcard) -> None:
        self.session.delete(flashcard)
        self.session.commit()
