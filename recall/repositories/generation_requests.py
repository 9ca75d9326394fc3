from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.orm import Session

from recall.models.flashcard import Flashcard
from recall.models.generation_request import GenerationRequest

SORT_COLUMNS = {
    "created_at": GenerationRequest.created_at,
    "updated_at": GenerationRequest.updated_at,
}


class GenerationRequestsRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, request: GenerationRequest, commit: bool = True) -> GenerationRequest:
        self.session.add(request)
        if commit:
            self.session.commit()
            self.session.refresh(request)
        else:
            self.session.flush()
        return request

    def get_for_user(self, user_id: UUID, request_id: UUID) -> Optional[GenerationRequest]:
        stmt = select(GenerationRequest).where(
            and_(GenerationRequest.id == request_id, GenerationRequest.user_id == user_id)
        )
        return self.session.scalar(stmt)

    def count_for_user(self, user_id: UUID) -> int:
        stmt = select(func.count(GenerationRequest.id)).where(GenerationRequest.user_id == user_id)
        return self.session.scalar(stmt) or 0

    def list_for_user(
        self,
        user_id: UUID,
        sort: str = "created_at",
        order: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> List[Tuple[GenerationRequest, int]]:
        """Requests with the number of flashcards still linked to each."""
        column = SORT_COLUMNS[sort]
        ordering = column.asc() if order == "asc" else column.desc()
        stmt = (
            select(GenerationRequest, func.count(Flashcard.id))
            .outerjoin(Flashcard, Flashcard.generation_request_id == GenerationRequest.id)
            .where(GenerationRequest.user_id == user_id)
            .group_by(GenerationRequest.id)
            .order_by(ordering, GenerationRequest.id)
            .limit(limit)
            .offset(offset)
        )
        return [(row[0], row[1] or 0) for row in self.session.execute(stmt).all()]

    def delete_by_id(self, request_id: UUID, commit: bool = True) -> int:
        """Delete a request row; deleting an absent row is a no-op."""
        result = self.session.execute(
            delete(GenerationRequest).where(GenerationRequest.id == request_id)
        )
        if commit:
            self.session.commit()
        return result.rowcount or 0
