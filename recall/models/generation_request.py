import uuid

from sqlalchemy import Column, Index, Text, Uuid

from recall.db.interfaces.postgresql import Base
from recall.db.types import UTCDateTime, utcnow


class GenerationRequest(Base):
    __tablename__ = "generation_requests"

    __table_args__ = (
        Index("ix_generation_requests_user_created", "user_id", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    source_text = Column(Text, nullable=False)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
