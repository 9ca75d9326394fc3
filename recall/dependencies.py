from typing import Annotated, Generator, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from recall.clock import Clock, SystemClock
from recall.config import Settings, get_settings
from recall.db.interfaces.postgresql import PostgreSQLDatabase
from recall.repositories.flashcards import FlashcardsRepository
from recall.repositories.generation_requests import GenerationRequestsRepository
from recall.services.flashcards import FlashcardService
from recall.services.generation_requests import GenerationRequestService
from recall.services.llm.factory import make_draft_generator
from recall.services.llm.generator import FlashcardDraftGenerator
from recall.services.rate_limit.limiter import RateLimiter
from recall.services.study_sessions import StudySessionService


def get_app_settings() -> Settings:
    return get_settings()


def get_database(request: Request) -> PostgreSQLDatabase:
    return request.app.state.database


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or SystemClock()


def get_db_session(
    database: Annotated[PostgreSQLDatabase, Depends(get_database)],
) -> Generator[Session, None, None]:
    with database.get_session() as session:
        yield session


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_draft_generator() -> FlashcardDraftGenerator:
    return make_draft_generator()


def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> UUID:
    """Caller identity, placed in ``X-User-Id`` by the authenticating gateway."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user id")


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
SessionDep = Annotated[Session, Depends(get_db_session)]
ClockDep = Annotated[Clock, Depends(get_clock)]
CurrentUserDep = Annotated[UUID, Depends(get_current_user_id)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
DraftGeneratorDep = Annotated[FlashcardDraftGenerator, Depends(get_draft_generator)]


def get_flashcard_service(session: SessionDep, clock: ClockDep, settings: SettingsDep) -> FlashcardService:
    return FlashcardService(
        FlashcardsRepository(session),
        clock=clock,
        max_batch_size=settings.batch_approve_max_ids,
    )


def get_study_session_service(
    session: SessionDep, clock: ClockDep, settings: SettingsDep
) -> StudySessionService:
    return StudySessionService(
        FlashcardsRepository(session),
        clock=clock,
        max_limit=settings.study_session_max_limit,
    )


def get_generation_request_service(
    session: SessionDep, clock: ClockDep, settings: SettingsDep
) -> GenerationRequestService:
    return GenerationRequestService(
        GenerationRequestsRepository(session),
        FlashcardsRepository(session),
        clock=clock,
        atomic=settings.generation_atomic_writes,
    )


FlashcardServiceDep = Annotated[FlashcardService, Depends(get_flashcard_service)]
StudySessionServiceDep = Annotated[StudySessionService, Depends(get_study_session_service)]
GenerationRequestServiceDep = Annotated[
    GenerationRequestService, Depends(get_generation_request_service)
]
