import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from recall.clock import FrozenClock
from recall.db.interfaces.postgresql import PostgreSQLDatabase
from recall.models.flashcard import Flashcard
from recall.repositories.flashcards import FlashcardsRepository
from recall.repositories.generation_requests import GenerationRequestsRepository
from recall.schemas.flashcards import FlashcardSource
from recall.services import lifecycle
from recall.services.flashcards import FlashcardService
from recall.services.generation_requests import GenerationRequestService
from recall.services.study_sessions import StudySessionService

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = PostgreSQLDatabase(url="sqlite://", engine=engine)
    db.create_tables()
    yield db
    db.teardown()


@pytest.fixture
def session(database):
    with database.get_session() as session:
        yield session


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def other_user_id():
    return uuid.uuid4()


@pytest.fixture
def flashcards_repo(session):
    return FlashcardsRepository(session)


@pytest.fixture
def requests_repo(session):
    return GenerationRequestsRepository(session)


@pytest.fixture
def flashcard_service(flashcards_repo, clock):
    return FlashcardService(flashcards_repo, clock=clock)


@pytest.fixture
def study_service(flashcards_repo, clock):
    return StudySessionService(flashcards_repo, clock=clock)


@pytest.fixture
def generation_service(requests_repo, flashcards_repo, clock):
    return GenerationRequestService(requests_repo, flashcards_repo, clock=clock)


@pytest.fixture
def make_card(flashcards_repo, clock):
    """Insert a card directly, bypassing the services."""

    def _make(user_id, source=FlashcardSource.AI_GENERATED, **overrides):
        card = Flashcard(
            user_id=user_id,
            front=overrides.pop("front", "What is SM-2?"),
            back=overrides.pop("back", "A spaced repetition algorithm"),
            source=source,
        )
        card.apply_state(lifecycle.initial_state(source, clock.now()))
        for key, value in overrides.items():
            setattr(card, key, value)
        return flashcards_repo.create(card)

    return _make
