import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recall.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def persistence_errors(session: Session, action: str) -> Generator[None, None, None]:
    """Roll back and re-raise store failures as ``PersistenceError``.

    Typed service errors pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError(f"Failed to {action}", cause=e) from e
