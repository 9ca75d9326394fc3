import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class PostgreSQLDatabase:
    """Engine and session factory for the relational store."""

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        statement_timeout_ms: Optional[int] = None,
        engine: Optional[Engine] = None,
    ):
        if engine is None:
            connect_args = {}
            if statement_timeout_ms and url.startswith("postgresql"):
                connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"
            engine = create_engine(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
                connect_args=connect_args,
            )
        self.engine = engine
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        """Create tables straight from ORM metadata (tests and local runs)."""
        import recall.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def health_check(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def teardown(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")
