from functools import lru_cache

from recall.config import get_settings
from recall.db.interfaces.postgresql import PostgreSQLDatabase


@lru_cache(maxsize=1)
def make_database() -> PostgreSQLDatabase:
    """
    Create and return a singleton database instance.

    Returns:
        PostgreSQLDatabase: Configured database with engine and session factory
    """
    settings = get_settings()
    return PostgreSQLDatabase(
        url=settings.postgres_database_url,
        echo=settings.postgres_echo_sql,
        pool_size=settings.postgres_pool_size,
        max_overflow=settings.postgres_max_overflow,
        statement_timeout_ms=settings.postgres_statement_timeout_ms,
    )
