import sys
from pathlib import Path
from alembic import context
from sqlalchemy import engine_from_config, pool

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from recall.config import get_settings
from recall.db.interfaces.postgresql import Base
import recall.models  # noqa

config = context.config
target_metadata = Base.metadata

# POSTGRES_DATABASE_URL (or .env) wins over alembic.ini
config.set_main_option("sqlalchemy.url", get_settings().postgres_database_url)


def run_migrations_offline():
    """Emit SQL to stdout instead of connecting (``alembic upgrade --sql``)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
