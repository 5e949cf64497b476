"""Alembic environment for the local CRM database.

Usage:
  alembic upgrade head
  alembic revision --autogenerate -m "describe change"

The database URL comes from application settings (DATABASE_URL), not from
alembic.ini, so migrations and the sync runner always hit the same store.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool

from src.crm_sync.config import get_settings
from src.crm_sync.core.database import Base, build_engine

# Register every table on Base.metadata for autogenerate
import src.crm_sync.crm.models  # noqa: F401,E402
import src.crm_sync.mapping.models  # noqa: F401,E402

# Alembic Config object
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    settings = get_settings()

    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=settings.DATABASE_URL.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    settings = get_settings()
    connectable = build_engine(settings.DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # SQLite can't ALTER constraints in place
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
