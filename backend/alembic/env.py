"""
Alembic Migration Environment
===============================

What:  Runs Report Come Play migrations through the async SQLAlchemy engine.
How:   The URL comes from reportcomeplay.config (DATABASE_URL), never from
       alembic.ini, so the app and its migrations always hit the same database.
When:  `alembic upgrade head` before first start and on every deploy;
       `alembic revision --autogenerate -m "..."` after a model change.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

import reportcomeplay.models  # noqa: F401  registers every table on Base.metadata
from reportcomeplay.config import settings
from reportcomeplay.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

config.set_main_option("sqlalchemy.url", settings.database_url)


def _configure_options() -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        # SQLite cannot ALTER most constraints in place
        "render_as_batch": settings.database_url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emits the migration SQL to stdout without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, **_configure_options())

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
