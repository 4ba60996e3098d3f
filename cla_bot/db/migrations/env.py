"""
Alembic environment for the CLA bot.

Runs from the ``alembic`` CLI (with alembic.ini) or from
``cla_bot.db.migrate.migrate_schema`` (config built in code, no ini file).
Online migrations always go through the async engine.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from sqlmodel import SQLModel

# registers every table on SQLModel.metadata
from cla_bot.db import models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


def get_database_url() -> str:
    """sqlalchemy.url from the config when set, else DATABASE_URL."""
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url

    from cla_bot.core.config import settings
    from cla_bot.db.session import normalize_database_url

    return normalize_database_url(settings.DATABASE_URL)


def render_item(type_: str, obj, autogen_context):
    """Autogenerate SQLModel's AutoString as sa.String() so revisions do not import sqlmodel."""
    if type_ == "type":
        from sqlmodel.sql.sqltypes import AutoString

        if isinstance(obj, AutoString):
            return "sa.String()"
    return False


def _run(**configure_kwargs) -> None:
    context.configure(
        target_metadata=target_metadata, render_item=render_item, **configure_kwargs
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout; no DBAPI connection is made."""
    _run(
        url=get_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def do_run_migrations(connection: Connection) -> None:
    # SQLite cannot ALTER most constraints in place
    _run(
        connection=connection,
        render_as_batch=connection.dialect.name == "sqlite",
    )


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_database_url()

    engine = async_engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
