"""
Schema migrations.

Runs the Alembic revisions shipped inside the package (``cla_bot/db/migrations``),
so installed copies can migrate without a source checkout.
Upgrading a database that is already at head is a no-op.
"""

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

from cla_bot.core.logging import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def build_alembic_config(database_url: Optional[str] = None) -> Config:
    """Build an Alembic config without reading alembic.ini."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url:
        # configparser interpolation: escape percent-encoded characters
        cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def migrate_schema(database_url: Optional[str] = None) -> None:
    """
    Apply all pending migrations.

    Must not be called from a running event loop: env.py drives the async
    engine with asyncio.run(). Use asyncio.to_thread() from async code.

    Args:
        database_url: Target database; defaults to settings.DATABASE_URL.
    """
    command.upgrade(build_alembic_config(database_url), "head")
    logger.info("db migration complete")
