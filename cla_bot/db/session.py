"""
CLA Bot Database Configuration.

This module handles the setup and configuration of the database connection
using SQLModel (which wraps SQLAlchemy). It initializes the async engine and
session factory based on the application settings.

Attributes:
    engine: The global async engine instance used for database operations.
    AsyncSessionLocal: Session factory; one session per unit of work.
"""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from cla_bot.core.config import settings


def normalize_database_url(database_url: str) -> str:
    """Ensure usage of the asyncpg driver for async operation with PostgreSQL."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    return database_url


database_url = normalize_database_url(settings.DATABASE_URL)

engine_kwargs = {"pool_pre_ping": True}

# SQLite (tests, local runs) does not take a sized connection pool
if not database_url.startswith("sqlite"):
    engine_kwargs.update(
        {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
            "pool_recycle": 1800,
        }
    )

engine = create_async_engine(database_url, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
