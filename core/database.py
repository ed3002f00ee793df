"""
Database engine and session management with SQLAlchemy async (SQLite)
"""

import logging
import os

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.exceptions import PersistenceError
from models.base import Base

logger = logging.getLogger(__name__)


def ensure_database_directory(database_path: str) -> None:
    """Create the directory holding the store file if it is missing."""
    directory = os.path.dirname(os.path.abspath(database_path))
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise PersistenceError(
            "Failed to create database directory",
            context={"operation": "open", "database_path": database_path},
            original_exception=e
        )


def create_engine_for_path(database_path: str) -> AsyncEngine:
    """Create an async engine for the SQLite file at database_path."""
    ensure_database_directory(database_path)

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}",
        echo=False,
        future=True
    )

    # WAL lets readers see the last committed batch while a refresh writes
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create session factory bound to engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create tables and indexes if they do not exist."""
    # Import models so they register on Base.metadata
    from models import river_data  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
