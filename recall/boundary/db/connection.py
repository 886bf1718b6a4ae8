"""
Database connection management.

Provides the async SQLAlchemy engine, session factory and schema
creation/teardown.

Dependencies: sqlalchemy, aiosqlite, recall.configs
System role: Database connection lifecycle management
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from recall.boundary.db.base import Base
from recall.configs import get_settings

# Registers the FTS5 DDL hooks on the documents table
from recall.boundary.db import fts  # noqa: F401


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on FK enforcement so embedding rows cascade with their document."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_async_engine(
    database_url: str | None = None,
    echo: bool | None = None,
    **engine_kwargs,
) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    SQLite connections get foreign key enforcement enabled on connect.

    Args:
        database_url: Override for the configured URL
        echo: Override for SQL echo
        **engine_kwargs: Passed through to create_async_engine (e.g. poolclass)

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = get_settings().database
    engine = create_async_engine(
        database_url or db_config.async_database_url,
        echo=db_config.echo_sql if echo is None else echo,
        **engine_kwargs,
    )
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """
    Create async session factory for database operations.

    Returns fresh async_sessionmaker bound to engine with autoflush=False
    and expire_on_commit=False so loaded rows stay readable after commit.

    Args:
        engine: Engine to bind (creates one from settings if None)

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """
    Create all tables, indexes, the FTS5 table and its triggers.

    Args:
        engine: Target engine
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    """
    Drop all tables including the FTS5 index.

    Args:
        engine: Target engine
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

