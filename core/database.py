"""
Database Management and Configuration.

This module sets up the asynchronous persistence store for the Portfolio API.
It uses SQLAlchemy's asyncio extension with SQLModel table definitions.

Key Components:
- `create_engine_for`: builds the async engine for a database URL. SQLite
  (`aiosqlite`) is used for development and tests, PostgreSQL (`asyncpg`) in
  production. SQLite connections get `PRAGMA foreign_keys=ON` so blog post
  deletion cascades to comments and likes.
- `create_session_factory`: async session factory bound to an engine.
- `create_db_and_tables`: startup hook creating every table in the SQLModel
  metadata.
- `get_session` / `get_session_factory`: FastAPI dependencies that hand the
  application's session (or factory) to endpoints.

Engines live on `app.state`: `create_app` builds one per application and the
lifespan disposes it on shutdown.
"""

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool
from sqlmodel import SQLModel

from core import models  # noqa: F401  registers tables on SQLModel.metadata

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(database_url: str) -> AsyncEngine:
    """Create the async engine for the given database URL"""
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or database_url.endswith("://"):
            # One shared connection, otherwise each checkout sees an empty db
            engine = create_async_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        else:
            engine = create_async_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=AsyncAdaptedQueuePool,
                echo=False,
            )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(
            database_url,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            echo=False,
        )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine):
    """
    Initialize the database and create all tables.
    Called during application startup.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Portfolio API database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create Portfolio API database tables: {e}")
        raise


def get_session_factory(request: Request) -> async_sessionmaker:
    return request.app.state.session_factory


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Get an async database session for dependency injection.
    """
    async with request.app.state.session_factory() as session:
        yield session


def describe_database(database_url: str) -> str:
    """Database URL with credentials masked, for startup logs"""
    if "@" in database_url:
        scheme = database_url.split("://", 1)[0]
        return f"{scheme}://***@{database_url.split('@', 1)[1]}"
    return database_url
