"""
Database session management with async SQLAlchemy 2.0.
Handles connection pooling and session lifecycle.
"""

import logging

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from tenacity import retry, stop_after_attempt, wait_fixed, before_sleep_log
from typing import AsyncGenerator

from fx_catalog.core.config import settings
from fx_catalog.core.logging import get_logger

logger = get_logger(__name__)

# Global engine and sessionmaker, shared by every request in the process
engine: AsyncEngine = None
async_session_maker: async_sessionmaker[AsyncSession] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def register_sqlite_pragmas(target: AsyncEngine) -> None:
    """Make SQLite enforce foreign keys (and therefore ON DELETE CASCADE)."""
    if target.dialect.name == "sqlite":
        event.listen(target.sync_engine, "connect", _enable_sqlite_foreign_keys)


def create_engine() -> AsyncEngine:
    """Create async SQLAlchemy engine with connection pooling."""
    global engine
    
    engine_kwargs = {
        "echo": settings.DB_ECHO,
        "pool_pre_ping": True,
    }
    if not settings.DATABASE_URL.startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
    
    engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)
    register_sqlite_pragmas(engine)
    
    logger.info(
        "Database engine created",
        extra={
            "dialect": engine.dialect.name,
            "pool_size": engine_kwargs.get("pool_size"),
            "max_overflow": engine_kwargs.get("max_overflow"),
        },
    )
    
    return engine


def create_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Create async sessionmaker."""
    global async_session_maker
    
    if engine is None:
        create_engine()
    
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    
    logger.info("Sessionmaker created")
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database session.
    Yields a session and ensures it's closed after use.
    """
    if async_session_maker is None:
        create_sessionmaker()
    
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Dependency for read-only services that open their own short-lived
    sessions, so independent queries can run concurrently.
    """
    if async_session_maker is None:
        create_sessionmaker()
    return async_session_maker


@retry(
    stop=stop_after_attempt(settings.DB_CONNECT_MAX_RETRIES),
    wait=wait_fixed(settings.DB_CONNECT_RETRY_SECONDS),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def wait_for_db() -> None:
    """Block until the database answers a trivial query."""
    if engine is None:
        create_engine()
    
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection successful")


async def init_db() -> None:
    """Initialize database connection."""
    if engine is None:
        create_engine()
    
    if async_session_maker is None:
        create_sessionmaker()
    
    await wait_for_db()
    logger.info("Database initialized")


async def close_db() -> None:
    """Close database connections."""
    global engine, async_session_maker
    
    if engine:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("Database connections closed")
