"""
Database initialization and bootstrapping.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from fx_catalog.core.config import settings
from fx_catalog.core.logging import get_logger
from fx_catalog.db.base import Base
from fx_catalog.db.repositories.currency_repository import CurrencyRepository
import fx_catalog.models  # noqa: F401  registers tables with Base.metadata

logger = get_logger(__name__)


async def create_tables(engine: AsyncEngine) -> None:
    """
    Create all database tables that do not exist yet.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    logger.info("Database tables initialized")


async def seed_base_currency(
    session_factory: async_sessionmaker[AsyncSession],
    code: str = None,
    name: str = None,
) -> None:
    """
    Make sure the base currency row exists. Safe to run on every startup.
    """
    code = (code or settings.BASE_CURRENCY_CODE).upper()
    name = name or settings.BASE_CURRENCY_NAME
    
    async with session_factory() as session:
        repo = CurrencyRepository(session)
        if await repo.get_by_code(code) is not None:
            logger.info("Base currency present", extra={"code": code})
            return
        await repo.create(code=code, name=name)
        await session.commit()
    
    logger.info("Base currency seeded", extra={"code": code})
