"""
Pytest configuration and fixtures.
Provides a per-test SQLite database, sessions, and an app client wired to it.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date

import pytest
from dependency_injector import providers
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from fx_catalog.main import app
from fx_catalog.db.base import Base
from fx_catalog.db.init_db import seed_base_currency
from fx_catalog.db.repositories.currency_repository import CurrencyRepository
from fx_catalog.db.repositories.rate_repository import RateRepository
from fx_catalog.db.session import get_db, get_session_factory, register_sqlite_pragmas
from fx_catalog.deps.di_container import Container, set_container
from fx_catalog.models.rate import Rate
from fx_catalog.services.health_service import HealthService
import fx_catalog.models  # noqa: F401


TODAY = date(2025, 1, 15)


async def rates_for_target(session: AsyncSession, target_currency_id: int):
    """All stored rates of one target currency, newest first."""
    result = await session.execute(
        select(Rate)
        .where(Rate.target_currency_id == target_currency_id)
        .order_by(Rate.effective_date.desc(), Rate.id.desc())
    )
    return list(result.scalars().all())


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """
    File-backed SQLite engine so independent sessions get their own
    connections, like a pooled PostgreSQL engine.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fx_catalog.db'}")
    register_sqlite_pragmas(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def test_session_factory(test_engine):
    """Sessionmaker bound to the test engine, with the base currency seeded."""
    factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    await seed_base_currency(factory, code="USD", name="US Dollar")
    return factory


@pytest.fixture(scope="function")
async def test_db_session(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def seed_rate(test_session_factory):
    """Write a currency and a rate for an arbitrary day, bypassing the services."""
    async def _seed(code: str, name: str, rate: float, effective_date: date) -> int:
        async with test_session_factory() as session:
            currencies = CurrencyRepository(session)
            base = await currencies.get_by_code("USD")
            currency = await currencies.upsert_by_code(code, name)
            await RateRepository(session).upsert(
                base_currency_id=base.id,
                target_currency_id=currency.id,
                rate=rate,
                effective_date=effective_date,
            )
            await session.commit()
            return currency.id
    return _seed


@pytest.fixture(scope="function")
async def test_client(test_session_factory):
    """
    Create a test HTTP client whose database dependencies point at the test engine.
    """
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    container = Container()
    container.health_service.override(
        providers.Singleton(HealthService, session_factory_provider=lambda: test_session_factory)
    )
    set_container(container)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: test_session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    set_container(None)
