"""
User currency API endpoints.
page/limit arrive as raw strings; the pagination helpers decide their values.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fx_catalog.db.session import get_session_factory
from fx_catalog.controllers.user_currency_controller import UserCurrencyController
from fx_catalog.schemas.currency import CurrencyPageResponse, HistoricalRatesResponse

router = APIRouter()


@router.get("/currencies", response_model=CurrencyPageResponse)
async def list_currencies(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> CurrencyPageResponse:
    """List currencies with their latest rates."""
    controller = UserCurrencyController(session_factory)
    return await controller.list_currencies(page=page, limit=limit)


@router.get("/currencies/historical", response_model=HistoricalRatesResponse)
async def list_historical_rates(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> HistoricalRatesResponse:
    """List the rate in effect on `date` for every currency that had one."""
    controller = UserCurrencyController(session_factory)
    return await controller.list_historical_rates(date, page=page, limit=limit)
