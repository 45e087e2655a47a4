"""
User currency controller.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fx_catalog.controllers.base_controller import BaseController
from fx_catalog.services.user_currency_service import UserCurrencyService
from fx_catalog.schemas.currency import CurrencyPageResponse, HistoricalRatesResponse


class UserCurrencyController(BaseController):
    """Controller for consumer-facing listings."""
    
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.user_currency_service = UserCurrencyService(session_factory)
    
    async def list_currencies(
        self,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> CurrencyPageResponse:
        """List currencies with latest rates, paginated."""
        result = await self.user_currency_service.list_currencies(page=page, limit=limit)
        return CurrencyPageResponse(data=result.data, pagination=result.pagination)
    
    async def list_historical_rates(
        self,
        query_date: Optional[str],
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> HistoricalRatesResponse:
        """List as-of rates for a date, paginated."""
        result = await self.user_currency_service.list_historical_rates(
            query_date,
            page=page,
            limit=limit,
        )
        return HistoricalRatesResponse(
            data=result.data,
            pagination=result.pagination,
            query_date=result.query_date,
        )
