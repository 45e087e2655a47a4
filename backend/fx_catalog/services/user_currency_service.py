"""
Read-only currency listings for consumers, always paginated.
"""

import asyncio
import re
from datetime import date
from typing import Any, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fx_catalog.core.config import settings
from fx_catalog.core.exceptions import (
    InvalidDateFormatError,
    MissingDateError,
    StorageError,
)
from fx_catalog.core.logging import get_logger
from fx_catalog.db.repositories.currency_repository import CurrencyRepository
from fx_catalog.db.repositories.rate_repository import RateRepository
from fx_catalog.schemas.currency import (
    CurrencyPage,
    CurrencyWithLatestRate,
    HistoricalRate,
    HistoricalRatesPage,
)
from fx_catalog.services.base_service import BaseService
from fx_catalog.utils.pagination import build_pagination, page_request

logger = get_logger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_query_date(value: Any) -> date:
    """Accept a date or a 'YYYY-MM-DD' string naming a real calendar day."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingDateError()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _ISO_DATE.match(text):
        raise InvalidDateFormatError(value)
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidDateFormatError(value)


async def gather_reads(*reads):
    """
    Await independent reads concurrently. When one fails, the others are
    cancelled and awaited before the error propagates, so no session
    outlives the request.
    """
    tasks = [asyncio.ensure_future(read) for read in reads]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class UserCurrencyService(BaseService):
    """
    Service for consumer-facing listings.
    
    The page query and the count query of each listing are independent reads,
    so each runs in its own short-lived session and both are awaited together.
    Driver overflow on out-of-range parameters is reported as a storage error.
    """
    
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        base_currency_code: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.base_currency_code = (base_currency_code or settings.BASE_CURRENCY_CODE).upper()
    
    async def list_currencies(self, page: Any = None, limit: Any = None) -> CurrencyPage:
        """Currencies with their latest rate, ordered by code."""
        request = page_request(page, limit)
        
        async def fetch_rows():
            async with self.session_factory() as session:
                return await CurrencyRepository(session).list_with_latest_rate(
                    self.base_currency_code,
                    order_by="code",
                    skip=request.offset,
                    limit=request.limit,
                )
        
        async def fetch_total():
            async with self.session_factory() as session:
                return await CurrencyRepository(session).count_all()
        
        try:
            rows, total = await gather_reads(fetch_rows(), fetch_total())
        except (SQLAlchemyError, OverflowError) as exc:
            logger.exception("Error listing currencies", extra={"page": request.page, "limit": request.limit})
            raise StorageError("Failed to fetch currencies") from exc
        
        return CurrencyPage(
            data=[CurrencyWithLatestRate.model_validate(row) for row in rows],
            pagination=build_pagination(request, total),
        )
    
    async def list_historical_rates(
        self,
        query_date: Any,
        page: Any = None,
        limit: Any = None,
    ) -> HistoricalRatesPage:
        """
        For each currency, the most recent rate on or before `query_date`.
        Currencies without any such rate are left out.
        """
        as_of = parse_query_date(query_date)
        request = page_request(page, limit)
        
        async def fetch_rows():
            async with self.session_factory() as session:
                return await RateRepository(session).list_as_of(
                    self.base_currency_code,
                    as_of,
                    skip=request.offset,
                    limit=request.limit,
                )
        
        async def fetch_total():
            async with self.session_factory() as session:
                return await RateRepository(session).count_targets_as_of(
                    self.base_currency_code,
                    as_of,
                )
        
        try:
            rows, total = await gather_reads(fetch_rows(), fetch_total())
        except (SQLAlchemyError, OverflowError) as exc:
            logger.exception("Error listing historical rates", extra={"date": as_of.isoformat()})
            raise StorageError("Failed to fetch historical rates") from exc
        
        return HistoricalRatesPage(
            data=[HistoricalRate.model_validate(row) for row in rows],
            pagination=build_pagination(request, total),
            query_date=as_of,
        )
