"""
Currency repository for database operations.
"""

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.engine import Row

from fx_catalog.db.repositories.base_repository import BaseRepository
from fx_catalog.db.repositories.rate_repository import ranked_rates_subquery
from fx_catalog.models.currency import Currency


class CurrencyRepository(BaseRepository[Currency]):
    """Repository for currency operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Currency, session)
    
    async def get_by_code(self, code: str) -> Optional[Currency]:
        """Get currency by code."""
        result = await self.session.execute(
            select(Currency).where(Currency.code == code.upper())
        )
        return result.scalar_one_or_none()
    
    async def upsert_by_code(self, code: str, name: str) -> Row:
        """Insert a currency, or overwrite the name of the existing one with that code."""
        stmt = self.upsert_statement().values(code=code.upper(), name=name)
        stmt = stmt.on_conflict_do_update(
            index_elements=["code"],
            set_={"name": stmt.excluded.name},
        ).returning(Currency.id, Currency.code, Currency.name, Currency.created_at)
        
        result = await self.session.execute(stmt)
        return result.one()
    
    async def rename(self, id: int, name: str) -> Optional[Currency]:
        """Change the display name. The code never changes after creation."""
        return await self.update(id, name=name)
    
    async def count_all(self) -> int:
        """Count all currencies."""
        result = await self.session.execute(
            select(func.count(Currency.id))
        )
        return result.scalar() or 0
    
    async def list_with_latest_rate(
        self,
        base_currency_code: str,
        order_by: str = "id",
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """
        Every currency joined with its latest rate against the base currency.
        Currencies without any rate come back with latest_rate/rate_date None.
        """
        ranked = ranked_rates_subquery(base_currency_code)
        query = (
            select(
                Currency.id,
                Currency.code,
                Currency.name,
                Currency.created_at,
                ranked.c.rate.label("latest_rate"),
                ranked.c.effective_date.label("rate_date"),
            )
            .outerjoin(
                ranked,
                and_(
                    ranked.c.target_currency_id == Currency.id,
                    ranked.c.row_rank == 1,
                ),
            )
            .order_by(getattr(Currency, order_by))
        )
        if skip is not None:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        
        result = await self.session.execute(query)
        return list(result.all())
