"""
Rate repository for database operations.
"""

from datetime import date
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, distinct
from sqlalchemy.engine import Row
from sqlalchemy.orm import aliased

from fx_catalog.db.repositories.base_repository import BaseRepository
from fx_catalog.models.currency import Currency
from fx_catalog.models.rate import Rate


def base_currency_id_subquery(base_currency_code: str):
    """Scalar sub-select resolving the configured base currency to its id."""
    return (
        select(Currency.id)
        .where(Currency.code == base_currency_code)
        .scalar_subquery()
    )


def ranked_rates_subquery(base_currency_code: str, as_of: Optional[date] = None):
    """
    Rates against the base currency ranked per target currency.
    
    row_rank == 1 marks the row with the greatest effective_date (on or
    before `as_of` when given). Rows sharing that date are ordered by
    highest id so the pick is deterministic.
    """
    query = select(
        Rate.id,
        Rate.base_currency_id,
        Rate.target_currency_id,
        Rate.rate,
        Rate.effective_date,
        Rate.created_at,
        func.row_number()
        .over(
            partition_by=Rate.target_currency_id,
            order_by=(Rate.effective_date.desc(), Rate.id.desc()),
        )
        .label("row_rank"),
    ).where(Rate.base_currency_id == base_currency_id_subquery(base_currency_code))
    
    if as_of is not None:
        query = query.where(Rate.effective_date <= as_of)
    
    return query.subquery("ranked_rates")


class RateRepository(BaseRepository[Rate]):
    """Repository for rate operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Rate, session)
    
    async def upsert(
        self,
        base_currency_id: int,
        target_currency_id: int,
        rate: float,
        effective_date: date,
    ) -> Row:
        """
        Write the rate for one day. A second write for the same
        (base, target, day) replaces the rate and refreshes created_at.
        """
        stmt = self.upsert_statement().values(
            base_currency_id=base_currency_id,
            target_currency_id=target_currency_id,
            rate=rate,
            effective_date=effective_date,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["base_currency_id", "target_currency_id", "effective_date"],
            set_={"rate": stmt.excluded.rate, "created_at": func.now()},
        ).returning(Rate.id, Rate.rate, Rate.effective_date, Rate.created_at)
        
        result = await self.session.execute(stmt)
        return result.one()
    
    async def list_as_of(
        self,
        base_currency_code: str,
        as_of: date,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Row]:
        """Most recent rate on or before `as_of` for each target currency, by target code."""
        ranked = ranked_rates_subquery(base_currency_code, as_of)
        base = aliased(Currency, name="base")
        target = aliased(Currency, name="target")
        
        query = (
            select(
                ranked.c.id,
                base.code.label("base_currency"),
                target.code.label("target_currency"),
                target.name.label("target_currency_name"),
                ranked.c.rate,
                ranked.c.effective_date,
                ranked.c.created_at,
            )
            .select_from(ranked)
            .join(base, base.id == ranked.c.base_currency_id)
            .join(target, target.id == ranked.c.target_currency_id)
            .where(ranked.c.row_rank == 1)
            .order_by(target.code)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.all())
    
    async def count_targets_as_of(self, base_currency_code: str, as_of: date) -> int:
        """Count target currencies having any rate on or before `as_of`."""
        result = await self.session.execute(
            select(func.count(distinct(Rate.target_currency_id)))
            .where(Rate.base_currency_id == base_currency_id_subquery(base_currency_code))
            .where(Rate.effective_date <= as_of)
        )
        return result.scalar() or 0
