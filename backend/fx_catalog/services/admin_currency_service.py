"""
Admin currency service: CRUD over currencies and their daily rates.
"""

import math
from datetime import date, datetime, timezone
from typing import Callable, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fx_catalog.core.config import settings
from fx_catalog.core.exceptions import (
    BaseCurrencyProtectedError,
    DuplicateCodeError,
    InputValidationError,
    NotFoundError,
    StorageError,
)
from fx_catalog.core.logging import get_logger
from fx_catalog.db.repositories.currency_repository import CurrencyRepository
from fx_catalog.db.repositories.rate_repository import RateRepository
from fx_catalog.schemas.currency import (
    MAX_RATE,
    MIN_RATE,
    CurrencyResponse,
    CurrencyWithLatestRate,
    CurrencyWriteResult,
    RateResponse,
)
from fx_catalog.services.base_service import BaseService

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique constraint violation."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(orig)


def normalize_code(code: Optional[str]) -> str:
    if not code or not str(code).strip():
        raise InputValidationError("Currency code is required", field="code")
    normalized = str(code).strip().upper()
    if len(normalized) != 3:
        raise InputValidationError("Currency code must be exactly 3 characters", field="code")
    return normalized


def normalize_name(name: Optional[str]) -> str:
    if not name or not str(name).strip():
        raise InputValidationError("Currency name is required", field="name")
    return str(name).strip()


def normalize_rate(rate) -> float:
    if rate is None or isinstance(rate, bool):
        raise InputValidationError("Rate must be a positive number", field="rate")
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise InputValidationError("Rate must be a positive number", field="rate")
    if not math.isfinite(value) or value <= 0:
        raise InputValidationError("Rate must be a positive number", field="rate")
    if value < MIN_RATE or value >= MAX_RATE:
        raise InputValidationError(
            f"Rate must be at least {MIN_RATE:f} and below {MAX_RATE:.0f}", field="rate"
        )
    return value


class AdminCurrencyService(BaseService):
    """Service for administrative currency operations."""
    
    def __init__(
        self,
        session: AsyncSession,
        base_currency_code: Optional[str] = None,
        today: Callable[[], date] = utc_today,
    ):
        self.session = session
        self.base_currency_code = (base_currency_code or settings.BASE_CURRENCY_CODE).upper()
        self.today = today
        self.currency_repo = CurrencyRepository(session)
        self.rate_repo = RateRepository(session)
    
    async def list_all_currencies(self) -> List[CurrencyWithLatestRate]:
        """Every currency with its latest rate, ordered by id."""
        try:
            rows = await self.currency_repo.list_with_latest_rate(
                self.base_currency_code,
                order_by="id",
            )
        except SQLAlchemyError as exc:
            logger.exception("Error listing currencies (admin)")
            raise StorageError("Failed to fetch currencies") from exc
        return [CurrencyWithLatestRate.model_validate(row) for row in rows]
    
    async def add_currency(self, code: str, name: str, rate: float) -> CurrencyWriteResult:
        """
        Create a currency (or rename the existing one with the same code) and
        write today's rate. Both writes commit together or not at all.
        """
        code = normalize_code(code)
        self._reject_base_currency(code)
        name = normalize_name(name)
        rate = normalize_rate(rate)
        
        try:
            base_currency_id = await self._base_currency_id()
            currency = await self.currency_repo.upsert_by_code(code, name)
            rate_row = await self.rate_repo.upsert(
                base_currency_id=base_currency_id,
                target_currency_id=currency.id,
                rate=rate,
                effective_date=self.today(),
            )
            result = CurrencyWriteResult(
                currency=CurrencyResponse.model_validate(currency),
                rate=RateResponse.model_validate(rate_row),
            )
            await self.session.commit()
        except StorageError:
            await self.session.rollback()
            raise
        except IntegrityError as exc:
            await self.session.rollback()
            logger.exception("Integrity error adding currency", extra={"code": code})
            if is_unique_violation(exc):
                raise DuplicateCodeError(code) from exc
            raise StorageError("Failed to add currency") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Error adding currency", extra={"code": code})
            raise StorageError("Failed to add currency") from exc

        logger.info("Currency added", extra={"code": code, "rate": rate})
        return result
    
    async def update_currency(
        self,
        currency_id: int,
        code: Optional[str],
        name: str,
        rate: float,
    ) -> CurrencyWriteResult:
        """Rename a currency and write today's rate. The code is never changed."""
        if not currency_id:
            raise InputValidationError("Currency ID is required", field="id")
        if code:
            self._reject_base_currency(code.strip().upper())
        name = normalize_name(name)
        rate = normalize_rate(rate)
        
        try:
            existing = await self.currency_repo.get(currency_id)
            if existing is None:
                raise NotFoundError("Currency not found", entity_id=currency_id)
            self._reject_base_currency(existing.code)
            
            if code and code.strip().upper() != existing.code:
                logger.warning(
                    "Ignoring code change on update",
                    extra={"id": currency_id, "code": existing.code, "requested_code": code},
                )
            
            base_currency_id = await self._base_currency_id()
            currency = await self.currency_repo.rename(currency_id, name)
            rate_row = await self.rate_repo.upsert(
                base_currency_id=base_currency_id,
                target_currency_id=currency_id,
                rate=rate,
                effective_date=self.today(),
            )
            result = CurrencyWriteResult(
                currency=CurrencyResponse.model_validate(currency),
                rate=RateResponse.model_validate(rate_row),
            )
            await self.session.commit()
        except (InputValidationError, NotFoundError, StorageError):
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Error updating currency", extra={"id": currency_id})
            raise StorageError("Failed to update currency") from exc

        logger.info("Currency updated", extra={"id": currency_id, "rate": rate})
        return result
    
    async def delete_currency(self, currency_id: int) -> str:
        """Delete a currency; its rates go with it. Returns a confirmation message."""
        if not currency_id:
            raise InputValidationError("Currency ID is required for deletion.", field="id")
        
        try:
            currency = await self.currency_repo.get(currency_id)
            if currency is None:
                raise NotFoundError(f"Currency with ID {currency_id} not found.", entity_id=currency_id)
            if currency.code == self.base_currency_code:
                raise BaseCurrencyProtectedError(currency.code)
            
            code = currency.code
            deleted = await self.currency_repo.delete(currency_id)
            if not deleted:
                raise NotFoundError(f"Currency with ID {currency_id} not found.", entity_id=currency_id)
            await self.session.commit()
        except (NotFoundError, BaseCurrencyProtectedError):
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Error deleting currency", extra={"id": currency_id})
            raise StorageError("Failed to delete currency") from exc
        
        logger.info("Currency deleted", extra={"id": currency_id, "code": code})
        return f"Currency {code} (ID: {currency_id}) deleted successfully"
    
    def _reject_base_currency(self, code: str) -> None:
        """The base currency is pinned: it is never renamed or quoted against itself."""
        if code == self.base_currency_code:
            raise InputValidationError(f"Cannot modify base currency ({code})", field="code")
    
    async def _base_currency_id(self) -> int:
        base = await self.currency_repo.get_by_code(self.base_currency_code)
        if base is None:
            raise StorageError(f"Base currency {self.base_currency_code} is not configured")
        return base.id
