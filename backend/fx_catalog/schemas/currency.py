"""
Currency and rate Pydantic schemas for request/response validation.
"""

from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from fx_catalog.schemas.pagination import PaginationMeta

# Range representable by the NUMERIC(18, 6) rate column.
MIN_RATE = 0.000001
MAX_RATE = 1e12


class CurrencyBase(BaseModel):
    """Base schema for a currency write."""
    code: str = Field(..., min_length=3, max_length=3, description="3-letter currency code (e.g., EUR)")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    rate: float = Field(..., ge=MIN_RATE, lt=MAX_RATE, allow_inf_nan=False, description="Units of this currency per 1 unit of the base currency")
    
    @field_validator("code", "name", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value


class CurrencyCreate(CurrencyBase):
    """Create schema for a currency and today's rate."""
    pass


class CurrencyUpdate(CurrencyBase):
    """Update schema. `code` is accepted but currencies keep their original code."""
    code: str = Field(..., min_length=1, max_length=3)


class CurrencyResponse(BaseModel):
    """Response schema for a currency."""
    id: int
    code: str
    name: str
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True


class RateResponse(BaseModel):
    """Response schema for a stored daily rate."""
    id: int
    rate: float
    effective_date: date
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True


class CurrencyWithLatestRate(CurrencyResponse):
    """Currency joined with its most recent rate (None when it has no rate yet)."""
    latest_rate: Optional[float] = None
    rate_date: Optional[date] = None


class HistoricalRate(BaseModel):
    """Rate in effect for a target currency as of a queried date."""
    id: int
    base_currency: str
    target_currency: str
    target_currency_name: str
    rate: float
    effective_date: date
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True


class CurrencyWriteResult(BaseModel):
    """Currency row and today's rate row after an add or update."""
    currency: CurrencyResponse
    rate: RateResponse


class CurrencyWriteResponse(BaseModel):
    success: bool = True
    message: str
    data: CurrencyWriteResult


class CurrencyDeleteResponse(BaseModel):
    success: bool = True
    message: str


class AdminCurrencyListResponse(BaseModel):
    """Unpaginated admin listing."""
    success: bool = True
    data: List[CurrencyWithLatestRate]
    total: int


class CurrencyPage(BaseModel):
    """One page of currencies with their latest rates."""
    data: List[CurrencyWithLatestRate]
    pagination: PaginationMeta


class HistoricalRatesPage(BaseModel):
    """One page of as-of rates."""
    data: List[HistoricalRate]
    pagination: PaginationMeta
    query_date: date = Field(..., alias="queryDate")
    
    class Config:
        populate_by_name = True


class CurrencyPageResponse(CurrencyPage):
    success: bool = True


class HistoricalRatesResponse(HistoricalRatesPage):
    success: bool = True
