"""
Admin currency API endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fx_catalog.db.session import get_db
from fx_catalog.controllers.admin_currency_controller import AdminCurrencyController
from fx_catalog.schemas.currency import (
    AdminCurrencyListResponse,
    CurrencyCreate,
    CurrencyDeleteResponse,
    CurrencyUpdate,
    CurrencyWriteResponse,
)

router = APIRouter()


@router.get("/currencies", response_model=AdminCurrencyListResponse)
async def list_all_currencies(
    db: AsyncSession = Depends(get_db),
) -> AdminCurrencyListResponse:
    """List all currencies with their latest rates (no pagination)."""
    controller = AdminCurrencyController(db)
    return await controller.list_all_currencies()


@router.post("/currencies", response_model=CurrencyWriteResponse, status_code=status.HTTP_201_CREATED)
async def add_currency(
    currency_data: CurrencyCreate,
    db: AsyncSession = Depends(get_db),
) -> CurrencyWriteResponse:
    """Add a currency and its rate for today."""
    controller = AdminCurrencyController(db)
    return await controller.add_currency(currency_data)


@router.put("/currencies/{currency_id}", response_model=CurrencyWriteResponse)
async def update_currency(
    currency_id: int,
    currency_data: CurrencyUpdate,
    db: AsyncSession = Depends(get_db),
) -> CurrencyWriteResponse:
    """Update a currency's name and its rate for today."""
    controller = AdminCurrencyController(db)
    return await controller.update_currency(currency_id, currency_data)


@router.delete("/currencies/{currency_id}", response_model=CurrencyDeleteResponse)
async def delete_currency(
    currency_id: int,
    db: AsyncSession = Depends(get_db),
) -> CurrencyDeleteResponse:
    """Delete a currency and all of its rates."""
    controller = AdminCurrencyController(db)
    return await controller.delete_currency(currency_id)
