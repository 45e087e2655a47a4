"""
Admin currency controller.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from fx_catalog.controllers.base_controller import BaseController
from fx_catalog.services.admin_currency_service import AdminCurrencyService
from fx_catalog.schemas.currency import (
    AdminCurrencyListResponse,
    CurrencyCreate,
    CurrencyDeleteResponse,
    CurrencyUpdate,
    CurrencyWriteResponse,
)


class AdminCurrencyController(BaseController):
    """Controller for administrative currency operations."""
    
    def __init__(self, session: AsyncSession):
        self.admin_currency_service = AdminCurrencyService(session)
    
    async def list_all_currencies(self) -> AdminCurrencyListResponse:
        """List every currency with its latest rate."""
        currencies = await self.admin_currency_service.list_all_currencies()
        return AdminCurrencyListResponse(data=currencies, total=len(currencies))
    
    async def add_currency(self, currency_data: CurrencyCreate) -> CurrencyWriteResponse:
        """Add a currency with today's rate."""
        result = await self.admin_currency_service.add_currency(
            currency_data.code,
            currency_data.name,
            currency_data.rate,
        )
        return CurrencyWriteResponse(message="Currency added successfully", data=result)
    
    async def update_currency(
        self,
        currency_id: int,
        currency_data: CurrencyUpdate,
    ) -> CurrencyWriteResponse:
        """Update a currency's name and today's rate."""
        result = await self.admin_currency_service.update_currency(
            currency_id,
            currency_data.code,
            currency_data.name,
            currency_data.rate,
        )
        return CurrencyWriteResponse(message="Currency updated successfully", data=result)
    
    async def delete_currency(self, currency_id: int) -> CurrencyDeleteResponse:
        """Delete a currency and its rates."""
        message = await self.admin_currency_service.delete_currency(currency_id)
        return CurrencyDeleteResponse(message=message)
