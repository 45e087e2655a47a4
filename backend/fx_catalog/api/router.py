"""
API router that aggregates all endpoint routers.
"""

from fastapi import APIRouter

from fx_catalog.api.endpoints import (
    health,
    admin_currencies,
    user_currencies,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(admin_currencies.router, prefix="/admin", tags=["admin"])
api_router.include_router(user_currencies.router, prefix="/user", tags=["user"])
