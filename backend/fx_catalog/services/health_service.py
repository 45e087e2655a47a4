"""
Health service.
Provides health check functionality.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fx_catalog.db.repositories.health_repository import HealthRepository
from fx_catalog.db.session import get_session_factory
from fx_catalog.schemas.health import HealthResponse
from fx_catalog.services.base_service import BaseService


class HealthService(BaseService):
    """Service for health check operations."""
    
    def __init__(
        self,
        session_factory_provider: Optional[Callable[[], async_sessionmaker[AsyncSession]]] = None,
    ):
        self.start_time = time.time()
        self.session_factory_provider = session_factory_provider or get_session_factory
    
    async def get_health(self) -> HealthResponse:
        """
        Get system health status.
        
        Returns:
            HealthResponse with status, uptime, timestamp and checks
        """
        uptime_seconds = int(time.time() - self.start_time)
        uptime_str = f"PT{uptime_seconds}S"  # ISO 8601 duration format
        
        checks = {}
        
        session_factory = self.session_factory_provider()
        async with session_factory() as session:
            db_ok = await HealthRepository(session=session).check_database()
        checks["database"] = "ok" if db_ok else "error"
        
        status = "ok" if all(check == "ok" for check in checks.values()) else "degraded"
        
        return HealthResponse(
            status=status,
            uptime=uptime_str,
            timestamp=datetime.now(timezone.utc).isoformat(),
            checks=checks,
        )
