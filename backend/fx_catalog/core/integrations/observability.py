"""
Observability hooks.
Server-side failures are funneled through record_exception so an exporter
can be attached in one place.
"""

from fastapi import Request
import logging

from fx_catalog.core.config import settings

logger = logging.getLogger(__name__)


def setup_observability() -> None:
    """Announce the observability configuration at startup."""
    logger.info(
        "Setting up observability",
        extra={
            "service_name": settings.PROJECT_NAME,
            "version": settings.VERSION,
        },
    )


def record_exception(exc: Exception, request: Request) -> None:
    """
    Record an exception that reached the HTTP boundary.
    
    Args:
        exc: The exception that occurred
        request: The FastAPI request object
    """
    cause = exc.__cause__
    logger.error(
        f"Exception recorded: {type(exc).__name__}",
        extra={
            "exception_message": str(exc),
            "cause": repr(cause) if cause is not None else None,
            "method": request.method,
            "path": request.url.path,
        },
    )
