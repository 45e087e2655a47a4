"""
FastAPI application entry point.
Assembles the app with routers, middleware, lifespan handlers, and exception handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from fx_catalog.api.router import api_router
from fx_catalog.api.endpoints.health import get_health
from fx_catalog.api.middleware import RequestLoggingMiddleware
from fx_catalog.core.config import settings
from fx_catalog.core.exceptions import setup_exception_handlers
from fx_catalog.core.integrations.observability import setup_observability
from fx_catalog.core.logging import setup_logging
from fx_catalog.db import session as db_session
from fx_catalog.db.init_db import create_tables, seed_base_currency
from fx_catalog.deps.di_container import Container, set_container
from fx_catalog.schemas.health import HealthResponse


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Waits for the database, bootstraps schema and base currency, builds the
    DI container.
    """
    setup_logging()
    setup_observability()
    
    await db_session.init_db()
    if settings.DB_AUTO_CREATE:
        await create_tables(db_session.engine)
    await seed_base_currency(db_session.get_session_factory())
    
    container = Container()
    container.config.from_dict({
        "database_url": settings.DATABASE_URL,
        "base_currency_code": settings.BASE_CURRENCY_CODE,
    })
    app.state.container = container
    set_container(container)
    
    yield
    
    await db_session.close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Currency catalog and daily exchange rates against a fixed base currency",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    # Rate limiting middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    
    app.add_middleware(RequestLoggingMiddleware)
    
    app.include_router(api_router, prefix=settings.API_PREFIX)
    
    @app.get("/health", response_model=HealthResponse, include_in_schema=False)
    async def root_health() -> HealthResponse:
        """Root-level health check endpoint."""
        return await get_health()
    
    setup_exception_handlers(app)
    
    return app


app = create_app()
