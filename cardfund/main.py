"""CardFund Billing - FastAPI Application."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cardfund.core.config import get_settings
from cardfund.core.exceptions import CardFundError
from cardfund.core.redis import close_redis, init_redis
from cardfund.db import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup: Initialize database tables and Redis
    Shutdown: Close Redis and database connections
    """
    # Startup
    await init_db()
    await init_redis()
    yield
    # Shutdown
    await close_redis()
    await close_db()


async def cardfund_error_handler(request: Request, exc: CardFundError) -> JSONResponse:
    """Map unhandled domain errors to a 500 with their details."""
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content={"detail": exc.message, "error": type(exc).__name__, **exc.details},
    )


def create_app() -> FastAPI:
    """Application factory.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Virtual card fee billing and balance ledger API",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_exception_handler(CardFundError, cardfund_error_handler)  # type: ignore[arg-type]

    # Include routers
    from cardfund.api.ledger import router as ledger_router
    from cardfund.api.pricing import router as pricing_router
    from cardfund.api.tiers import router as tiers_router

    app.include_router(tiers_router)
    app.include_router(pricing_router)
    app.include_router(ledger_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Application instance
app = create_app()
