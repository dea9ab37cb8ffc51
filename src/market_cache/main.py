"""FastAPI app serving cached quotes, holdings and historical series."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from market_cache import __version__
from market_cache.api.routers import (
    discovery_router,
    historical_router,
    holdings_router,
    quotes_router,
    uploads_router,
)
from market_cache.app_context import get_app_context
from market_cache.config.logging_config import setup_logging
from market_cache.config.settings import get_settings
from market_cache.core.exceptions import AppError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and wire the context on startup; release it on shutdown."""
    setup_logging()
    yield
    get_app_context().close()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Layered market data caches: live quotes, holding prices and daily history",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(quotes_router)
app.include_router(holdings_router)
app.include_router(historical_router)
app.include_router(discovery_router)
app.include_router(uploads_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map AppError subclasses to their HTTP status and an error/message body."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Service name, version and docs location."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
