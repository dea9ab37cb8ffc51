"""API routers package."""

from market_cache.api.routers.quotes import router as quotes_router
from market_cache.api.routers.holdings import router as holdings_router
from market_cache.api.routers.historical import router as historical_router
from market_cache.api.routers.discovery import router as discovery_router
from market_cache.api.routers.discovery import uploads_router

__all__ = [
    "quotes_router",
    "holdings_router",
    "historical_router",
    "discovery_router",
    "uploads_router",
]
