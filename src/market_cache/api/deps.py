"""Dependency injection for FastAPI."""

from fastapi import Depends

from market_cache.app_context import AppContext, get_app_context
from market_cache.services import (
    AssetDiscovery,
    FileTracker,
    HistoricalPreloader,
    HistoricalSeriesCache,
    HoldingsCache,
    MarketDataService,
)


def get_context() -> AppContext:
    """Provide the process-wide AppContext (tests override this)."""
    return get_app_context()


def get_market_data_service(ctx: AppContext = Depends(get_context)) -> MarketDataService:
    """Provide MarketDataService instance."""
    return ctx.market_data_service


def get_holdings_cache(ctx: AppContext = Depends(get_context)) -> HoldingsCache:
    """Provide HoldingsCache instance."""
    return ctx.holdings_cache


def get_historical_cache(ctx: AppContext = Depends(get_context)) -> HistoricalSeriesCache:
    """Provide HistoricalSeriesCache instance."""
    return ctx.historical_cache


def get_historical_preloader(ctx: AppContext = Depends(get_context)) -> HistoricalPreloader:
    """Provide HistoricalPreloader instance."""
    return ctx.historical_preloader


def get_asset_discovery(ctx: AppContext = Depends(get_context)) -> AssetDiscovery:
    """Provide AssetDiscovery instance."""
    return ctx.asset_discovery


def get_file_tracker(ctx: AppContext = Depends(get_context)) -> FileTracker:
    """Provide FileTracker instance."""
    return ctx.file_tracker
