"""Historical series endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from market_cache.api.deps import get_historical_cache, get_historical_preloader
from market_cache.api.schemas import (
    ClearCacheResponse,
    HistoricalCacheStatsResponse,
    PreloadResponse,
    SeriesWindowResponse,
    SymbolRefreshResponse,
)
from market_cache.core.exceptions import FetchError
from market_cache.services import HistoricalPreloader, HistoricalSeriesCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/historical", tags=["historical"])


@router.get("/cache/stats", response_model=HistoricalCacheStatsResponse)
def get_historical_cache_stats(cache: HistoricalSeriesCache = Depends(get_historical_cache)):
    return HistoricalCacheStatsResponse(**cache.get_stats())


@router.delete("/cache", response_model=ClearCacheResponse)
def clear_historical_cache(cache: HistoricalSeriesCache = Depends(get_historical_cache)):
    return ClearCacheResponse(removed=cache.clear_all())


@router.post("/cache/cleanup", response_model=ClearCacheResponse)
def cleanup_historical_cache(
    days_old: int = Query(default=30, ge=1),
    cache: HistoricalSeriesCache = Depends(get_historical_cache),
):
    """Remove series that have not been modified in days_old days."""
    return ClearCacheResponse(removed=cache.clear_old_entries(days_old))


@router.post("/preload", response_model=PreloadResponse)
def preload_historical(preloader: HistoricalPreloader = Depends(get_historical_preloader)):
    """Run a pre-population pass; returns success=false if one is already running."""
    result = preloader.prepopulate()
    return PreloadResponse(
        success=result.success,
        message=result.message,
        symbols_processed=result.symbols_processed,
        duration_ms=result.duration_ms,
        successful=result.summary.successful,
        failed=result.summary.failed,
        results=[SymbolRefreshResponse.model_validate(r) for r in result.summary.results],
    )


@router.get("/preload/status")
def get_preload_status(preloader: HistoricalPreloader = Depends(get_historical_preloader)):
    return preloader.status()


@router.post("/{symbol}/refresh", response_model=SymbolRefreshResponse)
def refresh_symbol(
    symbol: str,
    preloader: HistoricalPreloader = Depends(get_historical_preloader),
):
    """Fetch whatever symbol is missing and merge it into the cache."""
    return SymbolRefreshResponse.model_validate(preloader.refresh_symbol(symbol, max_retries=0))


@router.get("/{symbol}", response_model=SeriesWindowResponse)
def get_historical_series(
    symbol: str,
    period: Optional[str] = Query(default=None, description="5d, 1m, 3m, 6m, 1y, 2y, 5y or max"),
    refresh: bool = Query(default=True, description="Fetch missing days before answering"),
    cache: HistoricalSeriesCache = Depends(get_historical_cache),
    preloader: HistoricalPreloader = Depends(get_historical_preloader),
):
    """
    Cached series for symbol filtered to period.

    With refresh enabled a stale or missing series is topped up first. If
    that fetch fails, whatever is cached is returned with stale=true; with
    nothing cached the fetch error is returned (502).
    """
    window = cache.get(symbol, period)
    stale = False

    if refresh and (window is None or window.needs_update):
        result = preloader.refresh_symbol(symbol, max_retries=0)
        if result.success:
            window = cache.get(symbol, period)
        else:
            logger.warning("Serving cached history for %s after refresh failure: %s", symbol, result.error)
            stale = True

    if window is None:
        raise FetchError(f"No historical data available for {symbol.upper()}", symbol=symbol.upper())

    response = SeriesWindowResponse.model_validate(window)
    return response.model_copy(update={"stale": stale})
