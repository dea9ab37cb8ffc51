"""Holding price endpoints backed by the persistent holdings cache."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from market_cache.api.deps import get_holdings_cache, get_market_data_service
from market_cache.api.schemas import (
    ClearCacheResponse,
    HoldingPriceResponse,
    HoldingsCacheStatsResponse,
)
from market_cache.domain.models import AssetType
from market_cache.services import HoldingsCache, MarketDataService

router = APIRouter(prefix="/holdings", tags=["holdings"])


@router.get("/cache", response_model=HoldingsCacheStatsResponse)
def get_holdings_cache_stats(cache: HoldingsCache = Depends(get_holdings_cache)):
    return HoldingsCacheStatsResponse(**cache.get_stats())


@router.delete("/cache", response_model=ClearCacheResponse)
def clear_holdings_cache(cache: HoldingsCache = Depends(get_holdings_cache)):
    """Remove every cached holding price."""
    return ClearCacheResponse(removed=cache.clear_all())


@router.get("/{symbol}/price", response_model=HoldingPriceResponse)
def get_holding_price(
    symbol: str,
    asset_type: Optional[AssetType] = Query(default=None, description="s (stock) or c (crypto)"),
    service: MarketDataService = Depends(get_market_data_service),
):
    """
    Live price for a holding.

    Falls back to the last cached price (source=cache) when the upstream
    fetch fails; 502 when nothing was ever cached.
    """
    return HoldingPriceResponse.model_validate(service.get_holding_price(symbol, asset_type))
