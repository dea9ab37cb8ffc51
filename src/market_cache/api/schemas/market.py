"""Pydantic schemas for quote and holding price endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from market_cache.domain.models import PriceSource, UpdateType


class QuoteResponse(BaseModel):
    """Response schema for a live quote."""

    model_config = {"from_attributes": True}

    symbol: str
    price: float
    currency: str
    timestamp: datetime
    change_24h: Optional[float] = None
    volume: Optional[float] = None
    name: Optional[str] = None


class HoldingPriceResponse(BaseModel):
    """Response schema for a holding price, live or served from the holdings cache."""

    model_config = {"from_attributes": True}

    symbol: str
    price: float
    source: PriceSource
    stale: bool
    usd_price: Optional[float] = None
    cad_price: Optional[float] = None
    exchange_rate: Optional[float] = None
    company_name: Optional[str] = None
    price_date: Optional[datetime] = None
    fetched_at: Optional[datetime] = None


class SymbolRefreshResponse(BaseModel):
    """Outcome of refreshing one symbol."""

    model_config = {"from_attributes": True}

    symbol: str
    success: bool
    data_points: int = 0
    update_type: Optional[UpdateType] = None
    error: Optional[str] = None
    retries: int = 0


class HoldingsCacheStatsResponse(BaseModel):
    total_entries: int
    stale_entries: int
    symbols: list[str]


class ClearCacheResponse(BaseModel):
    """Number of entries removed by a clear or cleanup."""

    removed: int
