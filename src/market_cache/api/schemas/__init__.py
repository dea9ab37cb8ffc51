"""Pydantic schemas for API request/response."""

from market_cache.api.schemas.market import (
    QuoteResponse,
    HoldingPriceResponse,
    SymbolRefreshResponse,
    HoldingsCacheStatsResponse,
    ClearCacheResponse,
)
from market_cache.api.schemas.historical import (
    PricePointResponse,
    SeriesWindowResponse,
    HistoricalCacheStatsResponse,
    PreloadResponse,
    SymbolUpdateInfoResponse,
    DiscoveryStatsResponse,
    TrackedFileResponse,
    FileChangesResponse,
    MarkProcessedRequest,
    MarkProcessedResponse,
)

__all__ = [
    "QuoteResponse",
    "HoldingPriceResponse",
    "SymbolRefreshResponse",
    "HoldingsCacheStatsResponse",
    "ClearCacheResponse",
    "PricePointResponse",
    "SeriesWindowResponse",
    "HistoricalCacheStatsResponse",
    "PreloadResponse",
    "SymbolUpdateInfoResponse",
    "DiscoveryStatsResponse",
    "TrackedFileResponse",
    "FileChangesResponse",
    "MarkProcessedRequest",
    "MarkProcessedResponse",
]
