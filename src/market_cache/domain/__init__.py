"""Domain layer - pure models with no I/O."""

from market_cache.domain.models import (
    AssetType,
    TradeFileFormat,
    UpdateType,
    PriceSource,
    CacheEntry,
    QuoteRecord,
    HoldingCacheRecord,
    PricePoint,
    AssetInfo,
    HistoricalSeriesRecord,
    Holding,
)

__all__ = [
    "AssetType",
    "TradeFileFormat",
    "UpdateType",
    "PriceSource",
    "CacheEntry",
    "QuoteRecord",
    "HoldingCacheRecord",
    "PricePoint",
    "AssetInfo",
    "HistoricalSeriesRecord",
    "Holding",
]
