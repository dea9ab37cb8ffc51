"""Domain models package."""

from market_cache.domain.models.enums import AssetType, TradeFileFormat, UpdateType, PriceSource
from market_cache.domain.models.cache import CacheEntry
from market_cache.domain.models.quote import QuoteRecord
from market_cache.domain.models.holding import HoldingCacheRecord
from market_cache.domain.models.series import PricePoint, AssetInfo, HistoricalSeriesRecord
from market_cache.domain.models.portfolio import Holding, holdings_from_record

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
    "holdings_from_record",
]
