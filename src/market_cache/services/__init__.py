"""Services package."""

from market_cache.services.quote_cache import QuoteCache
from market_cache.services.holdings_cache import HoldingsCache
from market_cache.services.historical_cache import HistoricalSeriesCache, PERIOD_DAYS
from market_cache.services.asset_discovery import AssetDiscovery
from market_cache.services.market_data_service import MarketDataService
from market_cache.services.historical_preloader import HistoricalPreloader
from market_cache.services.file_tracker import FileTracker

__all__ = [
    "QuoteCache",
    "HoldingsCache",
    "HistoricalSeriesCache",
    "PERIOD_DAYS",
    "AssetDiscovery",
    "MarketDataService",
    "HistoricalPreloader",
    "FileTracker",
]
