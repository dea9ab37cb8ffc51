"""Market data providers module."""

from market_cache.providers.market_data_provider import (
    QuoteProvider,
    ExchangeRateProvider,
    HistoryProvider,
)
from market_cache.providers.stub_provider import StubMarketDataProvider
from market_cache.providers.yahoo_provider import YahooFinanceProvider
from market_cache.providers.coingecko_provider import CoinGeckoProvider

__all__ = [
    "QuoteProvider",
    "ExchangeRateProvider",
    "HistoryProvider",
    "StubMarketDataProvider",
    "YahooFinanceProvider",
    "CoinGeckoProvider",
]
