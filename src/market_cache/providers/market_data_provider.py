"""Market data provider protocols."""

from datetime import date
from typing import Optional, Protocol

from market_cache.domain.models import AssetInfo, PricePoint, QuoteRecord


class QuoteProvider(Protocol):
    """
    Source of point-in-time quotes.

    Implementations raise FetchError on any upstream failure; they never
    return placeholder values.
    """

    def fetch_quote(self, symbol: str, currency: str = "USD") -> QuoteRecord:
        """Fetch the current quote for symbol, priced in currency where the source supports it."""
        ...


class ExchangeRateProvider(Protocol):
    """Source of currency conversion rates."""

    def fetch_exchange_rate(self, base: str, quote: str) -> float:
        """Units of quote currency per one unit of base currency."""
        ...


class HistoryProvider(Protocol):
    """
    Source of daily historical bars.

    fetch_history returns points in whatever order and quality the upstream
    gives; the historical cache normalizes them.
    """

    def fetch_history(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: str = "1d",
    ) -> list[PricePoint]:
        """Fetch bars for start..end inclusive. Raises FetchError."""
        ...

    def fetch_asset_info(self, symbol: str) -> Optional[AssetInfo]:
        """Descriptive metadata for symbol, or None when unknown. Raises FetchError."""
        ...
