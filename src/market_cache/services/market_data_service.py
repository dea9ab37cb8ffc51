"""Market data service: live quotes through the quote cache, holdings fallback."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from market_cache.core.exceptions import AppError, FetchError, ValidationError
from market_cache.domain.models import AssetType, PriceSource, QuoteRecord
from market_cache.domain.views import (
    BatchRefreshSummary,
    HoldingPrice,
    SymbolRefreshResult,
)
from market_cache.providers.market_data_provider import ExchangeRateProvider, QuoteProvider
from market_cache.providers.symbols import is_crypto, normalize_symbol
from market_cache.services.holdings_cache import HoldingsCache
from market_cache.services.quote_cache import QuoteCache

logger = logging.getLogger(__name__)

DEFAULT_STOCK_TTL_SECONDS = 300
DEFAULT_CRYPTO_TTL_SECONDS = 120
DEFAULT_FX_TTL_SECONDS = 300


class MarketDataService:
    """
    Serves quotes for stocks, crypto and FX.

    Live lookups go through the in-memory QuoteCache. Holding prices are
    additionally written to the persistent HoldingsCache, which is the
    fallback when the upstream source fails.
    """

    def __init__(
        self,
        quote_cache: QuoteCache,
        holdings_cache: HoldingsCache,
        stock_provider: QuoteProvider,
        crypto_provider: QuoteProvider,
        fx_provider: ExchangeRateProvider,
        stock_ttl_seconds: float = DEFAULT_STOCK_TTL_SECONDS,
        crypto_ttl_seconds: float = DEFAULT_CRYPTO_TTL_SECONDS,
        fx_ttl_seconds: float = DEFAULT_FX_TTL_SECONDS,
        max_workers: int = 4,
    ):
        self._quotes = quote_cache
        self._holdings = holdings_cache
        self._stock_provider = stock_provider
        self._crypto_provider = crypto_provider
        self._fx_provider = fx_provider
        self._stock_ttl = stock_ttl_seconds
        self._crypto_ttl = crypto_ttl_seconds
        self._fx_ttl = fx_ttl_seconds
        self._max_workers = max(1, max_workers)

    @property
    def holdings_cache(self) -> HoldingsCache:
        return self._holdings

    @property
    def quote_cache(self) -> QuoteCache:
        return self._quotes

    def get_stock_quote(self, symbol: str) -> QuoteRecord:
        key = _require_symbol(symbol)
        return self._quotes.get_or_fetch(
            f"stock:{key}:USD",
            self._stock_ttl,
            lambda: self._stock_provider.fetch_quote(key, "USD"),
        )

    def get_crypto_quote(self, symbol: str, currency: str = "usd") -> QuoteRecord:
        key = _require_symbol(symbol)
        vs = currency.upper()
        return self._quotes.get_or_fetch(
            f"crypto:{key}:{vs}",
            self._crypto_ttl,
            lambda: self._crypto_provider.fetch_quote(key, vs),
        )

    def get_exchange_rate(self, base: str = "USD", quote: str = "CAD") -> float:
        base, quote = base.upper(), quote.upper()
        if base == quote:
            return 1.0
        return self._quotes.get_or_fetch(
            f"fx:{base}{quote}",
            self._fx_ttl,
            lambda: self._fx_provider.fetch_exchange_rate(base, quote),
        )

    def get_holding_price(self, symbol: str, asset_type: Optional[AssetType] = None) -> HoldingPrice:
        """
        Live price for a holding, valued in USD and CAD.

        A successful lookup is written to the holdings cache. When the live
        lookup fails the cached record is served with source=cache; with
        nothing cached the FetchError propagates.
        """
        key = _require_symbol(symbol)
        try:
            quote = (
                self.get_crypto_quote(key, "usd")
                if is_crypto(key, asset_type)
                else self.get_stock_quote(key)
            )
            rate = self.get_exchange_rate("USD", "CAD")
        except FetchError as e:
            cached = self._holdings.get(key)
            if cached is None:
                logger.error("No live or cached price for %s: %s", key, e)
                raise
            logger.warning("Serving cached price for %s after fetch failure: %s", key, e)
            return HoldingPrice(
                symbol=key,
                price=cached.price,
                source=PriceSource.CACHE,
                stale=self._holdings.is_stale(key),
                usd_price=cached.usd_price,
                cad_price=cached.cad_price,
                exchange_rate=cached.exchange_rate,
                company_name=cached.company_name,
                price_date=cached.price_date,
                fetched_at=cached.fetched_at,
            )

        usd_price = quote.price
        cad_price = round(usd_price * rate, 6)
        self._holdings.set(
            key,
            {
                "price": usd_price,
                "usd_price": usd_price,
                "cad_price": cad_price,
                "exchange_rate": rate,
                "company_name": quote.name,
                "price_date": quote.timestamp,
            },
        )
        cached = self._holdings.get(key)
        return HoldingPrice(
            symbol=key,
            price=usd_price,
            source=PriceSource.LIVE,
            stale=False,
            usd_price=usd_price,
            cad_price=cad_price,
            exchange_rate=rate,
            company_name=quote.name,
            price_date=quote.timestamp,
            fetched_at=cached.fetched_at if cached else None,
        )

    def refresh_holdings(self, symbols: list[str]) -> BatchRefreshSummary:
        """Refresh several holding prices concurrently; failures are reported per symbol."""
        unique = sorted({s for s in (normalize_symbol(x) for x in symbols) if s})
        summary = BatchRefreshSummary()
        if not unique:
            return summary

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(unique))) as ex:
            futures = {sym: ex.submit(self._refresh_one, sym) for sym in unique}
            for sym in unique:
                summary.results.append(futures[sym].result())

        logger.info(
            "Holdings refresh: %d successful, %d failed", summary.successful, summary.failed
        )
        return summary

    def _refresh_one(self, symbol: str) -> SymbolRefreshResult:
        try:
            price = self.get_holding_price(symbol)
        except AppError as e:
            return SymbolRefreshResult(symbol=symbol, success=False, error=e.message)
        except Exception as e:
            logger.exception("Unexpected error refreshing %s", symbol)
            return SymbolRefreshResult(symbol=symbol, success=False, error=str(e))
        if price.source is PriceSource.CACHE:
            return SymbolRefreshResult(symbol=symbol, success=False, error="served from cache after fetch failure")
        return SymbolRefreshResult(symbol=symbol, success=True, data_points=1)


def _require_symbol(symbol: str) -> str:
    key = normalize_symbol(symbol)
    if key is None:
        raise ValidationError("Symbol must not be empty")
    return key
