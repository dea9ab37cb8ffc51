"""Application context for in-process service management.

Owns the single instance of every store and service, so that one process
never has two objects mirroring the same cache file.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from market_cache.config.settings import Settings, get_settings
from market_cache.core.timezone import now_eastern
from market_cache.providers import (
    CoinGeckoProvider,
    ExchangeRateProvider,
    HistoryProvider,
    QuoteProvider,
    StubMarketDataProvider,
    YahooFinanceProvider,
)
from market_cache.repositories import JsonFileStore, JsonPortfolioRepository
from market_cache.services import (
    AssetDiscovery,
    FileTracker,
    HistoricalPreloader,
    HistoricalSeriesCache,
    HoldingsCache,
    MarketDataService,
    QuoteCache,
)


class AppContext:
    """
    Lazily wires stores, providers and services from one Settings object.

    Providers may be injected (tests pass deterministic or failing ones);
    otherwise they are chosen by settings.market_data_provider.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        stock_provider: Optional[QuoteProvider] = None,
        crypto_provider: Optional[QuoteProvider] = None,
        fx_provider: Optional[ExchangeRateProvider] = None,
        history_provider: Optional[HistoryProvider] = None,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._settings = settings or get_settings()
        self._clock = clock
        self._stock_provider = stock_provider
        self._crypto_provider = crypto_provider
        self._fx_provider = fx_provider
        self._history_provider = history_provider
        self._lock = threading.RLock()

        self._holdings_store: Optional[JsonFileStore] = None
        self._historical_store: Optional[JsonFileStore] = None
        self._tracking_store: Optional[JsonFileStore] = None
        self._portfolio_repo: Optional[JsonPortfolioRepository] = None

        self._quote_cache: Optional[QuoteCache] = None
        self._holdings_cache: Optional[HoldingsCache] = None
        self._historical_cache: Optional[HistoricalSeriesCache] = None
        self._asset_discovery: Optional[AssetDiscovery] = None
        self._market_data_service: Optional[MarketDataService] = None
        self._historical_preloader: Optional[HistoricalPreloader] = None
        self._file_tracker: Optional[FileTracker] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    # Providers

    def _default_providers(self) -> None:
        with self._lock:
            self._choose_providers()

    def _choose_providers(self) -> None:
        if self._settings.market_data_provider == "stub":
            stub = StubMarketDataProvider()
            self._stock_provider = self._stock_provider or stub
            self._crypto_provider = self._crypto_provider or stub
            self._fx_provider = self._fx_provider or stub
            self._history_provider = self._history_provider or stub
            return

        yahoo = YahooFinanceProvider(timeout_seconds=self._settings.http_timeout_seconds)
        self._stock_provider = self._stock_provider or yahoo
        self._fx_provider = self._fx_provider or yahoo
        self._history_provider = self._history_provider or yahoo
        if self._crypto_provider is None:
            self._crypto_provider = CoinGeckoProvider(
                api_key=self._settings.coingecko_api_key,
                timeout_seconds=self._settings.http_timeout_seconds,
            )

    @property
    def stock_provider(self) -> QuoteProvider:
        if self._stock_provider is None:
            self._default_providers()
        return self._stock_provider

    @property
    def crypto_provider(self) -> QuoteProvider:
        if self._crypto_provider is None:
            self._default_providers()
        return self._crypto_provider

    @property
    def fx_provider(self) -> ExchangeRateProvider:
        if self._fx_provider is None:
            self._default_providers()
        return self._fx_provider

    @property
    def history_provider(self) -> HistoryProvider:
        if self._history_provider is None:
            self._default_providers()
        return self._history_provider

    # Stores

    def _json_store(self, path) -> JsonFileStore:
        return JsonFileStore(path, clock=self._clock, strict_writes=self._settings.cache_strict_writes)

    @property
    def portfolio_repo(self) -> JsonPortfolioRepository:
        with self._lock:
            if self._portfolio_repo is None:
                self._portfolio_repo = JsonPortfolioRepository(self._settings.portfolios_file)
        return self._portfolio_repo

    # Services

    @property
    def quote_cache(self) -> QuoteCache:
        with self._lock:
            if self._quote_cache is None:
                self._quote_cache = QuoteCache()
        return self._quote_cache

    @property
    def holdings_cache(self) -> HoldingsCache:
        with self._lock:
            if self._holdings_cache is None:
                self._holdings_store = self._json_store(self._settings.holdings_cache_file)
                self._holdings_cache = HoldingsCache(
                    self._holdings_store,
                    clock=self._clock,
                    max_age=timedelta(seconds=self._settings.holdings_max_age_seconds),
                )
        return self._holdings_cache

    @property
    def historical_cache(self) -> HistoricalSeriesCache:
        with self._lock:
            if self._historical_cache is None:
                self._historical_store = self._json_store(self._settings.historical_cache_file)
                self._historical_cache = HistoricalSeriesCache(
                    self._historical_store,
                    clock=self._clock,
                    min_missing_days=self._settings.historical_min_missing_days,
                )
        return self._historical_cache

    @property
    def asset_discovery(self) -> AssetDiscovery:
        with self._lock:
            if self._asset_discovery is None:
                self._asset_discovery = AssetDiscovery(
                    self.portfolio_repo,
                    self._settings.get_upload_dirs(),
                    clock=self._clock,
                )
        return self._asset_discovery

    @property
    def market_data_service(self) -> MarketDataService:
        with self._lock:
            if self._market_data_service is None:
                s = self._settings
                self._market_data_service = MarketDataService(
                    quote_cache=self.quote_cache,
                    holdings_cache=self.holdings_cache,
                    stock_provider=self.stock_provider,
                    crypto_provider=self.crypto_provider,
                    fx_provider=self.fx_provider,
                    stock_ttl_seconds=s.stock_quote_ttl_seconds,
                    crypto_ttl_seconds=s.crypto_quote_ttl_seconds,
                    fx_ttl_seconds=s.exchange_rate_ttl_seconds,
                )
        return self._market_data_service

    @property
    def historical_preloader(self) -> HistoricalPreloader:
        with self._lock:
            if self._historical_preloader is None:
                s = self._settings
                self._historical_preloader = HistoricalPreloader(
                    discovery=self.asset_discovery,
                    historical_cache=self.historical_cache,
                    history_provider=self.history_provider,
                    max_concurrent=s.preload_max_concurrent,
                    batch_delay_seconds=s.preload_batch_delay_seconds,
                    max_retries=s.preload_max_retries,
                    retry_delay_seconds=s.preload_retry_delay_seconds,
                    full_history_days=s.historical_full_history_days,
                    fetch_buffer_days=s.historical_fetch_buffer_days,
                    clock=self._clock,
                )
        return self._historical_preloader

    @property
    def file_tracker(self) -> FileTracker:
        with self._lock:
            if self._file_tracker is None:
                self._tracking_store = self._json_store(self._settings.file_tracking_file)
                self._file_tracker = FileTracker(
                    self._tracking_store,
                    self._settings.get_upload_dirs(),
                    clock=self._clock,
                )
        return self._file_tracker

    def close(self) -> None:
        """Release provider resources (HTTP clients)."""
        if isinstance(self._crypto_provider, CoinGeckoProvider):
            self._crypto_provider.close()


# Global context instance (can be replaced at runtime)
_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Return the process-wide context, creating it on first use."""
    global _context
    if _context is None:
        _context = AppContext()
    return _context


def set_app_context(context: Optional[AppContext]) -> None:
    """Replace the process-wide context (None forces recreation)."""
    global _context
    _context = context
