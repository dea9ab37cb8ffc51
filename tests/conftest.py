"""
Pytest configuration and fixtures for market cache tests.

This module provides:
- Controllable wall and monotonic clocks in US/Eastern
- Temporary data directories and settings
- Deterministic, failing and recording market data providers
- Store, cache and service fixtures
- A FastAPI TestClient wired to an isolated AppContext
"""

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from market_cache.api.deps import get_context
from market_cache.app_context import AppContext, set_app_context
from market_cache.config.settings import Settings, reset_settings
from market_cache.core.exceptions import FetchError
from market_cache.core.timezone import EASTERN_TZ, is_trading_day
from market_cache.domain.models import AssetInfo, PricePoint, QuoteRecord, TradeFileFormat
from market_cache.main import app
from market_cache.repositories import JsonFileStore, JsonPortfolioRepository
from market_cache.services import (
    AssetDiscovery,
    HistoricalPreloader,
    HistoricalSeriesCache,
    HoldingsCache,
    MarketDataService,
    QuoteCache,
)


# =============================================================================
# TIME HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeMonotonic:
    """Monotonic clock in seconds, for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fixed_now() -> datetime:
    """Friday 2024-01-05, after the close."""
    return eastern_datetime(2024, 1, 5, 17, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


def bar(day: str, close: float, **extra) -> dict:
    """Build a raw price point dict."""
    return {"date": day, "close": close, **extra}


class DeterministicMarketProvider:
    """
    Deterministic market data provider for testing.

    Quotes are fixed; history is one bar per weekday with close equal to
    100 plus the number of days since 2024-01-01. Every call is recorded.
    """

    FIXED_QUOTES = {
        "AAPL": 185.50,
        "MSFT": 378.25,
        "TSLA": 248.75,
        "BTC": 43250.00,
        "ETH": 2280.50,
    }
    USD_CAD = 1.35

    def __init__(self, as_of: Optional[datetime] = None):
        self._as_of = as_of or eastern_datetime(2024, 1, 5, 16, 0, 0)
        self.quote_calls: list[tuple[str, str]] = []
        self.fx_calls: list[tuple[str, str]] = []
        self.history_calls: list[tuple[str, date, date]] = []

    def fetch_quote(self, symbol: str, currency: str = "USD") -> QuoteRecord:
        self.quote_calls.append((symbol, currency))
        upper = symbol.upper()
        if upper not in self.FIXED_QUOTES:
            raise FetchError(f"Unknown symbol {upper}", symbol=upper)
        return QuoteRecord(
            symbol=upper,
            price=self.FIXED_QUOTES[upper],
            currency=currency.upper(),
            timestamp=self._as_of,
            change_24h=1.5,
            volume=1000.0,
            name=f"{upper} Inc.",
        )

    def fetch_exchange_rate(self, base: str, quote: str) -> float:
        self.fx_calls.append((base, quote))
        return self.USD_CAD

    def fetch_history(self, symbol: str, start: date, end: date, interval: str = "1d") -> list[PricePoint]:
        self.history_calls.append((symbol, start, end))
        points = []
        day = start
        while day <= end:
            if is_trading_day(day):
                points.append(PricePoint(date=day, close=100.0 + (day - date(2024, 1, 1)).days))
            day += timedelta(days=1)
        if not points:
            raise FetchError(f"No data for {symbol}", symbol=symbol)
        return points

    def fetch_asset_info(self, symbol: str) -> Optional[AssetInfo]:
        return AssetInfo(name=f"{symbol.upper()} Inc.", symbol=symbol.upper(), instrument_type="EQUITY")


class FailingMarketProvider:
    """Market provider that always raises FetchError."""

    def __init__(self):
        self.calls = 0

    def fetch_quote(self, symbol: str, currency: str = "USD") -> QuoteRecord:
        self.calls += 1
        raise FetchError("Network unavailable", symbol=symbol)

    def fetch_exchange_rate(self, base: str, quote: str) -> float:
        self.calls += 1
        raise FetchError("Network unavailable")

    def fetch_history(self, symbol: str, start: date, end: date, interval: str = "1d") -> list[PricePoint]:
        self.calls += 1
        raise FetchError("Network unavailable", symbol=symbol)

    def fetch_asset_info(self, symbol: str) -> Optional[AssetInfo]:
        self.calls += 1
        raise FetchError("Network unavailable", symbol=symbol)


@pytest.fixture
def deterministic_provider(fixed_now) -> DeterministicMarketProvider:
    """Provide deterministic market data provider."""
    return DeterministicMarketProvider(as_of=fixed_now)


@pytest.fixture
def failing_provider() -> FailingMarketProvider:
    """Provide a market provider that always fails."""
    return FailingMarketProvider()


# =============================================================================
# SETTINGS AND STORAGE FIXTURES
# =============================================================================


@pytest.fixture
def data_dir(tmp_path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def settings(data_dir) -> Settings:
    """Settings pointing at a temporary data directory, with no waits."""
    reset_settings()
    return Settings(
        data_dir=data_dir,
        market_data_provider="stub",
        preload_batch_delay_seconds=0,
        preload_retry_delay_seconds=0,
        preload_max_retries=0,
        historical_full_history_days=30,
    )


@pytest.fixture
def upload_dirs(data_dir) -> dict[TradeFileFormat, Path]:
    dirs = {fmt: data_dir / "uploads" / fmt.value for fmt in TradeFileFormat}
    for path in dirs.values():
        path.mkdir(parents=True, exist_ok=True)
    return dirs


@pytest.fixture
def holdings_store(tmp_path, clock) -> JsonFileStore:
    return JsonFileStore(tmp_path / "holdings-cache.json", clock=clock)


@pytest.fixture
def historical_store(tmp_path, clock) -> JsonFileStore:
    return JsonFileStore(tmp_path / "historical-cache.json", clock=clock)


@pytest.fixture
def portfolio_repo(tmp_path) -> JsonPortfolioRepository:
    return JsonPortfolioRepository(tmp_path / "portfolios.json")


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def quote_cache(monotonic) -> QuoteCache:
    return QuoteCache(clock=monotonic)


@pytest.fixture
def holdings_cache(holdings_store, clock) -> HoldingsCache:
    return HoldingsCache(holdings_store, clock=clock)


@pytest.fixture
def historical_cache(historical_store, clock) -> HistoricalSeriesCache:
    return HistoricalSeriesCache(historical_store, clock=clock)


@pytest.fixture
def asset_discovery(portfolio_repo, upload_dirs, clock) -> AssetDiscovery:
    return AssetDiscovery(portfolio_repo, upload_dirs, clock=clock)


@pytest.fixture
def market_data_service(quote_cache, holdings_cache, deterministic_provider) -> MarketDataService:
    """Provide MarketDataService with the deterministic provider for every source."""
    return MarketDataService(
        quote_cache=quote_cache,
        holdings_cache=holdings_cache,
        stock_provider=deterministic_provider,
        crypto_provider=deterministic_provider,
        fx_provider=deterministic_provider,
    )


@pytest.fixture
def preloader(asset_discovery, historical_cache, deterministic_provider, clock) -> HistoricalPreloader:
    return HistoricalPreloader(
        discovery=asset_discovery,
        historical_cache=historical_cache,
        history_provider=deterministic_provider,
        batch_delay_seconds=0,
        full_history_days=30,
        retry_delay_seconds=0,
        sleep=lambda seconds: None,
        clock=clock,
    )


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def app_context(settings, deterministic_provider, clock) -> AppContext:
    """AppContext over the temporary data directory with deterministic providers."""
    ctx = AppContext(
        settings=settings,
        stock_provider=deterministic_provider,
        crypto_provider=deterministic_provider,
        fx_provider=deterministic_provider,
        history_provider=deterministic_provider,
        clock=clock,
    )
    set_app_context(ctx)
    yield ctx
    set_app_context(None)


@pytest.fixture
def client(app_context) -> TestClient:
    """Create test client with the isolated AppContext."""
    app.dependency_overrides[get_context] = lambda: app_context
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
