"""Stub market data provider for offline/testing use."""

import random
from datetime import date
from typing import Optional

from market_cache.core.timezone import iter_trading_days, now_eastern
from market_cache.domain.models import AssetInfo, PricePoint, QuoteRecord
from market_cache.providers.symbols import is_crypto


# Deterministic fake prices for common symbols
_STUB_PRICES: dict[str, float] = {
    "AAPL": 185.50,
    "GOOGL": 142.75,
    "MSFT": 378.25,
    "AMZN": 178.50,
    "TSLA": 248.75,
    "NVDA": 485.25,
    "SPY": 485.25,
    "VTI": 252.30,
    "BTC": 43250.00,
    "ETH": 2280.50,
}

_STUB_USD_CAD = 1.35


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Known symbols use fixed prices; unknown symbols get a price derived from
    the symbol itself, so repeated calls agree. History covers weekdays only.
    """

    @property
    def provider_name(self) -> str:
        return "stub"

    def fetch_quote(self, symbol: str, currency: str = "USD") -> QuoteRecord:
        upper = symbol.upper()
        price = self._base_price(upper)
        if currency.upper() == "CAD":
            price = round(price * _STUB_USD_CAD, 2)
        return QuoteRecord(
            symbol=upper,
            price=price,
            currency=currency.upper(),
            timestamp=now_eastern(),
            change_24h=0.0,
            volume=1_000_000.0,
            name=upper,
        )

    def fetch_exchange_rate(self, base: str, quote: str) -> float:
        if base.upper() == quote.upper():
            return 1.0
        if (base.upper(), quote.upper()) == ("USD", "CAD"):
            return _STUB_USD_CAD
        if (base.upper(), quote.upper()) == ("CAD", "USD"):
            return round(1 / _STUB_USD_CAD, 6)
        return 1.0

    def fetch_history(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: str = "1d",
    ) -> list[PricePoint]:
        upper = symbol.upper()
        rng = random.Random(upper)
        price = self._base_price(upper)
        points = []
        for day in iter_trading_days(start, end):
            drift = 1 + (rng.random() - 0.5) * 0.02
            close = round(price * drift, 2)
            points.append(
                PricePoint(
                    date=day,
                    open=price,
                    high=max(price, close),
                    low=min(price, close),
                    close=close,
                    volume=float(rng.randint(100_000, 5_000_000)),
                )
            )
            price = close
        return points

    def fetch_asset_info(self, symbol: str) -> Optional[AssetInfo]:
        upper = symbol.upper()
        return AssetInfo(
            name=upper,
            symbol=upper,
            instrument_type="CRYPTOCURRENCY" if is_crypto(upper) else "EQUITY",
            currency="USD",
            exchange="STUB",
        )

    @staticmethod
    def _base_price(symbol: str) -> float:
        if symbol in _STUB_PRICES:
            return _STUB_PRICES[symbol]
        return round(50 + random.Random(symbol).random() * 200, 2)
