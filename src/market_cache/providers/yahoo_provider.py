"""
Yahoo Finance provider via yfinance.

Equity quotes, FX rates and daily history (crypto history uses the
"<SYMBOL>-USD" pairs). Every upstream problem surfaces as FetchError.
"""

import logging
from datetime import date, timedelta
from typing import Any, Optional

import pandas as pd

from market_cache.core.exceptions import FetchError
from market_cache.core.timezone import now_eastern
from market_cache.domain.models import AssetInfo, PricePoint, QuoteRecord
from market_cache.providers.symbols import to_yahoo_symbol

logger = logging.getLogger(__name__)


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _first_number(info: dict[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = info.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


def _cell(row: "pd.Series", column: str) -> Optional[float]:
    value = row.get(column)
    return None if value is None or pd.isna(value) else float(value)


class YahooFinanceProvider:
    """Quote, FX and history provider backed by Yahoo Finance."""

    def __init__(self, timeout_seconds: float = 15.0):
        self._timeout = timeout_seconds

    @property
    def provider_name(self) -> str:
        return "yahoo"

    def fetch_quote(self, symbol: str, currency: str = "USD") -> QuoteRecord:
        """
        Fetch the current quote for symbol.

        Price is currentPrice, falling back to regularMarketPrice; the quote
        currency is whatever Yahoo reports for the listing, not the argument.
        """
        yahoo_symbol = to_yahoo_symbol(symbol)
        info = self._fetch_info(yahoo_symbol)

        price = _first_number(info, "currentPrice", "regularMarketPrice")
        if price is None or price <= 0:
            raise FetchError(f"No price returned by Yahoo Finance for {yahoo_symbol}", symbol=symbol)

        prev_close = _first_number(info, "previousClose", "regularMarketPreviousClose")
        change = None
        if prev_close:
            change = round((price - prev_close) / prev_close * 100, 4)

        name = (info.get("longName") or info.get("shortName") or "").strip() or symbol.upper()
        return QuoteRecord(
            symbol=symbol.upper(),
            price=price,
            currency=(info.get("currency") or currency or "USD").upper(),
            timestamp=now_eastern(),
            change_24h=change,
            volume=_first_number(info, "regularMarketVolume", "volume"),
            name=name,
        )

    def fetch_exchange_rate(self, base: str, quote: str) -> float:
        """Rate from the "<BASE><QUOTE>=X" currency pair."""
        if base.upper() == quote.upper():
            return 1.0
        pair = f"{base.upper()}{quote.upper()}=X"
        info = self._fetch_info(pair)
        rate = _first_number(info, "regularMarketPrice", "currentPrice", "previousClose")
        if rate is None or rate <= 0:
            raise FetchError(f"No exchange rate returned for {pair}", symbol=pair)
        return rate

    def fetch_history(
        self,
        symbol: str,
        start: date,
        end: date,
        interval: str = "1d",
    ) -> list[PricePoint]:
        """Daily bars from Ticker.history; rows without a close are dropped."""
        yahoo_symbol = to_yahoo_symbol(symbol)
        logger.info("Fetching %s history %s..%s (%s)", yahoo_symbol, start, end, interval)
        try:
            ticker = _get_yf().Ticker(yahoo_symbol)
            hist = ticker.history(
                start=start,
                end=end + timedelta(days=1),
                interval=interval,
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as e:
            raise FetchError(f"Yahoo Finance history failed for {yahoo_symbol}: {e}", symbol=symbol) from e

        if hist is None or hist.empty:
            raise FetchError(f"No historical data returned for {yahoo_symbol}", symbol=symbol)

        # Newer yfinance releases may return (field, ticker) columns
        if isinstance(hist.columns, pd.MultiIndex):
            hist = hist.droplevel(-1, axis=1)
        if "Close" not in hist.columns:
            raise FetchError(f"No close prices returned for {yahoo_symbol}", symbol=symbol)

        points = []
        for idx, row in hist.dropna(subset=["Close"]).iterrows():
            points.append(
                PricePoint.from_dict({
                    "date": idx.to_pydatetime() if hasattr(idx, "to_pydatetime") else idx,
                    "open": _cell(row, "Open"),
                    "high": _cell(row, "High"),
                    "low": _cell(row, "Low"),
                    "close": _cell(row, "Close"),
                    "volume": _cell(row, "Volume"),
                })
            )
        if not points:
            raise FetchError(f"No valid historical data points for {yahoo_symbol}", symbol=symbol)
        return points

    def fetch_asset_info(self, symbol: str) -> Optional[AssetInfo]:
        yahoo_symbol = to_yahoo_symbol(symbol)
        info = self._fetch_info(yahoo_symbol)
        return AssetInfo(
            name=(info.get("longName") or info.get("shortName") or symbol.upper()),
            symbol=info.get("symbol") or yahoo_symbol,
            instrument_type=info.get("quoteType") or "UNKNOWN",
            currency=info.get("currency") or "USD",
            exchange=info.get("exchange") or info.get("fullExchangeName") or "UNKNOWN",
        )

    def _fetch_info(self, yahoo_symbol: str) -> dict[str, Any]:
        try:
            info = _get_yf().Ticker(yahoo_symbol).info
        except Exception as e:
            raise FetchError(f"Yahoo Finance lookup failed for {yahoo_symbol}: {e}", symbol=yahoo_symbol) from e
        if not isinstance(info, dict) or not info:
            raise FetchError(f"No data returned by Yahoo Finance for {yahoo_symbol}", symbol=yahoo_symbol)
        return info
