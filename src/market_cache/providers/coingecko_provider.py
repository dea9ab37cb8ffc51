"""CoinGecko provider for cryptocurrency quotes."""

import logging
import time as time_module
from typing import Any, Callable, Optional

import httpx

from market_cache.core.exceptions import FetchError
from market_cache.core.timezone import now_eastern
from market_cache.domain.models import QuoteRecord
from market_cache.providers.symbols import COINGECKO_IDS

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# Max retries for rate-limited requests
_MAX_RETRIES = 3
_BASE_DELAY_SECONDS = 1.0


class CoinGeckoProvider:
    """Quote provider using the CoinGecko /simple/price endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time_module.sleep,
    ):
        """
        Args:
            api_key: CoinGecko demo API key, sent as x-cg-demo-api-key.
                     If None, uses the keyless public API.
            client: Pre-built httpx client (tests pass one with a mock transport).
            sleep: Backoff sleeper, replaceable in tests.
        """
        if client is None:
            headers: dict[str, str] = {}
            if api_key:
                headers["x-cg-demo-api-key"] = api_key
            client = httpx.Client(
                base_url=COINGECKO_BASE_URL,
                headers=headers,
                timeout=timeout_seconds,
            )
        self._client = client
        self._sleep = sleep
        self._resolved_ids: dict[str, str] = dict(COINGECKO_IDS)

    @property
    def provider_name(self) -> str:
        return "coingecko"

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def fetch_quote(self, symbol: str, currency: str = "USD") -> QuoteRecord:
        """Fetch price, 24h change and 24h volume for a coin symbol."""
        coin_id = self._resolve_coin_id(symbol)
        vs = currency.lower()
        try:
            response = self._request_with_retry(
                "GET",
                "/simple/price",
                params={
                    "ids": coin_id,
                    "vs_currencies": vs,
                    "include_24hr_change": "true",
                    "include_24hr_vol": "true",
                },
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"CoinGecko price request failed for {symbol}: {e}", symbol=symbol) from e

        data = payload.get(coin_id) if isinstance(payload, dict) else None
        if not data or data.get(vs) is None:
            raise FetchError(f"CoinGecko returned no {vs} price for {symbol}", symbol=symbol)

        return QuoteRecord(
            symbol=symbol.upper(),
            price=float(data[vs]),
            currency=vs.upper(),
            timestamp=now_eastern(),
            change_24h=data.get(f"{vs}_24h_change"),
            volume=data.get(f"{vs}_24h_vol"),
            name=coin_id,
        )

    def _resolve_coin_id(self, symbol: str) -> str:
        """
        Resolve a ticker symbol to a CoinGecko coin ID.

        Checks the known mapping first, then the /search endpoint, picking the
        exact symbol match with the best market-cap rank.
        """
        upper = symbol.upper()
        if upper in self._resolved_ids:
            return self._resolved_ids[upper]

        try:
            response = self._request_with_retry("GET", "/search", params={"query": symbol})
            coins = response.json().get("coins", [])
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"CoinGecko search failed for {symbol}: {e}", symbol=symbol) from e

        matches = [c for c in coins if str(c.get("symbol", "")).upper() == upper]
        if not matches:
            raise FetchError(f"CoinGecko has no coin for symbol {symbol}", symbol=symbol)

        ranked = [c for c in matches if c.get("market_cap_rank") is not None]
        best = min(ranked, key=lambda c: c["market_cap_rank"]) if ranked else matches[0]
        coin_id = best["id"]
        self._resolved_ids[upper] = coin_id
        logger.info("CoinGecko: resolved %s -> %s", symbol, coin_id)
        return coin_id

    def _request_with_retry(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request with exponential backoff on 429 responses."""
        for attempt in range(_MAX_RETRIES):
            response = self._client.request(method, path, **kwargs)
            if response.status_code == 429:
                delay = _BASE_DELAY_SECONDS * (2 ** attempt)
                logger.warning(
                    "CoinGecko: rate limited, retrying in %.1fs (attempt %d/%d)",
                    delay, attempt + 1, _MAX_RETRIES,
                )
                self._sleep(delay)
                continue
            response.raise_for_status()
            return response
        raise FetchError("CoinGecko: rate limit retries exhausted")
