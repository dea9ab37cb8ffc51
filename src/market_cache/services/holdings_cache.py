"""Persistent last-known-good price cache for portfolio holdings."""

import logging
import math
from dataclasses import asdict, is_dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Union

from market_cache.core.timezone import now_eastern
from market_cache.domain.models import HoldingCacheRecord
from market_cache.domain.models.cache import parse_timestamp
from market_cache.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=1)


class HoldingsCache:
    """
    Latest known price per holding symbol, persisted on every write.

    Entries never expire. is_stale() is advisory: callers decide whether to
    refetch, and fall back to the stored record when a live fetch fails.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = now_eastern,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ):
        self._store = store
        self._clock = clock
        self._max_age = max_age

    def get(self, symbol: str) -> Optional[HoldingCacheRecord]:
        """Get cached holding data, or None if never cached."""
        entry = self._store.get(symbol.upper())
        if entry is None:
            return None
        return HoldingCacheRecord.from_dict(entry.value)

    def set(self, symbol: str, data: Union[Mapping[str, Any], HoldingCacheRecord]) -> bool:
        """
        Store holding data for symbol.

        Data without a truthy, numeric price or with unreadable timestamps is
        skipped (logged, returns False); an existing entry is left as it was.
        """
        fields = asdict(data) if is_dataclass(data) else dict(data or {})
        if not fields.get("price"):
            logger.info("Skipping cache update for %s: no valid price data", symbol)
            return False

        try:
            price = float(fields["price"])
            price_date = parse_timestamp(fields.get("price_date"))
            fetched_at = parse_timestamp(fields.get("fetched_at"))
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("Skipping cache update for %s: malformed data (%s)", symbol, e)
            return False
        if not math.isfinite(price):
            logger.warning("Skipping cache update for %s: non-finite price %r", symbol, fields["price"])
            return False

        now = self._clock()
        key = symbol.upper()
        record = HoldingCacheRecord(
            symbol=key,
            price=price,
            usd_price=fields.get("usd_price"),
            cad_price=fields.get("cad_price"),
            company_name=fields.get("company_name"),
            exchange_rate=fields.get("exchange_rate"),
            last_updated=now,
            price_date=price_date or now,
            fetched_at=fetched_at or now,
        )
        self._store.set(key, record.to_dict(), fetched_at=record.fetched_at, price_date=record.price_date)
        logger.info("Cached %s at %.4f (price date %s)", key, record.price, record.price_date.isoformat())
        return True

    def is_stale(self, symbol: str) -> bool:
        """True if never cached or fetched longer ago than the max age."""
        record = self.get(symbol)
        if record is None or record.fetched_at is None:
            return True
        return self._clock() - record.fetched_at > self._max_age

    def get_all_symbols(self) -> list[str]:
        return self._store.keys()

    def clear_all(self) -> int:
        """Remove every cached holding; returns the count removed."""
        count = self._store.clear_all()
        logger.info("Manually cleared %d holdings cache entries", count)
        return count

    def get_stats(self) -> dict[str, Any]:
        symbols = sorted(self.get_all_symbols())
        return {
            "total_entries": len(symbols),
            "stale_entries": sum(1 for s in symbols if self.is_stale(s)),
            "symbols": symbols,
        }
