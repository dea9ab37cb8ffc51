"""
Persistent per-symbol daily price series with incremental merge.

The stored series for a symbol is always the maximal known history, strictly
ascending by date with no duplicate dates. Callers ask for a window
(``get(symbol, "3m")``) and filtering happens at read time.

Freshness uses a weekday calendar: every Monday-Friday strictly after the
last stored date, up to and including today (US/Eastern), counts as a
missing trading day. Exchange holidays are not modelled, so a holiday shows
up as one missing day until the next session's bar arrives.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, Optional, Union

from market_cache.core.exceptions import ValidationError
from market_cache.core.timezone import eastern_date, iter_trading_days, now_eastern
from market_cache.domain.models import AssetInfo, HistoricalSeriesRecord, PricePoint
from market_cache.domain.views import SeriesWindow, UpdateStatus
from market_cache.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

# Read-time windows; None means the whole series
PERIOD_DAYS: dict[str, Optional[int]] = {
    "5d": 5,
    "1m": 30,
    "3m": 90,
    "6m": 180,
    "1y": 365,
    "2y": 730,
    "5y": 1825,
    "max": None,
}

PointInput = Union[PricePoint, dict[str, Any]]


def normalize_points(points: Iterable[PointInput]) -> list[PricePoint]:
    """
    Sort ascending by date and drop duplicate dates (the last occurrence wins).

    Points that cannot be parsed or have no close are skipped.
    """
    by_date: dict[date, PricePoint] = {}
    for raw in points:
        try:
            point = PricePoint.coerce(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed price point %r: %s", raw, e)
            continue
        if point.close is None:
            continue
        by_date[point.date] = point
    return [by_date[d] for d in sorted(by_date)]


def missing_trading_days(last_date: date, today: date) -> list[date]:
    """Weekdays strictly after last_date, up to and including today."""
    return list(iter_trading_days(last_date + timedelta(days=1), today))


class HistoricalSeriesCache:
    """Per-symbol series cache; update_incremental and set are the only mutators."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = now_eastern,
        min_missing_days: int = 1,
    ):
        self._store = store
        self._clock = clock
        self._min_missing_days = max(1, min_missing_days)

    def today(self) -> date:
        return eastern_date(self._clock())

    def get_record(self, symbol: str) -> Optional[HistoricalSeriesRecord]:
        """Load the stored series; a malformed persisted record reads as absent."""
        entry = self._store.get(symbol.upper())
        if entry is None:
            return None
        try:
            record = HistoricalSeriesRecord.from_dict(entry.value)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed historical cache entry for %s: %s", symbol, e)
            return None
        # Files may have been edited by hand or written by older versions
        record.points = normalize_points(record.points)
        return record

    def needs_update(self, symbol: str) -> UpdateStatus:
        """
        Report whether symbol's series is behind today.

        No entry (or an empty series) means a full fetch is needed and
        missing_days is empty; otherwise missing_days lists the trading days
        the caller should request.
        """
        record = self.get_record(symbol)
        if record is None or not record.points:
            return UpdateStatus(needs_update=True, last_date=None, missing_days=[])
        return self._status_for(record)

    def get(self, symbol: str, period: Optional[str] = None) -> Optional[SeriesWindow]:
        """
        Return the stored series filtered to the requested period.

        Raises ValidationError for an unknown period; returns None when the
        symbol has never been cached.
        """
        if period is not None and period not in PERIOD_DAYS:
            raise ValidationError(
                f"Unknown period {period!r}; expected one of {', '.join(PERIOD_DAYS)}"
            )

        record = self.get_record(symbol)
        if record is None:
            return None

        data = record.points
        requested_days = PERIOD_DAYS.get(period) if period else None
        if requested_days:
            cutoff = self.today() - timedelta(days=requested_days)
            data = [p for p in data if p.date >= cutoff]

        status = self._status_for(record) if record.points else UpdateStatus(needs_update=True)
        return SeriesWindow(
            symbol=record.symbol,
            data=data,
            needs_update=status.needs_update,
            filtered_data_points=len(data),
            total_data_points=record.total_data_points,
            filtered_period=period,
            last_modified=record.last_modified,
            last_date=record.last_date,
        )

    def set(
        self,
        symbol: str,
        points: Iterable[PointInput],
        asset_info: Optional[AssetInfo] = None,
    ) -> HistoricalSeriesRecord:
        """Replace the whole series (first population or full resync)."""
        key = symbol.upper()
        normalized = normalize_points(points)
        if not normalized:
            logger.warning("Storing empty historical series for %s", key)

        record = HistoricalSeriesRecord(
            symbol=key,
            points=normalized,
            last_modified=self._clock(),
            asset_info=asset_info,
        )
        self._persist(record)

        span = f" ({record.date_span_days} days span)" if record.date_span_days > 0 else ""
        logger.info("Cached complete historical data for %s: %d data points%s", key, len(normalized), span)
        return record

    def update_incremental(self, symbol: str, new_points: Iterable[PointInput]) -> int:
        """
        Append the points dated after the stored last date; returns how many were added.

        Points on or before the last stored date are discarded, so replaying a
        batch is a no-op and stored history is never rewritten. Gaps inside the
        upstream data are kept as-is. With no stored series this is a full set().
        """
        key = symbol.upper()
        candidates = normalize_points(new_points)
        if not candidates:
            logger.info("Skipping incremental cache update for %s: no valid data", key)
            return 0

        existing = self.get_record(key)
        if existing is None or not existing.points:
            record = self.set(
                key,
                candidates,
                asset_info=existing.asset_info if existing else None,
            )
            return record.total_data_points

        last_date = existing.last_date
        fresh = [p for p in candidates if p.date > last_date]
        if not fresh:
            logger.info("No new data points for %s after %s", key, last_date)
            return 0

        record = HistoricalSeriesRecord(
            symbol=key,
            points=existing.points + fresh,
            last_modified=self._clock(),
            asset_info=existing.asset_info,
        )
        self._persist(record)
        logger.info(
            "Incremental update for %s: added %d new data points (%d total)",
            key, len(fresh), record.total_data_points,
        )
        return len(fresh)

    def get_all_symbols(self) -> list[str]:
        return self._store.keys()

    def clear_all(self) -> int:
        """Remove every cached series; returns the count removed."""
        count = self._store.clear_all()
        logger.info("Manually cleared %d historical cache entries", count)
        return count

    def clear_old_entries(self, days_old: int = 30) -> int:
        """
        Remove series not modified within days_old days.

        Administrative action only; nothing calls this on a read path.
        """
        cutoff = self._clock() - timedelta(days=days_old)
        old = []
        for key, entry in self._store.items():
            record = self.get_record(key)
            modified = record.last_modified if record else entry.fetched_at
            if modified is None or modified < cutoff:
                old.append(key)
        removed = self._store.delete_many(old) if old else 0
        if removed:
            logger.info("Removed %d historical cache entries older than %d days", removed, days_old)
        return removed

    def get_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {
            "total_symbols": 0,
            "needs_update_count": 0,
            "total_data_points": 0,
            "symbols": {},
        }
        for key in sorted(self.get_all_symbols()):
            record = self.get_record(key)
            if record is None:
                continue
            status = self._status_for(record) if record.points else UpdateStatus(needs_update=True)
            stats["symbols"][key] = {
                "last_modified": record.last_modified.isoformat() if record.last_modified else None,
                "data_points": record.total_data_points,
                "earliest_date": record.earliest_date.isoformat() if record.earliest_date else None,
                "last_date": record.last_date.isoformat() if record.last_date else None,
                "date_span_days": record.date_span_days,
                "needs_update": status.needs_update,
                "days_missing": status.days_missing,
                "asset_info": record.asset_info.to_dict() if record.asset_info else None,
            }
            stats["total_symbols"] += 1
            stats["total_data_points"] += record.total_data_points
            if status.needs_update:
                stats["needs_update_count"] += 1
        return stats

    def _status_for(self, record: HistoricalSeriesRecord) -> UpdateStatus:
        missing = missing_trading_days(record.last_date, self.today())
        return UpdateStatus(
            needs_update=len(missing) >= self._min_missing_days,
            last_date=record.last_date,
            missing_days=missing,
        )

    def _persist(self, record: HistoricalSeriesRecord) -> None:
        self._store.set(record.symbol, record.to_dict(), fetched_at=record.last_modified)
