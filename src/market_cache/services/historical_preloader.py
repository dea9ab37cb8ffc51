"""
Historical cache pre-population.

Walks the discovery worklist in small concurrent batches, fetching only
the days each symbol is missing. One symbol's failure never aborts the
batch; results are collected per symbol.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from market_cache.core.exceptions import AppError, FetchError
from market_cache.core.timezone import now_eastern
from market_cache.domain.models import UpdateType
from market_cache.domain.views import (
    BatchRefreshSummary,
    PreloadResult,
    SymbolRefreshResult,
    SymbolUpdateInfo,
)
from market_cache.providers.market_data_provider import HistoryProvider
from market_cache.providers.symbols import normalize_symbol
from market_cache.services.asset_discovery import AssetDiscovery
from market_cache.services.historical_cache import HistoricalSeriesCache

logger = logging.getLogger(__name__)


class HistoricalPreloader:
    """Fills and tops up the historical series cache for every discovered symbol."""

    def __init__(
        self,
        discovery: AssetDiscovery,
        historical_cache: HistoricalSeriesCache,
        history_provider: HistoryProvider,
        max_concurrent: int = 3,
        batch_delay_seconds: float = 0.5,
        max_retries: int = 2,
        retry_delay_seconds: float = 1.0,
        full_history_days: int = 3650,
        fetch_buffer_days: int = 5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._discovery = discovery
        self._cache = historical_cache
        self._provider = history_provider
        self._max_concurrent = max(1, max_concurrent)
        self._batch_delay = batch_delay_seconds
        self._max_retries = max(0, max_retries)
        self._retry_delay = retry_delay_seconds
        self._full_history_days = full_history_days
        self._fetch_buffer_days = fetch_buffer_days
        self._sleep = sleep
        self._clock = clock

        self._run_lock = threading.Lock()
        self._last_run_at: Optional[datetime] = None
        self._last_result: Optional[PreloadResult] = None

    @property
    def is_preloading(self) -> bool:
        return self._run_lock.locked()

    def prepopulate(self) -> PreloadResult:
        """
        Bring every discovered symbol's series up to date.

        Only one run at a time; a concurrent call returns immediately with
        success=False. A running batch always finishes.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Historical data preloading already in progress")
            return PreloadResult(success=False, message="Already in progress")

        started = time.monotonic()
        try:
            logger.info("Starting historical data pre-population")
            worklist = self._discovery.symbols_needing_historical_update(self._cache)
            if not worklist:
                result = PreloadResult(success=True, message="All data up to date")
                logger.info("All historical data is up to date")
            else:
                summary = self._process_in_batches(worklist)
                result = PreloadResult(
                    success=True,
                    message=(
                        f"Processed {len(worklist)} symbols: "
                        f"{summary.successful} successful, {summary.failed} failed"
                    ),
                    symbols_processed=len(worklist),
                    summary=summary,
                )
                if summary.failed:
                    logger.warning("Failed symbols: %s", ", ".join(summary.errors))

            result.duration_ms = int((time.monotonic() - started) * 1000)
            self._last_run_at = self._clock()
            self._last_result = result
            logger.info("Pre-population finished in %d ms: %s", result.duration_ms, result.message)
            return result
        finally:
            self._run_lock.release()

    def refresh_symbol(self, symbol: str, max_retries: Optional[int] = None) -> SymbolRefreshResult:
        """
        Bring one symbol up to date, fetching only what it is missing.

        max_retries overrides the configured retry count; request handlers
        pass 0 so a failing upstream falls back to cached data immediately.
        """
        key = normalize_symbol(symbol) or ""
        status = self._cache.needs_update(key)
        record = self._cache.get_record(key)
        info = SymbolUpdateInfo(
            symbol=key,
            last_date=status.last_date,
            missing_days=status.missing_days,
            data_points=record.total_data_points if record else 0,
        )
        return self.fetch_and_cache(info, max_retries=max_retries)

    def quick_update_symbols(self, symbols: list[str]) -> BatchRefreshSummary:
        """Update the named symbols one after another, skipping those already current."""
        summary = BatchRefreshSummary()
        for symbol in symbols:
            key = normalize_symbol(symbol)
            if key is None:
                continue
            status = self._cache.needs_update(key)
            if not status.needs_update:
                summary.results.append(
                    SymbolRefreshResult(symbol=key, success=True, update_type=UpdateType.UP_TO_DATE)
                )
                continue
            summary.results.append(self.refresh_symbol(key))
        return summary

    def fetch_and_cache(
        self, info: SymbolUpdateInfo, max_retries: Optional[int] = None
    ) -> SymbolRefreshResult:
        """
        Fetch and merge one worklist item, retrying FetchError up to max_retries times.

        Never raises: cache write failures and unexpected errors become a
        failed result without retries.
        """
        retries = self._max_retries if max_retries is None else max(0, max_retries)
        attempt = 0
        while True:
            try:
                result = self._fetch_once(info)
                result.retries = attempt
                return result
            except FetchError as e:
                if attempt >= retries:
                    logger.error("Failed to fetch data for %s: %s", info.symbol, e.message)
                    return SymbolRefreshResult(
                        symbol=info.symbol, success=False, error=e.message, retries=attempt
                    )
                attempt += 1
                logger.info(
                    "Retrying %s (%d/%d) in %.1fs: %s",
                    info.symbol, attempt, retries, self._retry_delay, e.message,
                )
                self._sleep(self._retry_delay)
            except AppError as e:
                logger.error("Failed to cache data for %s: %s", info.symbol, e.message)
                return SymbolRefreshResult(
                    symbol=info.symbol, success=False, error=e.message, retries=attempt
                )
            except Exception as e:
                logger.exception("Unexpected error updating %s", info.symbol)
                return SymbolRefreshResult(
                    symbol=info.symbol, success=False, error=str(e), retries=attempt
                )

    def status(self) -> dict[str, Any]:
        last = self._last_result
        return {
            "is_preloading": self.is_preloading,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "last_result": {
                "success": last.success,
                "message": last.message,
                "symbols_processed": last.symbols_processed,
                "duration_ms": last.duration_ms,
            } if last else None,
            "settings": {
                "max_concurrent": self._max_concurrent,
                "batch_delay_seconds": self._batch_delay,
                "max_retries": self._max_retries,
                "retry_delay_seconds": self._retry_delay,
            },
        }

    def _process_in_batches(self, worklist: list[SymbolUpdateInfo]) -> BatchRefreshSummary:
        summary = BatchRefreshSummary()
        batches = [
            worklist[i:i + self._max_concurrent]
            for i in range(0, len(worklist), self._max_concurrent)
        ]
        with ThreadPoolExecutor(max_workers=self._max_concurrent) as ex:
            for index, batch in enumerate(batches, start=1):
                logger.info(
                    "Processing batch %d/%d: %s",
                    index, len(batches), ", ".join(i.symbol for i in batch),
                )
                futures = [ex.submit(self.fetch_and_cache, item) for item in batch]
                summary.results.extend(f.result() for f in futures)
                if index < len(batches) and self._batch_delay > 0:
                    self._sleep(self._batch_delay)
        return summary

    def _fetch_once(self, info: SymbolUpdateInfo) -> SymbolRefreshResult:
        today = self._cache.today()

        if info.last_date is None:
            start = today - timedelta(days=self._full_history_days)
            logger.info("Fetching full history for %s from %s", info.symbol, start)
            points = self._provider.fetch_history(info.symbol, start, today)
            try:
                asset_info = self._provider.fetch_asset_info(info.symbol)
            except FetchError as e:
                logger.warning("No asset info for %s: %s", info.symbol, e.message)
                asset_info = None
            record = self._cache.set(info.symbol, points, asset_info=asset_info)
            return SymbolRefreshResult(
                symbol=info.symbol,
                success=True,
                data_points=record.total_data_points,
                update_type=UpdateType.FULL,
            )

        if info.last_date >= today:
            return SymbolRefreshResult(
                symbol=info.symbol, success=True, update_type=UpdateType.UP_TO_DATE
            )

        start = info.last_date - timedelta(days=self._fetch_buffer_days)
        logger.info(
            "Fetching %s from %s (%d trading days missing)", info.symbol, start, info.days_missing
        )
        points = self._provider.fetch_history(info.symbol, start, today)
        added = self._cache.update_incremental(info.symbol, points)
        return SymbolRefreshResult(
            symbol=info.symbol,
            success=True,
            data_points=added,
            update_type=UpdateType.INCREMENTAL if added else UpdateType.NO_NEW_DATA,
        )
