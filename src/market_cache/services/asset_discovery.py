"""Discovery of the symbol universe that needs historical data kept fresh."""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from market_cache.core.timezone import now_eastern
from market_cache.csv import TradeFileSymbolReader
from market_cache.domain.models import TradeFileFormat, holdings_from_record
from market_cache.domain.views import DiscoveryStats, SymbolUpdateInfo
from market_cache.repositories.protocols import PortfolioRepository
from market_cache.services.historical_cache import HistoricalSeriesCache

logger = logging.getLogger(__name__)


class AssetDiscovery:
    """
    Derives the symbol universe from persisted portfolios and uploaded trade files.

    Nothing is cached: every call rescans, since holdings and uploads can
    change between calls. Scanning is best-effort; a malformed portfolio
    record or file is logged and skipped.
    """

    def __init__(
        self,
        portfolio_repo: PortfolioRepository,
        upload_dirs: dict[TradeFileFormat, Path],
        symbol_reader: Optional[TradeFileSymbolReader] = None,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._portfolios = portfolio_repo
        self._upload_dirs = upload_dirs
        self._reader = symbol_reader or TradeFileSymbolReader()
        self._clock = clock

    def unique_symbols_from_portfolios(self) -> set[str]:
        """Upper-cased symbols of every holding with a positive quantity."""
        symbols: set[str] = set()
        for portfolio_id, record in self._portfolios.list_records():
            try:
                holdings = holdings_from_record(record)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.error("Skipping malformed portfolio record %s: %s", portfolio_id, e)
                continue
            symbols.update(h.symbol.upper() for h in holdings if h.quantity > 0)

        logger.info("Discovered %d unique symbols from portfolios", len(symbols))
        return symbols

    def unique_symbols_from_uploaded_files(self) -> set[str]:
        """Symbols parsed out of every CSV in the upload directories."""
        symbols: set[str] = set()
        for file_format, directory in self._upload_dirs.items():
            files = self._reader.list_trade_files(directory)
            logger.info("Found %d CSV files in %s directory", len(files), file_format.value)
            for path in files:
                try:
                    symbols.update(self._reader.read_symbols(path, file_format))
                except (OSError, UnicodeDecodeError, csv.Error) as e:
                    logger.error("Error processing %s: %s", path.name, e)

        logger.info("Discovered %d unique symbols from uploaded files", len(symbols))
        return symbols

    def all_unique_symbols(self) -> set[str]:
        """Union of portfolio and upload symbols, recomputed on every call."""
        portfolio_symbols = self.unique_symbols_from_portfolios()
        file_symbols = self.unique_symbols_from_uploaded_files()
        combined = portfolio_symbols | file_symbols
        logger.info(
            "Total unique symbols discovered: %d (portfolios: %d, files: %d)",
            len(combined), len(portfolio_symbols), len(file_symbols),
        )
        return combined

    def symbols_needing_historical_update(
        self,
        historical_cache: HistoricalSeriesCache,
    ) -> list[SymbolUpdateInfo]:
        """
        Worklist of symbols whose series is missing or behind.

        Never-fetched symbols come first, then the ones missing the most
        trading days; ties break on symbol.
        """
        worklist = []
        universe = self.all_unique_symbols()
        for symbol in universe:
            status = historical_cache.needs_update(symbol)
            if not status.needs_update:
                continue
            record = historical_cache.get_record(symbol)
            worklist.append(
                SymbolUpdateInfo(
                    symbol=symbol,
                    last_date=status.last_date,
                    missing_days=status.missing_days,
                    data_points=record.total_data_points if record else 0,
                )
            )

        worklist.sort(key=lambda info: (info.last_date is not None, -info.days_missing, info.symbol))
        logger.info("Historical data needed for %d/%d symbols", len(worklist), len(universe))
        if worklist:
            total_missing = sum(info.days_missing for info in worklist)
            logger.info("Total missing trading days across all symbols: %d", total_missing)
        return worklist

    def discovery_stats(self) -> DiscoveryStats:
        portfolio_symbols = self.unique_symbols_from_portfolios()
        file_symbols = self.unique_symbols_from_uploaded_files()
        combined = sorted(portfolio_symbols | file_symbols)
        return DiscoveryStats(
            total_symbols=len(combined),
            portfolio_symbols=len(portfolio_symbols),
            file_symbols=len(file_symbols),
            discovered_symbols=combined,
            discovered_at=self._clock(),
        )
