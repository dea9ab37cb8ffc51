"""Symbol extraction from uploaded trade-history CSV files."""

import csv
import logging
import re
from pathlib import Path
from typing import Optional

from market_cache.domain.models import TradeFileFormat

logger = logging.getLogger(__name__)

# Header fragments that identify the symbol-bearing column, per format
SYMBOL_COLUMN_HINTS: dict[TradeFileFormat, tuple[str, ...]] = {
    TradeFileFormat.WEALTHSIMPLE: ("description", "security"),
    TradeFileFormat.CRYPTO: ("symbol", "asset", "coin"),
}

# Wealthsimple descriptions end with the ticker: "APPLE INC (AAPL)"
_DESCRIPTION_TICKER = re.compile(r"\(([A-Z][A-Z0-9.]*)\)\s*$")
_CRYPTO_SYMBOL = re.compile(r"^[A-Z0-9]+$")


class TradeFileSymbolReader:
    """
    Reads the set of traded symbols out of an uploaded trade file.

    Expected formats:
    - wealthsimple: a Description/Security column, ticker in trailing parentheses
    - crypto: a Symbol/Asset/Coin column holding the coin code directly
    """

    def list_trade_files(self, directory: Path) -> list[Path]:
        """CSV files directly inside directory, sorted by name; missing dir -> []."""
        if not directory.is_dir():
            logger.info("Upload directory not found: %s", directory)
            return []
        return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".csv")

    def read_symbols(self, path: Path, file_format: TradeFileFormat) -> set[str]:
        """
        Extract symbols from one file.

        Empty files and files without a recognizable symbol column yield an
        empty set. I/O and CSV decoding errors propagate.
        """
        symbols: set[str] = set()
        with open(path, newline="", encoding="utf-8-sig") as csvfile:
            reader = csv.reader(csvfile)
            headers = next(reader, None)
            if not headers:
                logger.info("CSV file is empty: %s", path.name)
                return symbols

            column = self._find_symbol_column(headers, file_format)
            if column is None:
                logger.warning("Could not find symbol column in %s, headers: %s", path.name, headers)
                return symbols

            for row in reader:
                if len(row) <= column:
                    continue
                symbol = self._extract_symbol(row[column], file_format)
                if symbol:
                    symbols.add(symbol)

        logger.info("Extracted %d symbols from %s (%s)", len(symbols), path.name, file_format.value)
        return symbols

    @staticmethod
    def _find_symbol_column(headers: list[str], file_format: TradeFileFormat) -> Optional[int]:
        hints = SYMBOL_COLUMN_HINTS[file_format]
        for index, header in enumerate(headers):
            name = header.strip().lower()
            if any(hint in name for hint in hints):
                return index
        return None

    @staticmethod
    def _extract_symbol(value: str, file_format: TradeFileFormat) -> Optional[str]:
        text = value.strip().strip('"')
        if not text:
            return None
        if file_format == TradeFileFormat.WEALTHSIMPLE:
            match = _DESCRIPTION_TICKER.search(text)
            return match.group(1) if match else None
        candidate = text.upper()
        return candidate if _CRYPTO_SYMBOL.match(candidate) else None
