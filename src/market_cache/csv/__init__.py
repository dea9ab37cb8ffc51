"""Trade-file CSV handling."""

from market_cache.csv.trade_symbols import TradeFileSymbolReader, SYMBOL_COLUMN_HINTS

__all__ = ["TradeFileSymbolReader", "SYMBOL_COLUMN_HINTS"]
