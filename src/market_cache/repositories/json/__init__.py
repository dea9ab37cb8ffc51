"""JSON-file implementations of the repository protocols."""

from market_cache.repositories.json.store import JsonFileStore
from market_cache.repositories.json.portfolio_repo import JsonPortfolioRepository

__all__ = [
    "JsonFileStore",
    "JsonPortfolioRepository",
]
