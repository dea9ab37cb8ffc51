"""Repository layer - data access abstractions and implementations."""

from market_cache.repositories.protocols import KeyValueStore, PortfolioRepository
from market_cache.repositories.json import JsonFileStore, JsonPortfolioRepository

__all__ = [
    "KeyValueStore",
    "PortfolioRepository",
    "JsonFileStore",
    "JsonPortfolioRepository",
]
