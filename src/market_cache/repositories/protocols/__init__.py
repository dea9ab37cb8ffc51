"""Repository protocol definitions (interfaces)."""

from market_cache.repositories.protocols.key_value_store import KeyValueStore
from market_cache.repositories.protocols.portfolio_repo import PortfolioRepository

__all__ = [
    "KeyValueStore",
    "PortfolioRepository",
]
