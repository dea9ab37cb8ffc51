"""Key-value store protocol for persisted caches."""

from datetime import datetime
from typing import Any, Iterator, Optional, Protocol

from market_cache.domain.models import CacheEntry


class KeyValueStore(Protocol):
    """Interface for a persisted map of key -> timestamped entry."""

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for a key, or None if it was never stored."""
        ...

    def set(
        self,
        key: str,
        value: dict[str, Any],
        fetched_at: Optional[datetime] = None,
        price_date: Optional[datetime] = None,
    ) -> CacheEntry:
        """Overwrite the entry for a key and persist."""
        ...

    def delete(self, key: str) -> bool:
        """Remove a key; returns True if it existed."""
        ...

    def delete_many(self, keys: list[str]) -> int:
        """Remove several keys with one write; returns the number removed."""
        ...

    def keys(self) -> list[str]:
        """All stored keys."""
        ...

    def items(self) -> Iterator[tuple[str, CacheEntry]]:
        """Iterate over a snapshot of (key, entry) pairs."""
        ...

    def clear_all(self) -> int:
        """Remove every entry; returns the number removed."""
        ...

    def __len__(self) -> int:
        ...

    def __contains__(self, key: object) -> bool:
        ...
