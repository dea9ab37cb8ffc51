"""JSON-file backed key-value store used by every persisted cache."""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from market_cache.core.exceptions import PersistenceError
from market_cache.core.timezone import now_eastern
from market_cache.domain.models import CacheEntry
from market_cache.repositories.json.files import read_json_object, write_json_atomic

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    Map of key -> CacheEntry mirrored to a single JSON file.

    The file is loaded once at construction. Every mutation rewrites the
    whole file (temp file + rename) before returning. Writes are serialized
    per store so a later snapshot is never overwritten by an earlier one.

    A failed write is logged and memory keeps the update, so the file may lag
    memory until the next successful write. Pass strict_writes=True to raise
    PersistenceError instead.
    """

    def __init__(
        self,
        path: Path,
        clock: Callable[[], datetime] = now_eastern,
        strict_writes: bool = False,
    ):
        self._path = Path(path)
        self._clock = clock
        self._strict_writes = strict_writes
        self._entries: dict[str, CacheEntry] = {}
        self._write_lock = threading.Lock()
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for a key, or None if it was never stored."""
        return self._entries.get(key)

    def set(
        self,
        key: str,
        value: dict[str, Any],
        fetched_at: Optional[datetime] = None,
        price_date: Optional[datetime] = None,
    ) -> CacheEntry:
        """Overwrite the entry for a key and persist immediately."""
        entry = CacheEntry(
            key=key,
            value=value,
            fetched_at=fetched_at or self._clock(),
            price_date=price_date,
        )
        self._entries[key] = entry
        self._save()
        return entry

    def delete(self, key: str) -> bool:
        """Remove a key and persist; returns True if it existed."""
        if self._entries.pop(key, None) is None:
            return False
        self._save()
        return True

    def delete_many(self, keys: list[str]) -> int:
        """Remove several keys with a single write; returns the number removed."""
        removed = 0
        for key in keys:
            if self._entries.pop(key, None) is not None:
                removed += 1
        if removed:
            self._save()
        return removed

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def items(self) -> Iterator[tuple[str, CacheEntry]]:
        return iter(list(self._entries.items()))

    def clear_all(self) -> int:
        """Wipe memory and disk; returns the number of entries removed."""
        count = len(self._entries)
        self._entries.clear()
        self._save()
        logger.info("Cleared %d entries from %s", count, self._path.name)
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _load(self) -> None:
        raw = read_json_object(self._path)
        for key, envelope in raw.items():
            try:
                self._entries[key] = CacheEntry.from_dict(key, envelope)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed entry %r in %s: %s", key, self._path.name, e)
        if raw:
            logger.info("Loaded %d entries from %s", len(self._entries), self._path.name)

    def _save(self) -> None:
        with self._write_lock:
            snapshot = {key: entry.to_dict() for key, entry in self._entries.items()}
            try:
                write_json_atomic(self._path, snapshot)
            except (OSError, TypeError, ValueError) as e:
                if self._strict_writes:
                    raise PersistenceError(str(self._path), str(e)) from e
                logger.error("Could not save %s: %s", self._path, e)
