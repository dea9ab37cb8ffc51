"""Change tracking for uploaded trade files."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from market_cache.core.timezone import now_eastern
from market_cache.csv import TradeFileSymbolReader
from market_cache.domain.models import TradeFileFormat
from market_cache.domain.models.cache import format_timestamp, parse_timestamp
from market_cache.domain.views import FileChanges, TrackedFile
from market_cache.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)


def _stat_file(path: Path) -> tuple[str, int]:
    stats = path.stat()
    mtime = datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat()
    return mtime, stats.st_size


class FileTracker:
    """
    Remembers the mtime and size of every upload file seen so far.

    Tracking data is keyed by absolute path and persisted through a
    KeyValueStore, one entry per file.
    """

    def __init__(
        self,
        store: KeyValueStore,
        upload_dirs: dict[TradeFileFormat, Path],
        symbol_reader: Optional[TradeFileSymbolReader] = None,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._store = store
        self._upload_dirs = upload_dirs
        self._reader = symbol_reader or TradeFileSymbolReader()
        self._clock = clock

    def current_files(self) -> list[TrackedFile]:
        files = []
        for file_format, directory in self._upload_dirs.items():
            for path in self._reader.list_trade_files(directory):
                files.append(TrackedFile(path=str(path), name=path.name, file_format=file_format))
        return files

    def check_for_changes(self) -> FileChanges:
        """Compare the upload directories against the last update_tracking() snapshot."""
        changes = FileChanges()
        current = self.current_files()
        logger.info("Checking %d files for changes", len(current))

        for tracked_file in current:
            try:
                mtime, size = _stat_file(Path(tracked_file.path))
            except OSError as e:
                logger.warning("Could not check file %s: %s", tracked_file.path, e)
                continue
            tracked_file.mtime = mtime
            tracked_file.size = size

            entry = self._store.get(tracked_file.path)
            if entry is None:
                changes.new_files.append(tracked_file)
                logger.info("New file detected: %s", tracked_file.name)
            elif entry.value.get("mtime") != mtime or entry.value.get("size") != size:
                tracked_file.previous_mtime = entry.value.get("mtime")
                changes.modified_files.append(tracked_file)
                logger.info("Modified file detected: %s", tracked_file.name)

        current_paths = {f.path for f in current}
        for key, entry in self._store.items():
            if key in current_paths:
                continue
            changes.deleted_files.append(
                TrackedFile(
                    path=key,
                    name=entry.value.get("name") or Path(key).name,
                    file_format=TradeFileFormat(entry.value.get("format", TradeFileFormat.WEALTHSIMPLE.value)),
                    mtime=entry.value.get("mtime"),
                    size=entry.value.get("size"),
                )
            )
            logger.info("Deleted file detected: %s", Path(key).name)

        if changes.has_changes:
            logger.info(
                "File changes detected: %d new, %d modified, %d deleted",
                len(changes.new_files), len(changes.modified_files), len(changes.deleted_files),
            )
        return changes

    def update_tracking(self) -> int:
        """Snapshot every current upload file; files no longer present are forgotten."""
        current = self.current_files()
        now = self._clock()
        keep = set()
        for tracked_file in current:
            try:
                mtime, size = _stat_file(Path(tracked_file.path))
            except OSError as e:
                logger.warning("Could not track file %s: %s", tracked_file.path, e)
                continue
            self._store.set(
                tracked_file.path,
                {
                    "name": tracked_file.name,
                    "format": tracked_file.file_format.value,
                    "mtime": mtime,
                    "size": size,
                    "last_tracked": format_timestamp(now),
                },
                fetched_at=now,
            )
            keep.add(tracked_file.path)

        forgotten = [key for key in self._store.keys() if key not in keep]
        if forgotten:
            self._store.delete_many(forgotten)
        logger.info("Updated tracking for %d files", len(keep))
        return len(keep)

    def mark_as_processed(self, portfolio_id: str) -> int:
        """Stamp every tracked file as processed into portfolio_id."""
        now = self._clock()
        count = 0
        for key, entry in self._store.items():
            value = dict(entry.value)
            value["last_processed"] = format_timestamp(now)
            value["last_portfolio_id"] = portfolio_id
            self._store.set(key, value, fetched_at=entry.fetched_at)
            count += 1
        logger.info("Marked %d files as processed for portfolio %s", count, portfolio_id)
        return count

    def get_unprocessed_files(self) -> list[TrackedFile]:
        unprocessed = []
        for tracked_file in self.current_files():
            entry = self._store.get(tracked_file.path)
            if entry is None or not entry.value.get("last_processed"):
                unprocessed.append(tracked_file)
        return unprocessed

    def get_stats(self) -> dict[str, Any]:
        all_files = self.current_files()
        processed = [
            parse_timestamp(entry.value["last_processed"])
            for _, entry in self._store.items()
            if entry.value.get("last_processed")
        ]
        return {
            "total_files": len(all_files),
            "tracked_files": len(self._store),
            "processed_files": len(processed),
            "unprocessed_files": max(0, len(all_files) - len(processed)),
            "last_update": format_timestamp(max(processed)) if processed else None,
        }

    def clear_tracking(self) -> int:
        count = self._store.clear_all()
        logger.info("Cleared tracking for %d files", count)
        return count
