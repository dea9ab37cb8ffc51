"""JSON-file implementation of PortfolioRepository."""

import threading
from pathlib import Path
from typing import Any, Optional

from market_cache.repositories.json.files import read_json_object, write_json_atomic


class JsonPortfolioRepository:
    """
    Portfolios stored as one flat JSON object keyed by portfolio id.

    Reads go to disk every time: discovery must reflect the current file,
    which the upload pipeline may rewrite between calls.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._write_lock = threading.Lock()

    def list_records(self) -> list[tuple[str, Any]]:
        """Read every record fresh from storage."""
        return list(read_json_object(self._path).items())

    def get(self, portfolio_id: str) -> Optional[Any]:
        """Get one record by id."""
        return read_json_object(self._path).get(portfolio_id)

    def save(self, portfolio_id: str, record: dict[str, Any]) -> None:
        """Insert or replace a record."""
        with self._write_lock:
            data = read_json_object(self._path)
            data[portfolio_id] = record
            write_json_atomic(self._path, data)

    def delete(self, portfolio_id: str) -> bool:
        """Delete a record; returns True if it existed."""
        with self._write_lock:
            data = read_json_object(self._path)
            if portfolio_id not in data:
                return False
            del data[portfolio_id]
            write_json_atomic(self._path, data)
            return True
