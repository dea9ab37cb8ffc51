"""Portfolio repository protocol."""

from typing import Any, Optional, Protocol


class PortfolioRepository(Protocol):
    """Interface for persisted portfolio records (raw JSON objects keyed by id)."""

    def list_records(self) -> list[tuple[str, Any]]:
        """Read every record fresh from storage."""
        ...

    def get(self, portfolio_id: str) -> Optional[Any]:
        """Get one record by id."""
        ...

    def save(self, portfolio_id: str, record: dict[str, Any]) -> None:
        """Insert or replace a record."""
        ...

    def delete(self, portfolio_id: str) -> bool:
        """Delete a record; returns True if it existed."""
        ...
