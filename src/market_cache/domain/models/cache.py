"""Generic persisted cache entry."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from market_cache.core.timezone import parse_datetime_eastern, to_eastern


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a timestamp for JSON storage."""
    return value.isoformat() if value is not None else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Inverse of format_timestamp; tolerates datetimes and empty values."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_eastern(value)
    return parse_datetime_eastern(str(value))


@dataclass
class CacheEntry:
    """
    A value stored under a key, stamped with when it was fetched.

    Absence of an entry means "never fetched"; an entry always has fetched_at.
    """

    key: str
    value: dict[str, Any]
    fetched_at: datetime
    price_date: Optional[datetime] = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "fetched_at": format_timestamp(self.fetched_at),
            "price_date": format_timestamp(self.price_date),
        }

    @classmethod
    def from_dict(cls, key: str, raw: dict[str, Any]) -> "CacheEntry":
        """Rebuild an entry from its JSON envelope; raises ValueError on a bad envelope."""
        if not isinstance(raw, dict) or not isinstance(raw.get("value"), dict):
            raise ValueError(f"invalid cache envelope for {key!r}")
        fetched_at = parse_timestamp(raw.get("fetched_at"))
        if fetched_at is None:
            raise ValueError(f"cache entry {key!r} has no fetched_at")
        return cls(
            key=key,
            value=raw["value"],
            fetched_at=fetched_at,
            price_date=parse_timestamp(raw.get("price_date")),
        )
