"""Last-known-good holding price record."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from market_cache.domain.models.cache import format_timestamp, parse_timestamp


@dataclass
class HoldingCacheRecord:
    """Latest known price and valuation inputs for one holding symbol."""

    symbol: str
    price: float
    last_updated: datetime
    price_date: datetime
    fetched_at: datetime
    usd_price: Optional[float] = None
    cad_price: Optional[float] = None
    company_name: Optional[str] = None
    exchange_rate: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "usd_price": self.usd_price,
            "cad_price": self.cad_price,
            "company_name": self.company_name,
            "exchange_rate": self.exchange_rate,
            "last_updated": format_timestamp(self.last_updated),
            "price_date": format_timestamp(self.price_date),
            "fetched_at": format_timestamp(self.fetched_at),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "HoldingCacheRecord":
        return cls(
            symbol=raw["symbol"],
            price=raw["price"],
            usd_price=raw.get("usd_price"),
            cad_price=raw.get("cad_price"),
            company_name=raw.get("company_name"),
            exchange_rate=raw.get("exchange_rate"),
            last_updated=parse_timestamp(raw.get("last_updated")),
            price_date=parse_timestamp(raw.get("price_date")),
            fetched_at=parse_timestamp(raw.get("fetched_at")),
        )
