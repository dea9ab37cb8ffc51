"""Historical price series models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Union

from market_cache.core.timezone import to_trading_date
from market_cache.domain.models.cache import format_timestamp, parse_timestamp


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    result = float(value)
    # NaN from pandas frames means "no value"
    return None if result != result else result


@dataclass
class PricePoint:
    """One daily bar."""

    date: date
    close: Optional[float]
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "PricePoint":
        """Build a point from loosely-typed input (ISO strings, timestamps, numeric strings)."""
        return cls(
            date=to_trading_date(raw["date"]),
            open=_optional_float(raw.get("open")),
            high=_optional_float(raw.get("high")),
            low=_optional_float(raw.get("low")),
            close=_optional_float(raw.get("close")),
            volume=_optional_float(raw.get("volume")),
        )

    @classmethod
    def coerce(cls, value: Union["PricePoint", dict[str, Any]]) -> "PricePoint":
        return value if isinstance(value, PricePoint) else cls.from_dict(value)


@dataclass
class AssetInfo:
    """Descriptive metadata returned alongside a full history fetch."""

    name: str
    symbol: str
    instrument_type: str = "UNKNOWN"
    currency: str = "USD"
    exchange: str = "UNKNOWN"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "instrument_type": self.instrument_type,
            "currency": self.currency,
            "exchange": self.exchange,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "AssetInfo":
        return cls(
            name=raw.get("name") or raw.get("symbol", ""),
            symbol=raw.get("symbol", ""),
            instrument_type=raw.get("instrument_type") or "UNKNOWN",
            currency=raw.get("currency") or "USD",
            exchange=raw.get("exchange") or "UNKNOWN",
        )


@dataclass
class HistoricalSeriesRecord:
    """
    Persisted daily series for one symbol.

    Invariants: points strictly ascending by date with no duplicate dates,
    and last_date equal to the date of the final point.
    """

    symbol: str
    points: list[PricePoint]
    last_modified: datetime
    asset_info: Optional[AssetInfo] = field(default=None)

    @property
    def last_date(self) -> Optional[date]:
        return self.points[-1].date if self.points else None

    @property
    def earliest_date(self) -> Optional[date]:
        return self.points[0].date if self.points else None

    @property
    def total_data_points(self) -> int:
        return len(self.points)

    @property
    def date_span_days(self) -> int:
        if not self.points:
            return 0
        return (self.points[-1].date - self.points[0].date).days

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "points": [p.to_dict() for p in self.points],
            "last_date": self.last_date.isoformat() if self.last_date else None,
            "earliest_date": self.earliest_date.isoformat() if self.earliest_date else None,
            "total_data_points": self.total_data_points,
            "date_span_days": self.date_span_days,
            "last_modified": format_timestamp(self.last_modified),
            "asset_info": self.asset_info.to_dict() if self.asset_info else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "HistoricalSeriesRecord":
        asset_info = raw.get("asset_info")
        return cls(
            symbol=raw["symbol"],
            points=[PricePoint.from_dict(p) for p in raw.get("points") or []],
            last_modified=parse_timestamp(raw.get("last_modified")),
            asset_info=AssetInfo.from_dict(asset_info) if asset_info else None,
        )
