"""Persisted portfolio records as seen by asset discovery."""

from dataclasses import dataclass
from typing import Any, Optional

from market_cache.domain.models.enums import AssetType


@dataclass
class Holding:
    """A position in a persisted portfolio."""

    symbol: str
    quantity: float
    asset_type: Optional[AssetType] = None
    company_name: Optional[str] = None


def _parse_asset_type(value: Any) -> Optional[AssetType]:
    try:
        return AssetType(value) if value else None
    except ValueError:
        return None


def holdings_from_record(record: dict[str, Any]) -> list[Holding]:
    """
    Extract holdings from one portfolios.json value.

    Accepts the upload-file shape ``{"portfolio": {...}}`` and the direct
    shape ``{"holdings": [...]}``. A portfolio that only carries trades is
    netted per symbol (buys add, sells subtract). Raises ValueError/TypeError
    on a malformed record so callers can skip it.
    """
    if not isinstance(record, dict):
        raise ValueError("portfolio record is not an object")

    portfolio = record.get("portfolio") if isinstance(record.get("portfolio"), dict) else record

    if portfolio.get("holdings") is not None:
        holdings = []
        for raw in portfolio["holdings"]:
            symbol = raw.get("symbol")
            if not symbol:
                continue
            holdings.append(
                Holding(
                    symbol=str(symbol).strip().upper(),
                    quantity=float(raw.get("quantity") or 0),
                    asset_type=_parse_asset_type(raw.get("type")),
                    company_name=raw.get("companyName") or raw.get("company_name"),
                )
            )
        return holdings

    if portfolio.get("trades") is not None:
        netted: dict[str, float] = {}
        for trade in portfolio["trades"]:
            symbol = trade.get("symbol")
            if not symbol:
                continue
            key = str(symbol).strip().upper()
            quantity = float(trade.get("quantity") or 0)
            action = str(trade.get("action", "")).lower()
            if action == "buy":
                netted[key] = netted.get(key, 0.0) + quantity
            elif action == "sell":
                netted[key] = netted.get(key, 0.0) - quantity
        return [Holding(symbol=s, quantity=q) for s, q in netted.items()]

    return []
