"""Point-in-time quote model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class QuoteRecord:
    """
    Market quote for a symbol in one currency.

    Lives only in the in-memory quote cache and is lost on restart.
    """

    symbol: str
    price: float
    currency: str
    timestamp: datetime
    change_24h: Optional[float] = None
    volume: Optional[float] = None
    name: Optional[str] = None
