"""Core utilities and shared functionality."""

from market_cache.core.timezone import (
    now_eastern,
    to_eastern,
    parse_datetime_eastern,
    eastern_date,
    to_trading_date,
    is_trading_day,
    iter_trading_days,
    EASTERN_TZ,
)
from market_cache.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    FetchError,
    PersistenceError,
)

__all__ = [
    "now_eastern",
    "to_eastern",
    "parse_datetime_eastern",
    "eastern_date",
    "to_trading_date",
    "is_trading_day",
    "iter_trading_days",
    "EASTERN_TZ",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "FetchError",
    "PersistenceError",
]
