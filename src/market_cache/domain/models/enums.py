"""Enumerations for domain models."""

from enum import Enum


class AssetType(str, Enum):
    """Kinds of tradable assets."""

    STOCK = "s"
    CRYPTO = "c"


class TradeFileFormat(str, Enum):
    """Upload formats for trade-history CSV files; the value names the upload directory."""

    WEALTHSIMPLE = "wealthsimple"  # ticker embedded in a free-text description
    CRYPTO = "crypto"  # direct symbol column


class UpdateType(str, Enum):
    """Outcome of a historical series refresh for one symbol."""

    FULL = "full"
    INCREMENTAL = "incremental"
    NO_NEW_DATA = "no_new_data"
    UP_TO_DATE = "up_to_date"


class PriceSource(str, Enum):
    """Where a served price came from."""

    LIVE = "live"
    CACHE = "cache"
