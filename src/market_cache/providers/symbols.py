"""Symbol classification and provider-specific symbol mapping."""

from typing import Optional

from market_cache.domain.models import AssetType

# Coins that Yahoo Finance quotes as "<SYMBOL>-USD"
KNOWN_CRYPTO_SYMBOLS = frozenset({
    "BTC", "ETH", "ADA", "SOL", "DOT", "LINK", "UNI", "MATIC", "AVAX", "ATOM",
    "LTC", "BCH", "XRP", "DOGE", "SHIB", "TRX", "ETC", "FIL", "NEAR", "ALGO",
})

# Hardcoded CoinGecko ids for the common coins; others go through /search
COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "ADA": "cardano",
    "SOL": "solana",
    "DOT": "polkadot",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "MATIC": "matic-network",
    "AVAX": "avalanche-2",
    "ATOM": "cosmos",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
    "XRP": "ripple",
    "DOGE": "dogecoin",
    "SHIB": "shiba-inu",
    "TRX": "tron",
    "ETC": "ethereum-classic",
    "FIL": "filecoin",
    "NEAR": "near",
    "ALGO": "algorand",
}


def normalize_symbol(symbol: Optional[str]) -> Optional[str]:
    """Normalize symbol: strip whitespace and uppercase; None or empty -> None."""
    if symbol is None:
        return None
    stripped = symbol.strip().upper()
    return stripped if stripped else None


def is_crypto(symbol: str, asset_type: Optional[AssetType] = None) -> bool:
    """Explicit asset type wins; otherwise fall back to the known-coin list."""
    if asset_type is not None:
        return asset_type == AssetType.CRYPTO
    return symbol.strip().upper() in KNOWN_CRYPTO_SYMBOLS


def to_yahoo_symbol(symbol: str, asset_type: Optional[AssetType] = None) -> str:
    """BTC -> BTC-USD for crypto; equities pass through unchanged."""
    upper = symbol.strip().upper()
    if upper.endswith("-USD"):
        return upper
    return f"{upper}-USD" if is_crypto(upper, asset_type) else upper
