"""Application settings and configuration."""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from market_cache.domain.models.enums import TradeFileFormat


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".market-cache"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MARKET_CACHE_",
        extra="ignore",
    )

    app_name: str = "Market Cache Service"
    app_version: str = "0.1.0"

    # Data directory (cache files and uploads live here)
    data_dir: Optional[Path] = None
    log_level: str = "INFO"
    log_to_file: bool = False

    # Provider selection: "yahoo" talks to Yahoo Finance / CoinGecko, "stub" is offline
    market_data_provider: Literal["yahoo", "stub"] = "yahoo"
    coingecko_api_key: Optional[str] = None
    http_timeout_seconds: float = 15.0

    # In-memory quote cache TTLs
    stock_quote_ttl_seconds: int = 300
    crypto_quote_ttl_seconds: int = 120
    exchange_rate_ttl_seconds: int = 300

    # Persistent caches
    holdings_max_age_seconds: int = 3600
    historical_min_missing_days: int = 1
    historical_full_history_days: int = 3650
    historical_fetch_buffer_days: int = 5
    cache_strict_writes: bool = False

    # Historical preloader
    preload_max_concurrent: int = 3
    preload_batch_delay_seconds: float = 0.5
    preload_max_retries: int = 2
    preload_retry_delay_seconds: float = 1.0

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_cache_dir(self) -> Path:
        """Get the directory holding the JSON cache files."""
        cache_dir = self.get_data_dir() / "cache"
        cache_dir.mkdir(parents=True, exist_ok=True)
        return cache_dir

    def get_upload_dir(self, file_format: TradeFileFormat) -> Path:
        """Get the upload directory for one trade-file format."""
        return self.get_data_dir() / "uploads" / file_format.value

    def get_upload_dirs(self) -> dict[TradeFileFormat, Path]:
        return {fmt: self.get_upload_dir(fmt) for fmt in TradeFileFormat}

    @property
    def holdings_cache_file(self) -> Path:
        return self.get_cache_dir() / "holdings-cache.json"

    @property
    def historical_cache_file(self) -> Path:
        return self.get_cache_dir() / "historical-cache.json"

    @property
    def portfolios_file(self) -> Path:
        return self.get_cache_dir() / "portfolios.json"

    @property
    def file_tracking_file(self) -> Path:
        return self.get_cache_dir() / "file-tracking.json"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
