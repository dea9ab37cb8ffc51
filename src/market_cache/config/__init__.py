"""Configuration package."""

from market_cache.config.settings import Settings, get_settings, set_settings, reset_settings

__all__ = ["Settings", "get_settings", "set_settings", "reset_settings"]
