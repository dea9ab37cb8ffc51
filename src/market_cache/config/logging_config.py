"""Logging configuration."""

import logging
import sys
from typing import Optional

from market_cache.config.settings import get_settings

# Upstream clients that log every request at INFO
_QUIET_LOGGERS = ("yfinance", "peewee", "httpx", "httpcore", "urllib3")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure process-wide logging once.

    Cache and preloader activity goes to stdout; with log_to_file set it is
    also appended to <data_dir>/logs/market-cache.log.
    """
    settings = get_settings()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_to_file:
        log_dir = settings.get_data_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "market-cache.log", encoding="utf-8"))

    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
