"""Market data cache and historical series synchronization."""

__version__ = "0.1.0"
