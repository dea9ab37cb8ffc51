"""Errors raised by the caches, providers and services."""

from typing import Optional


class AppError(Exception):
    """Base error carrying a machine-readable code and an HTTP status."""

    status_code = 400

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Bad input such as an empty symbol or an unknown period."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Unknown portfolio, symbol or cache entry."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class FetchError(AppError):
    """Raised when an upstream market data source fails or returns nothing usable."""

    status_code = 502

    def __init__(self, message: str, symbol: Optional[str] = None):
        self.symbol = symbol
        super().__init__(message, code="FETCH_ERROR")


class PersistenceError(AppError):
    """Raised when a cache file cannot be written and strict writes are enabled."""

    status_code = 500

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Could not write {path}: {reason}", code="PERSISTENCE_ERROR")
