"""Pydantic schemas for historical series, discovery and upload endpoints."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from market_cache.api.schemas.market import SymbolRefreshResponse
from market_cache.domain.models import TradeFileFormat


class PricePointResponse(BaseModel):
    model_config = {"from_attributes": True}

    date: date
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None


class SeriesWindowResponse(BaseModel):
    """A cached series filtered to the requested period."""

    model_config = {"from_attributes": True}

    symbol: str
    data: list[PricePointResponse]
    needs_update: bool
    filtered_data_points: int
    total_data_points: int
    filtered_period: Optional[str] = None
    last_modified: Optional[datetime] = None
    last_date: Optional[date] = None
    stale: bool = Field(default=False, description="True when a refresh was attempted and failed")


class HistoricalCacheStatsResponse(BaseModel):
    total_symbols: int
    needs_update_count: int
    total_data_points: int
    symbols: dict[str, dict[str, Any]]


class PreloadResponse(BaseModel):
    """Result of a pre-population run."""

    success: bool
    message: str
    symbols_processed: int = 0
    duration_ms: int = 0
    successful: int = 0
    failed: int = 0
    results: list[SymbolRefreshResponse] = Field(default_factory=list)


class SymbolUpdateInfoResponse(BaseModel):
    model_config = {"from_attributes": True}

    symbol: str
    last_date: Optional[date] = None
    days_missing: int
    data_points: int


class DiscoveryStatsResponse(BaseModel):
    model_config = {"from_attributes": True}

    total_symbols: int
    portfolio_symbols: int
    file_symbols: int
    discovered_symbols: list[str]
    discovered_at: datetime


class TrackedFileResponse(BaseModel):
    model_config = {"from_attributes": True}

    path: str
    name: str
    file_format: TradeFileFormat
    mtime: Optional[str] = None
    size: Optional[int] = None
    previous_mtime: Optional[str] = None


class FileChangesResponse(BaseModel):
    """Difference between the upload directories and the last tracked snapshot."""

    model_config = {"from_attributes": True}

    new_files: list[TrackedFileResponse]
    modified_files: list[TrackedFileResponse]
    deleted_files: list[TrackedFileResponse]
    has_changes: bool


class MarkProcessedRequest(BaseModel):
    """Request schema for marking tracked uploads as processed."""

    portfolio_id: str = Field(..., min_length=1, description="Portfolio the uploads were processed into")


class MarkProcessedResponse(BaseModel):
    marked: int
