"""View models for cache, discovery and refresh outputs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from market_cache.domain.models import PricePoint, PriceSource, UpdateType, TradeFileFormat


@dataclass
class UpdateStatus:
    """Staleness of one symbol's historical series."""

    needs_update: bool
    last_date: Optional[date] = None
    missing_days: list[date] = field(default_factory=list)

    @property
    def days_missing(self) -> int:
        return len(self.missing_days)


@dataclass
class SeriesWindow:
    """A read-time window over a cached series."""

    symbol: str
    data: list[PricePoint]
    needs_update: bool
    filtered_data_points: int
    total_data_points: int
    filtered_period: Optional[str]
    last_modified: Optional[datetime]
    last_date: Optional[date] = None


@dataclass
class SymbolUpdateInfo:
    """Worklist item for the historical refresh scheduler."""

    symbol: str
    last_date: Optional[date]
    missing_days: list[date] = field(default_factory=list)
    data_points: int = 0

    @property
    def days_missing(self) -> int:
        return len(self.missing_days)


@dataclass
class HoldingPrice:
    """Price served for a holding, live or from the holdings cache."""

    symbol: str
    price: float
    source: PriceSource
    stale: bool
    usd_price: Optional[float] = None
    cad_price: Optional[float] = None
    exchange_rate: Optional[float] = None
    company_name: Optional[str] = None
    price_date: Optional[datetime] = None
    fetched_at: Optional[datetime] = None


@dataclass
class SymbolRefreshResult:
    """Outcome of refreshing one symbol."""

    symbol: str
    success: bool
    data_points: int = 0
    update_type: Optional[UpdateType] = None
    error: Optional[str] = None
    retries: int = 0


@dataclass
class BatchRefreshSummary:
    """Aggregate outcome of a batch refresh; one failure never aborts the rest."""

    results: list[SymbolRefreshResult] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def errors(self) -> list[str]:
        return [f"{r.symbol}: {r.error}" for r in self.results if not r.success]


@dataclass
class PreloadResult:
    """Result of a historical cache pre-population run."""

    success: bool
    message: str
    symbols_processed: int = 0
    duration_ms: int = 0
    summary: BatchRefreshSummary = field(default_factory=BatchRefreshSummary)


@dataclass
class DiscoveryStats:
    """Counts from one asset discovery pass."""

    total_symbols: int
    portfolio_symbols: int
    file_symbols: int
    discovered_symbols: list[str]
    discovered_at: datetime


@dataclass
class TrackedFile:
    """An upload file as seen on disk."""

    path: str
    name: str
    file_format: TradeFileFormat
    mtime: Optional[str] = None
    size: Optional[int] = None
    previous_mtime: Optional[str] = None


@dataclass
class FileChanges:
    """Difference between the upload directories and the tracking file."""

    new_files: list[TrackedFile] = field(default_factory=list)
    modified_files: list[TrackedFile] = field(default_factory=list)
    deleted_files: list[TrackedFile] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_files or self.modified_files or self.deleted_files)
