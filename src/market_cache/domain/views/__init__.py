"""View models for service outputs."""

from market_cache.domain.views.market import (
    UpdateStatus,
    SeriesWindow,
    SymbolUpdateInfo,
    HoldingPrice,
    SymbolRefreshResult,
    BatchRefreshSummary,
    PreloadResult,
    DiscoveryStats,
    TrackedFile,
    FileChanges,
)

__all__ = [
    "UpdateStatus",
    "SeriesWindow",
    "SymbolUpdateInfo",
    "HoldingPrice",
    "SymbolRefreshResult",
    "BatchRefreshSummary",
    "PreloadResult",
    "DiscoveryStats",
    "TrackedFile",
    "FileChanges",
]
