"""Asset discovery and upload tracking endpoints."""

from fastapi import APIRouter, Depends

from market_cache.api.deps import (
    get_asset_discovery,
    get_file_tracker,
    get_historical_cache,
)
from market_cache.api.schemas import (
    ClearCacheResponse,
    DiscoveryStatsResponse,
    FileChangesResponse,
    MarkProcessedRequest,
    MarkProcessedResponse,
    SymbolUpdateInfoResponse,
    TrackedFileResponse,
)
from market_cache.services import AssetDiscovery, FileTracker, HistoricalSeriesCache

router = APIRouter(prefix="/discovery", tags=["discovery"])
uploads_router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/symbols", response_model=list[str])
def list_symbols(discovery: AssetDiscovery = Depends(get_asset_discovery)):
    """Every symbol held in a portfolio or mentioned in an uploaded trade file."""
    return sorted(discovery.all_unique_symbols())


@router.get("/stats", response_model=DiscoveryStatsResponse)
def get_discovery_stats(discovery: AssetDiscovery = Depends(get_asset_discovery)):
    return DiscoveryStatsResponse.model_validate(discovery.discovery_stats())


@router.get("/needs-update", response_model=list[SymbolUpdateInfoResponse])
def list_symbols_needing_update(
    discovery: AssetDiscovery = Depends(get_asset_discovery),
    cache: HistoricalSeriesCache = Depends(get_historical_cache),
):
    """Refresh worklist: never-fetched symbols first, then most days missing."""
    return [
        SymbolUpdateInfoResponse.model_validate(info)
        for info in discovery.symbols_needing_historical_update(cache)
    ]


@uploads_router.get("/changes", response_model=FileChangesResponse)
def get_upload_changes(tracker: FileTracker = Depends(get_file_tracker)):
    return FileChangesResponse.model_validate(tracker.check_for_changes())


@uploads_router.get("/unprocessed", response_model=list[TrackedFileResponse])
def list_unprocessed_uploads(tracker: FileTracker = Depends(get_file_tracker)):
    return [TrackedFileResponse.model_validate(f) for f in tracker.get_unprocessed_files()]


@uploads_router.get("/stats")
def get_upload_stats(tracker: FileTracker = Depends(get_file_tracker)):
    return tracker.get_stats()


@uploads_router.post("/mark-processed", response_model=MarkProcessedResponse)
def mark_uploads_processed(
    data: MarkProcessedRequest,
    tracker: FileTracker = Depends(get_file_tracker),
):
    """Snapshot the upload directories and stamp every file as processed."""
    tracker.update_tracking()
    return MarkProcessedResponse(marked=tracker.mark_as_processed(data.portfolio_id))


@uploads_router.delete("/tracking", response_model=ClearCacheResponse)
def clear_upload_tracking(tracker: FileTracker = Depends(get_file_tracker)):
    return ClearCacheResponse(removed=tracker.clear_tracking())
