"""
River data endpoints: latest readings, last update and on-demand refresh
"""

from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Path, Request
from api.dependencies import get_cache, get_repository, get_runner
from core.config import settings
from ingestion.cache import RiverDataCache
from ingestion.loaders.sqlite_loader import RiverRepository
from ingestion.runner import RefreshRunner
from schemas.api import (
    LastUpdateResponse,
    LiveDataResponse,
    RefreshResponse,
    RiverDataResponse,
    RiverListResponse,
    RiverReadingResponse,
)
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Rivers"])


@router.get("/rivers", response_model=RiverListResponse)
async def list_rivers(repository: RiverRepository = Depends(get_repository)):
    """Rivers that have at least one station reading, alphabetical."""
    rivers = await repository.get_unique_rivers()
    return RiverListResponse(rivers=rivers, total=len(rivers))


@router.get("/rivers/{name}", response_model=RiverDataResponse)
async def get_river(
    request: Request,
    name: str = Path(..., min_length=1, description="River name as published by the source"),
    repository: RiverRepository = Depends(get_repository)
):
    """
    Latest reading of every station on a river.

    The name is matched exactly, as stored.
    """
    request_id = getattr(request.state, "request_id", "-")
    logger.info(f"[{request_id}] GET /rivers/{name}")

    records = await repository.get_by_river_name(name.strip())
    if not records:
        raise HTTPException(status_code=404, detail=f"No data for river '{name}'")

    stations = [RiverReadingResponse.from_orm(record) for record in records]
    return RiverDataResponse(river=records[0].river, stations=stations, total_stations=len(stations))


@router.get("/last-update", response_model=LastUpdateResponse)
async def last_update(repository: RiverRepository = Depends(get_repository)):
    return LastUpdateResponse(last_update=await repository.get_last_update_time())


@router.get("/live", response_model=LiveDataResponse)
async def live_data(cache: RiverDataCache = Depends(get_cache)):
    """
    Aggregate fetch of all sources, served from the cache while younger
    than CACHE_MAX_AGE_SECONDS. Nothing is persisted.
    """
    records, fetched_at = await cache.get_or_refresh(timedelta(seconds=settings.CACHE_MAX_AGE_SECONDS))
    return LiveDataResponse(
        fetched_at=fetched_at,
        total_records=len(records),
        records=[RiverReadingResponse.from_orm(record) for record in records]
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(request: Request, runner: RefreshRunner = Depends(get_runner)):
    """Run one refresh cycle now. Skipped when a cycle is already running."""
    request_id = getattr(request.state, "request_id", "-")
    logger.info(f"[{request_id}] POST /refresh")

    result = await runner.refresh()
    return RefreshResponse(**result)
