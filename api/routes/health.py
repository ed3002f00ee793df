"""
Health check endpoint with store and refresh status
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_repository, get_runner, get_scheduler
from core.exceptions import PersistenceError
from ingestion.loaders.sqlite_loader import RiverRepository
from ingestion.runner import RefreshRunner
from ingestion.scheduler import RefreshScheduler
from schemas.api import HealthCheckResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    repository: RiverRepository = Depends(get_repository),
    runner: RefreshRunner = Depends(get_runner),
    scheduler: RefreshScheduler = Depends(get_scheduler)
):
    """
    Health check endpoint.

    Returns:
    - Store connectivity status
    - Time of the newest stored reading
    - Whether a refresh is currently running
    """
    db_connected = False
    last_update = None

    try:
        last_update = await repository.get_last_update_time()
        db_connected = True
    except PersistenceError as e:
        logger.error(f"Store check failed: {e}")

    return HealthCheckResponse(
        database_connected=db_connected,
        last_update=last_update,
        refresh_running=runner.is_running,
        scheduler_running=bool(scheduler and scheduler.scheduler.running)
    )
