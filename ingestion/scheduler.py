import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from ingestion.runner import RefreshRunner

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Periodic trigger for RefreshRunner.refresh()"""

    def __init__(
        self,
        runner: RefreshRunner,
        interval_minutes: Optional[int] = None,
        run_on_start: Optional[bool] = None
    ):
        self.runner = runner
        self.interval_minutes = interval_minutes or settings.REFRESH_INTERVAL_MINUTES
        self.run_on_start = settings.REFRESH_ON_STARTUP if run_on_start is None else run_on_start
        self.scheduler = AsyncIOScheduler()

    async def run_refresh_job(self):
        """Job to refresh river data; errors are logged and never re-raised"""
        logger.info("Scheduler: Starting refresh job")
        try:
            result = await self.runner.refresh()
            logger.info(f"Scheduler: Refresh job finished with status {result['status']}")
        except Exception as e:
            logger.error(f"Scheduler: Refresh job failed - {e}")

    def start(self):
        """Start the scheduler"""
        job_options = {}
        if self.run_on_start:
            job_options["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            self.run_refresh_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="refresh_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_options
        )
        self.scheduler.start()
        logger.info(f"Refresh Scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        """Request shutdown; AsyncIOScheduler completes it on the next loop iteration"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Refresh Scheduler shutdown requested")
