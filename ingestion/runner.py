"""
Refresh Runner - Orchestrates fetch, merge and persist for all sources.

This module provides the refresh cycle with:
- Concurrent fetching from every source adapter
- Mandatory/best-effort source policy (a failing primary aborts the cycle,
  failing secondary sources are logged and skipped)
- One atomic save of the combined batch
- Serialized execution: a refresh requested while another one is in flight
  is skipped and logged
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import asyncio
import logging
import time

from core.config import Settings, settings as default_settings
from core.exceptions import HydroException, PersistenceError, RefreshError
from ingestion.base import SourceAdapter
from ingestion.extractors.bulletin_extractor import HidmetBulletinExtractor
from ingestion.extractors.regional_bulletin_extractor import RegionalBulletinExtractor
from ingestion.extractors.station_series_extractor import StationSeriesExtractor
from ingestion.loaders.sqlite_loader import RiverRepository
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)


class RefreshRunner:
    """
    Refresh orchestrator

    Responsibilities:
    - Run every adapter once per cycle
    - Tolerate best-effort source failures
    - Persist the merged batch in one call
    - Allow at most one cycle at a time
    """

    def __init__(self, adapters: Sequence[SourceAdapter], repository: RiverRepository):
        self.adapters = list(adapters)
        self.repository = repository
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def collect(self) -> Tuple[List[RiverRecord], Dict[str, Any]]:
        """
        Fetch every source concurrently and merge the results.

        Returns:
            (records, per-source report)

        Raises:
            RefreshError: If a mandatory source fails
        """
        results = await asyncio.gather(
            *(adapter.fetch() for adapter in self.adapters),
            return_exceptions=True
        )

        records: List[RiverRecord] = []
        report: Dict[str, Any] = {}

        for adapter, result in zip(self.adapters, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result

                report[adapter.source_name] = {"status": "failed", "error": type(result).__name__}

                if adapter.mandatory:
                    logger.error(f"Mandatory source {adapter.source_name} failed: {result}")
                    raise RefreshError(
                        f"Failed to fetch mandatory source {adapter.source_name}",
                        context={"source_name": adapter.source_name},
                        original_exception=result
                    )

                if isinstance(result, HydroException):
                    logger.warning(
                        f"Optional source {adapter.source_name} failed, continuing: {result.message}",
                        extra={"error_context": result.to_dict()}
                    )
                else:
                    logger.warning(
                        f"Optional source {adapter.source_name} failed unexpectedly, continuing",
                        exc_info=result
                    )
                continue

            report[adapter.source_name] = {"status": "success", "records": len(result)}
            logger.info(f"Fetched {len(result)} records from {adapter.source_name}")
            records.extend(result)

        return records, report

    async def refresh(self) -> Dict[str, Any]:
        """
        Run one full refresh cycle.

        Returns:
            Dictionary with run statistics:
            - status: "success", "partial_success" or "skipped"
            - records_saved: Number of records upserted
            - sources: Per-source outcome
            - failed_sources: Names of best-effort sources that failed
            - duration_seconds: Wall time of the cycle

        Raises:
            RefreshError: If the primary source or the save fails
        """
        if self._lock.locked():
            logger.warning("Refresh already in progress, skipping this trigger")
            return {"status": "skipped", "records_saved": 0, "sources": {}, "failed_sources": []}

        async with self._lock:
            started = time.perf_counter()
            logger.info("Starting river data refresh")

            records, report = await self.collect()

            try:
                saved = await self.repository.save_all(records)
            except PersistenceError as e:
                logger.error(f"Refresh failed while saving: {e.message}", extra={"error_context": e.to_dict()})
                raise RefreshError(
                    "Failed to save refreshed data",
                    context={"records": len(records)},
                    original_exception=e
                )

            failed = sorted(name for name, outcome in report.items() if outcome["status"] == "failed")
            result = {
                "status": "success" if not failed else "partial_success",
                "records_saved": saved,
                "sources": report,
                "failed_sources": failed,
                "duration_seconds": round(time.perf_counter() - started, 3)
            }

            logger.info(
                f"Refresh completed: {result['status']} - "
                f"saved {saved} records, failed sources: {failed or 'none'}"
            )
            return result


def build_default_adapters(config: Optional[Settings] = None, transport=None) -> List[SourceAdapter]:
    """The three production sources; the primary bulletin is mandatory."""
    config = config or default_settings
    common = {"timeout": config.HTTP_TIMEOUT, "transport": transport}

    return [
        HidmetBulletinExtractor(url=config.HIDMET_BULLETIN_URL, mandatory=True, **common),
        StationSeriesExtractor(
            url=config.HIDMET_SERIES_URL,
            river=config.SERIES_RIVER,
            station=config.SERIES_STATION,
            **common
        ),
        RegionalBulletinExtractor(
            listing_url=config.RHMZRS_LISTING_URL,
            base_url=config.RHMZRS_BASE_URL,
            **common
        ),
    ]


def build_default_runner(repository: RiverRepository, config: Optional[Settings] = None) -> RefreshRunner:
    return RefreshRunner(build_default_adapters(config), repository)
