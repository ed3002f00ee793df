"""
Script to run one refresh cycle for all configured sources
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.exceptions import HydroException
from core.logging import setup_logging
from ingestion.loaders.sqlite_loader import SQLiteRiverRepository
from ingestion.runner import build_default_runner

logger = logging.getLogger(__name__)


async def run_refresh() -> int:
    """Run one refresh; returns the process exit code"""
    try:
        repository = await SQLiteRiverRepository.open(settings.DATABASE_PATH)
    except HydroException as e:
        logger.error(f"Cannot open store: {e}")
        return 1

    try:
        runner = build_default_runner(repository)
        result = await runner.refresh()
    except HydroException as e:
        logger.error(f"Refresh failed: {e}")
        return 1
    finally:
        await repository.close()

    logger.info(f"{'=' * 60}")
    logger.info(f"Status: {result['status']}")
    logger.info(f"Records saved: {result['records_saved']}")
    for name, outcome in result["sources"].items():
        logger.info(f"  {name}: {outcome}")
    logger.info(f"{'=' * 60}")
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(run_refresh()))
