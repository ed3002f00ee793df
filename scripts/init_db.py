import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.exceptions import PersistenceError
from core.logging import setup_logging
from ingestion.loaders.sqlite_loader import SQLiteRiverRepository

logger = logging.getLogger(__name__)


async def init_database() -> int:
    logger.info(f"Creating store at {settings.DATABASE_PATH}...")
    try:
        repository = await SQLiteRiverRepository.open(settings.DATABASE_PATH)
    except PersistenceError as e:
        logger.error(f"Failed to initialize store: {e}")
        return 1

    await repository.close()
    logger.info("Tables created successfully.")
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(init_database()))
