"""
Read-through cache for the last aggregate fetch.

Front-ends that answer many user messages can serve the last fetched batch
instead of hitting the sources on every message. The cache owns its value
and the time it was fetched; both are guarded by a read/write lock so many
readers proceed together and a refresh replaces them exclusively.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Tuple
import asyncio
import logging

from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[List[RiverRecord]]]


class ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self):
        self._condition = asyncio.Condition()
        self._readers = 0
        self._writer = False

    @asynccontextmanager
    async def read(self):
        async with self._condition:
            await self._condition.wait_for(lambda: not self._writer)
            self._readers += 1
        try:
            yield
        finally:
            async with self._condition:
                self._readers -= 1
                self._condition.notify_all()

    @asynccontextmanager
    async def write(self):
        async with self._condition:
            await self._condition.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True
        try:
            yield
        finally:
            async with self._condition:
                self._writer = False
                self._condition.notify_all()


class RiverDataCache:
    """
    Cached aggregate fetch with a bounded age.

    Usage:
        cache = RiverDataCache(loader=fetch_all_sources)
        records, fetched_at = await cache.get_or_refresh(timedelta(hours=1))
    """

    def __init__(self, loader: Loader):
        self._loader = loader
        self._lock = ReadWriteLock()
        self._refresh_lock = asyncio.Lock()
        self._records: List[RiverRecord] = []
        self._fetched_at: Optional[datetime] = None

    def _is_fresh(self, max_age: timedelta, now: datetime) -> bool:
        return self._fetched_at is not None and now - self._fetched_at < max_age

    async def get_or_refresh(self, max_age: timedelta) -> Tuple[List[RiverRecord], datetime]:
        """
        Return the cached batch if younger than max_age, else fetch a new one.

        Raises:
            Whatever the loader raises; the previous value is kept in that case
        """
        async with self._lock.read():
            if self._is_fresh(max_age, datetime.now(timezone.utc)):
                logger.debug(f"Using cached data (last updated: {self._fetched_at.isoformat()})")
                return list(self._records), self._fetched_at

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            async with self._lock.read():
                if self._is_fresh(max_age, datetime.now(timezone.utc)):
                    return list(self._records), self._fetched_at

            logger.info("Fetching fresh data for cache")
            records = await self._loader()

            async with self._lock.write():
                self._records = list(records)
                self._fetched_at = datetime.now(timezone.utc)
                fetched_at = self._fetched_at

            logger.info(f"Cache updated with {len(records)} entries at {fetched_at.isoformat()}")
            return list(records), fetched_at

    async def invalidate(self) -> None:
        async with self._lock.write():
            self._records = []
            self._fetched_at = None
