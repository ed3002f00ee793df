"""
Persist river records into SQLite with upsert logic (idempotency)
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Sequence
import logging

from sqlalchemy import and_, func, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from core.database import create_engine_for_path, create_session_maker, init_models
from core.exceptions import IntegrityError, PersistenceError
from models.base import Tendency
from models.river_data import RiverReading
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

STORAGE_FORMAT = "%Y-%m-%d %H:%M:%S+00:00"

# Tried in order when reading timestamps back; naive values are UTC
STORED_TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%SZ",
    "%Y-%m-%d %H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
)

MUTABLE_FIELDS = ("water_level", "water_change", "discharge", "water_temp", "tendency")


def format_timestamp(value: datetime) -> str:
    """Serialize an aware datetime as sortable UTC text."""
    return value.astimezone(timezone.utc).strftime(STORAGE_FORMAT)


def parse_stored_timestamp(value: str) -> datetime:
    """
    Parse a stored timestamp, trying every known format in turn.

    Raises:
        IntegrityError: If no format matches
    """
    text = value.strip()
    for fmt in STORED_TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise IntegrityError(
        f"Stored timestamp '{value}' matches no known format",
        context={"value": value, "formats": len(STORED_TIMESTAMP_FORMATS)}
    )


def parse_stored_tendency(value: Optional[str]) -> Tendency:
    """Map a stored tendency onto the enum; values written by other tools read as unknown."""
    try:
        return Tendency(value or "")
    except ValueError:
        logger.debug(f"Unrecognised stored tendency {value!r}, reading as unknown")
        return Tendency.UNKNOWN


class RiverRepository(ABC):
    """Storage contract used by the refresh runner and the read API"""

    @abstractmethod
    async def save_all(self, records: Sequence[RiverRecord]) -> int:
        pass

    @abstractmethod
    async def get_by_river_name(self, river: str) -> List[RiverRecord]:
        pass

    @abstractmethod
    async def get_unique_rivers(self) -> List[str]:
        pass

    @abstractmethod
    async def get_last_update_time(self) -> Optional[datetime]:
        pass

    async def close(self) -> None:
        pass


class SQLiteRiverRepository(RiverRepository):
    """
    SQLite-backed repository with idempotent upserts.

    Ensures:
    - No duplicate rows for the same (river, station, timestamp)
    - A batch is written in one transaction, all or nothing
    - Reads see either the previous or the new batch, never a mix
    """

    def __init__(self, engine: AsyncEngine, database_path: str = ""):
        self.engine = engine
        self.database_path = database_path
        self.session_maker: async_sessionmaker = create_session_maker(engine)

    @classmethod
    async def open(cls, database_path: str) -> "SQLiteRiverRepository":
        """
        Open (and create if needed) the store at database_path.

        Raises:
            PersistenceError: If the directory, file or schema cannot be created
        """
        logger.info(f"Opening database at {database_path}")
        engine = create_engine_for_path(database_path)

        try:
            await init_models(engine)
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            raise PersistenceError(
                "Failed to open database",
                context={"operation": "open", "database_path": database_path},
                original_exception=e
            )

        return cls(engine, database_path)

    async def close(self) -> None:
        await self.engine.dispose()

    async def save_all(self, records: Sequence[RiverRecord]) -> int:
        """
        Upsert records (INSERT ... ON CONFLICT DO UPDATE) in one transaction.

        Returns:
            Number of records written

        Raises:
            PersistenceError: If any statement or the commit fails; nothing is written
        """
        if not records:
            return 0

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    for record in records:
                        stmt = insert(RiverReading).values(
                            river=record.river,
                            station=record.station,
                            timestamp=format_timestamp(record.timestamp),
                            water_level=record.water_level,
                            water_change=record.water_change,
                            discharge=record.discharge,
                            water_temp=record.water_temp,
                            tendency=record.tendency.value
                        )
                        stmt = stmt.on_conflict_do_update(
                            index_elements=["river", "station", "timestamp"],
                            set_={field: stmt.excluded[field] for field in MUTABLE_FIELDS}
                        )
                        await session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to save river data",
                context={
                    "operation": "save_all",
                    "database_path": self.database_path,
                    "records": len(records)
                },
                original_exception=e
            )

        logger.info(f"Saved {len(records)} river data records")
        return len(records)

    async def get_by_river_name(self, river: str) -> List[RiverRecord]:
        """Latest reading of every station on river, ordered by station."""
        latest = (
            select(
                RiverReading.river,
                RiverReading.station,
                func.max(RiverReading.timestamp).label("max_timestamp")
            )
            .where(RiverReading.river == river)
            .group_by(RiverReading.river, RiverReading.station)
            .subquery()
        )
        stmt = (
            select(RiverReading)
            .join(
                latest,
                and_(
                    RiverReading.river == latest.c.river,
                    RiverReading.station == latest.c.station,
                    RiverReading.timestamp == latest.c.max_timestamp
                )
            )
            .order_by(RiverReading.station)
        )

        rows = await self._fetch_all(stmt, "get_by_river_name")
        return [self._to_record(row) for row in rows]

    async def get_unique_rivers(self) -> List[str]:
        """Distinct rivers among each station's latest reading, alphabetical."""
        latest = (
            select(
                RiverReading.river,
                RiverReading.station,
                func.max(RiverReading.timestamp).label("max_timestamp")
            )
            .group_by(RiverReading.river, RiverReading.station)
            .subquery()
        )
        stmt = (
            select(RiverReading.river)
            .join(
                latest,
                and_(
                    RiverReading.river == latest.c.river,
                    RiverReading.station == latest.c.station,
                    RiverReading.timestamp == latest.c.max_timestamp
                )
            )
            .distinct()
            .order_by(RiverReading.river)
        )

        return list(await self._fetch_all(stmt, "get_unique_rivers"))

    async def get_last_update_time(self) -> Optional[datetime]:
        """
        Most recent reading timestamp, or None when nothing is stored.

        Raises:
            IntegrityError: If the stored value cannot be parsed
        """
        try:
            async with self.session_maker() as session:
                result = await session.execute(select(func.max(RiverReading.timestamp)))
                value = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to get last update time",
                context={"operation": "get_last_update_time", "database_path": self.database_path},
                original_exception=e
            )

        if not value:
            return None
        return parse_stored_timestamp(value)

    async def _fetch_all(self, stmt, operation: str):
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                return result.scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Query {operation} failed",
                context={"operation": operation, "database_path": self.database_path},
                original_exception=e
            )

    @staticmethod
    def _to_record(row: RiverReading) -> RiverRecord:
        return RiverRecord(
            id=row.id,
            river=row.river,
            station=row.station,
            timestamp=parse_stored_timestamp(row.timestamp),
            water_level=row.water_level or "",
            water_change=row.water_change or "",
            discharge=row.discharge or "",
            water_temp=row.water_temp or "",
            tendency=parse_stored_tendency(row.tendency)
        )
