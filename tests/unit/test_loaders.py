"""
Unit tests for the SQLite repository
"""

import pytest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import func, select

from core.exceptions import IntegrityError, PersistenceError
from ingestion.loaders.sqlite_loader import (
    SQLiteRiverRepository,
    format_timestamp,
    parse_stored_timestamp,
)
from models.base import Tendency
from models.river_data import RiverReading
from schemas.river import RiverRecord
from tests.conftest import make_record


async def count_rows(repository) -> int:
    async with repository.session_maker() as session:
        result = await session.execute(select(func.count()).select_from(RiverReading))
        return result.scalar()


async def insert_raw(repository, **values):
    async with repository.session_maker() as session:
        async with session.begin():
            session.add(RiverReading(**values))


class TestSaveAll:
    """Upsert behaviour"""

    @pytest.mark.asyncio
    async def test_save_returns_count(self, repository, sample_records):
        saved = await repository.save_all(sample_records)

        assert saved == 3
        assert await count_rows(repository) == 3

    @pytest.mark.asyncio
    async def test_empty_batch(self, repository):
        assert await repository.save_all([]) == 0

    @pytest.mark.asyncio
    async def test_idempotent(self, repository, sample_records):
        await repository.save_all(sample_records)
        await repository.save_all(sample_records)

        assert await count_rows(repository) == 3

    @pytest.mark.asyncio
    async def test_conflict_updates_readings(self, repository):
        await repository.save_all([make_record(water_level="250")])
        await repository.save_all([make_record(water_level="260", water_temp="12.0", tendency=Tendency.RISING)])

        records = await repository.get_by_river_name("ДУНАВ")

        assert await count_rows(repository) == 1
        assert records[0].water_level == "260"
        assert records[0].water_temp == "12.0"
        assert records[0].tendency == Tendency.RISING

    @pytest.mark.asyncio
    async def test_same_instant_in_other_zone_is_same_key(self, repository):
        utc = make_record(timestamp=datetime(2025, 4, 18, 6, 0, tzinfo=timezone.utc))
        local = make_record(timestamp=datetime(2025, 4, 18, 8, 0, tzinfo=ZoneInfo("Europe/Belgrade")))

        await repository.save_all([utc])
        await repository.save_all([local])

        assert await count_rows(repository) == 1

    @pytest.mark.asyncio
    async def test_failed_batch_writes_nothing(self, repository):
        good = make_record()
        bad = RiverRecord.construct(
            river=None,
            station="БЕЗДАН",
            timestamp=datetime(2025, 4, 18, 7, 0, tzinfo=timezone.utc),
            water_level="1",
            water_change="",
            discharge="",
            water_temp="",
            tendency=Tendency.UNKNOWN
        )

        with pytest.raises(PersistenceError):
            await repository.save_all([good, bad])

        assert await count_rows(repository) == 0


class TestQueries:
    """Latest-per-station reads"""

    @pytest.mark.asyncio
    async def test_latest_reading_wins(self, repository):
        older = datetime(2025, 4, 17, 6, 0, tzinfo=timezone.utc)
        newer = older + timedelta(days=1)
        await repository.save_all([
            make_record(timestamp=newer, water_level="255"),
            make_record(timestamp=older, water_level="240"),
        ])

        records = await repository.get_by_river_name("ДУНАВ")

        assert len(records) == 1
        assert records[0].water_level == "255"
        assert records[0].timestamp == newer
        assert records[0].id is not None

    @pytest.mark.asyncio
    async def test_latest_across_zones(self, repository):
        # 09:00 Belgrade is 07:00 UTC, later than 06:30 UTC
        await repository.save_all([
            make_record(timestamp=datetime(2025, 4, 18, 6, 30, tzinfo=timezone.utc), water_level="1"),
            make_record(timestamp=datetime(2025, 4, 18, 9, 0, tzinfo=ZoneInfo("Europe/Belgrade")), water_level="2"),
        ])

        records = await repository.get_by_river_name("ДУНАВ")

        assert records[0].water_level == "2"

    @pytest.mark.asyncio
    async def test_stations_ordered(self, repository, sample_records):
        await repository.save_all(sample_records)

        records = await repository.get_by_river_name("ДУНАВ")

        assert [r.station for r in records] == ["БЕЗДАН", "НОВИ САД"]

    @pytest.mark.asyncio
    async def test_unknown_river_is_empty(self, repository, sample_records):
        await repository.save_all(sample_records)

        assert await repository.get_by_river_name("МОРАВА") == []

    @pytest.mark.asyncio
    async def test_unique_rivers_sorted(self, repository, sample_records):
        await repository.save_all(sample_records)
        await repository.save_all([make_record(timestamp=datetime(2025, 4, 19, tzinfo=timezone.utc))])

        assert await repository.get_unique_rivers() == ["ДУНАВ", "САВА"]

    @pytest.mark.asyncio
    async def test_unique_rivers_once_per_river(self, repository):
        await repository.save_all([
            make_record(river="ТИСА", station="СЕНТА", timestamp=datetime(2025, 4, 17, tzinfo=timezone.utc)),
            make_record(river="ТИСА", station="ТИТЕЛ", timestamp=datetime(2025, 4, 18, tzinfo=timezone.utc)),
            make_record(river="ТИСА", station="СЕНТА", timestamp=datetime(2025, 4, 16, tzinfo=timezone.utc)),
        ])

        assert await repository.get_unique_rivers() == ["ТИСА"]

    @pytest.mark.asyncio
    async def test_unrecognised_stored_tendency_reads_as_unknown(self, repository):
        await insert_raw(
            repository,
            river="ДУНАВ",
            station="БЕЗДАН",
            timestamp="2025-04-18 06:00:00+00:00",
            water_level="1",
            tendency="opadanje.gif"
        )

        records = await repository.get_by_river_name("ДУНАВ")

        assert len(records) == 1
        assert records[0].tendency == Tendency.UNKNOWN

    @pytest.mark.asyncio
    async def test_empty_store(self, repository):
        assert await repository.get_unique_rivers() == []
        assert await repository.get_last_update_time() is None


class TestLastUpdate:
    @pytest.mark.asyncio
    async def test_max_timestamp(self, repository, sample_records):
        latest = datetime(2025, 4, 20, 12, 0, tzinfo=timezone.utc)
        await repository.save_all(sample_records + [make_record(station="ЗЕМУН", timestamp=latest)])

        assert await repository.get_last_update_time() == latest

    @pytest.mark.parametrize("stored", [
        "2025-04-18T06:00:00+00:00",
        "2025-04-18 06:00:00+00:00",
        "2025-04-18T06:00:00Z",
        "2025-04-18 06:00:00Z",
        "2025-04-18 06:00:00",
        "2025-04-18T06:00:00",
        "2025-04-18T06:00:00.000000+00:00",
        "2025-04-18 06:00:00.5",
    ])
    @pytest.mark.asyncio
    async def test_legacy_formats(self, repository, stored):
        await insert_raw(repository, river="ДУНАВ", station="БЕЗДАН", timestamp=stored, water_level="1")

        result = await repository.get_last_update_time()

        assert result.replace(microsecond=0) == datetime(2025, 4, 18, 6, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_unparseable_raises_integrity_error(self, repository):
        await insert_raw(repository, river="ДУНАВ", station="БЕЗДАН", timestamp="yesterday", water_level="1")

        with pytest.raises(IntegrityError):
            await repository.get_last_update_time()


class TestTimestampText:
    def test_format_is_utc(self):
        value = datetime(2025, 4, 18, 8, 0, tzinfo=ZoneInfo("Europe/Belgrade"))

        assert format_timestamp(value) == "2025-04-18 06:00:00+00:00"

    def test_round_trip_preserves_instant(self):
        value = datetime(2025, 1, 15, 7, 0, tzinfo=ZoneInfo("Europe/Sarajevo"))

        assert parse_stored_timestamp(format_timestamp(value)) == value

    def test_garbage_raises(self):
        with pytest.raises(IntegrityError):
            parse_stored_timestamp("18.04.2025")


@pytest.mark.asyncio
async def test_open_creates_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "riverdata.db"

    repository = await SQLiteRiverRepository.open(str(path))
    await repository.close()

    assert path.exists()


@pytest.mark.asyncio
async def test_open_unwritable_location_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    with pytest.raises(PersistenceError):
        await SQLiteRiverRepository.open(str(blocker / "riverdata.db"))
