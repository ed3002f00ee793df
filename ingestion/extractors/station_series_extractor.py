"""
Single-station time series extractor.

The series page lists one station's recent readings as two-column rows
(datetime, level). Every valid row becomes its own record with its own
timestamp; the page carries no zone indicator and is read as UTC.
"""

from typing import List, Optional
from datetime import tzinfo
import logging
import re

from bs4 import BeautifulSoup

from core.config import settings
from core.exceptions import TimestampParseError
from ingestion.base import SourceAdapter
from ingestion.timestamps import UTC_TZ, parse_series_datetime
from ingestion.transformers.normalizer import clean_text
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

HEADER_LABELS = {"Датум и време"}

# Plain ASCII digits only; int() would also accept "1_000" and non-Latin digits
INTEGER_RE = re.compile(r"^[+-]?\d+$", re.ASCII)


def looks_like_datetime(text: str) -> bool:
    """Loose check for "DD.MM.YYYY HH:MM"."""
    return "." in text and ":" in text


class StationSeriesExtractor(SourceAdapter):
    """
    Extract the time series of a single station.

    Output is sorted oldest-first.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        river: Optional[str] = None,
        station: Optional[str] = None,
        tz: tzinfo = UTC_TZ,
        source_name: str = "hidmet_station_series",
        mandatory: bool = False,
        **kwargs
    ):
        super().__init__(source_name=source_name, mandatory=mandatory, **kwargs)
        self.url = url or settings.HIDMET_SERIES_URL
        self.river = river or settings.SERIES_RIVER
        self.station = station or settings.SERIES_STATION
        self.tz = tz

    async def fetch(self) -> List[RiverRecord]:
        async with self.client() as client:
            response = await self.get_page(client, self.url)

        return self.parse_rows(self.parse_html(response.text))

    def parse_rows(self, soup: BeautifulSoup) -> List[RiverRecord]:
        records = []
        processed = 0
        skipped = 0

        for row in soup.select("table tr"):
            cells = row.find_all("td", recursive=False)
            if len(cells) != 2:
                continue
            processed += 1

            datetime_text = clean_text(cells[0].get_text())
            level_text = clean_text(cells[1].get_text())

            if not datetime_text or datetime_text in HEADER_LABELS or not looks_like_datetime(datetime_text):
                skipped += 1
                continue

            try:
                timestamp = parse_series_datetime(datetime_text, tz=self.tz)
            except TimestampParseError:
                logger.warning(f"[{self.source_name}] Skipping row with invalid timestamp: {datetime_text!r}")
                skipped += 1
                continue

            if not INTEGER_RE.match(level_text):
                logger.warning(f"[{self.source_name}] Skipping row with non-integer level: {level_text!r}")
                skipped += 1
                continue

            level = int(level_text)

            records.append(RiverRecord(
                river=self.river,
                station=self.station,
                water_level=str(level),
                timestamp=timestamp
            ))

        records.sort(key=lambda record: record.timestamp)

        logger.info(
            f"[{self.source_name}] Processed {processed} rows, "
            f"found {len(records)} valid entries, skipped {skipped}"
        )
        return records
