"""
Primary bulletin extractor.

One HTML page with a single wide table, one row per station. All rows
share the bulletin timestamp printed above the table.

Column layout (only these columns are read):
    0 river, 2 station (anchor), 5 level, 6 change, 7 discharge,
    8 temperature, 9 tendency image
"""

from typing import List, Optional
from datetime import datetime
import logging

from bs4 import BeautifulSoup
from pydantic import ValidationError

from core.config import settings
from ingestion.base import SourceAdapter
from ingestion.timestamps import BELGRADE_TZ, extract_bulletin_timestamp, fallback_timestamp
from ingestion.transformers.normalizer import clean_text, normalize_optional, tendency_from_label
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

# Rows with fewer cells are section headers or decoration
MIN_COLUMNS = 10


class HidmetBulletinExtractor(SourceAdapter):
    """Extract station readings from the primary bulletin table"""

    def __init__(
        self,
        url: Optional[str] = None,
        source_name: str = "hidmet_bulletin",
        mandatory: bool = True,
        **kwargs
    ):
        super().__init__(source_name=source_name, mandatory=mandatory, **kwargs)
        self.url = url or settings.HIDMET_BULLETIN_URL

    async def fetch(self) -> List[RiverRecord]:
        async with self.client() as client:
            response = await self.get_page(client, self.url)

        soup = self.parse_html(response.text)

        timestamp = extract_bulletin_timestamp(soup, tz=BELGRADE_TZ)
        if timestamp is None:
            timestamp = fallback_timestamp(self.source_name, BELGRADE_TZ)

        return self.parse_rows(soup, timestamp)

    def parse_rows(self, soup: BeautifulSoup, timestamp: datetime) -> List[RiverRecord]:
        """Turn qualifying table rows into records sharing timestamp."""
        rows = soup.select("table tr")
        records = []

        for row in rows:
            cells = row.find_all("td", recursive=False)
            if len(cells) < MIN_COLUMNS:
                continue

            anchor = cells[2].find("a")
            station = clean_text((anchor or cells[2]).get_text())

            image = cells[9].find("img")
            label = ""
            if image is not None:
                label = image.get("alt") or image.get("title") or ""

            try:
                record = RiverRecord(
                    river=clean_text(cells[0].get_text()),
                    station=station,
                    water_level=clean_text(cells[5].get_text()),
                    water_change=normalize_optional(cells[6].get_text()),
                    discharge=normalize_optional(cells[7].get_text()),
                    water_temp=normalize_optional(cells[8].get_text()),
                    tendency=tendency_from_label(label),
                    timestamp=timestamp
                )
            except ValidationError as e:
                logger.warning(f"[{self.source_name}] Skipping malformed row: {e.errors()}")
                continue

            records.append(record)

        logger.info(
            f"[{self.source_name}] Parsed {len(rows)} rows, "
            f"extracted {len(records)} records"
        )
        return records
