"""
Regional bulletin extractor with link discovery.

Two steps:
    1. The listing page links to the latest "Редован хидролошки билтен";
       the link is found by its anchor text.
    2. The bulletin page holds one wide table. Rows before the header row
       (first cell "РИЈЕКА") are titles; after it, the river cell uses
       rowspan and is blank on continuation rows.

Column layout after the header:
    0 river, 1 station, 3 level, 4 change, 5 temperature, 6 discharge,
    7 tendency glyph (▲ ▼ ●)
"""

from typing import List, Optional
from datetime import datetime
from urllib.parse import urljoin
import logging
import re

from bs4 import BeautifulSoup
from pydantic import ValidationError

from core.config import settings
from core.exceptions import DiscoveryError
from ingestion.base import SourceAdapter
from ingestion.timestamps import SARAJEVO_TZ, extract_regional_timestamp, fallback_timestamp
from ingestion.transformers.normalizer import (
    clean_text,
    normalize_level,
    normalize_optional,
    tendency_from_glyph,
)
from schemas.river import RiverRecord

logger = logging.getLogger(__name__)

BULLETIN_LINK_RE = re.compile(r"Редован\s+хидролошки\s+билтен")
HEADER_LABEL = "РИЈЕКА"
FOOTNOTE_KEYWORDS = ("Напомена", "Легенда")
MIN_COLUMNS = 4


class RegionalBulletinExtractor(SourceAdapter):
    """Extract station readings from the regional bulletin"""

    def __init__(
        self,
        listing_url: Optional[str] = None,
        base_url: Optional[str] = None,
        source_name: str = "rhmzrs_bulletin",
        mandatory: bool = False,
        **kwargs
    ):
        super().__init__(source_name=source_name, mandatory=mandatory, **kwargs)
        self.listing_url = listing_url or settings.RHMZRS_LISTING_URL
        self.base_url = base_url or settings.RHMZRS_BASE_URL

    async def fetch(self) -> List[RiverRecord]:
        async with self.client() as client:
            listing = await self.get_page(client, self.listing_url)
            bulletin_url = self.discover_bulletin_url(self.parse_html(listing.text))
            logger.info(f"[{self.source_name}] Found bulletin link: {bulletin_url}")

            response = await self.get_page(client, bulletin_url)

        soup = self.parse_html(response.text)

        timestamp = extract_regional_timestamp(soup, tz=SARAJEVO_TZ)
        if timestamp is None:
            timestamp = fallback_timestamp(self.source_name, SARAJEVO_TZ)

        return self.parse_rows(soup, timestamp)

    def discover_bulletin_url(self, soup: BeautifulSoup) -> str:
        """
        Absolute URL of the first anchor whose text matches the bulletin pattern.

        Raises:
            DiscoveryError: If no anchor matches
        """
        for anchor in soup.find_all("a", href=True):
            if BULLETIN_LINK_RE.search(anchor.get_text(" ", strip=True)):
                return urljoin(self.base_url + "/", anchor["href"])

        raise DiscoveryError(
            "Latest bulletin link not found",
            context={
                "source_name": self.source_name,
                "url": self.listing_url,
                "pattern": BULLETIN_LINK_RE.pattern
            }
        )

    def parse_rows(self, soup: BeautifulSoup, timestamp: datetime) -> List[RiverRecord]:
        records = []
        current_river = ""
        header_passed = False
        spanned_rows = 0

        for row in soup.select("table tr"):
            cells = [clean_text(cell.get_text()) for cell in row.find_all("td", recursive=False)]

            if header_passed:
                # Rows covered by a rowspan river cell omit that cell entirely
                if spanned_rows > 0:
                    spanned_rows -= 1
                    cells = [""] + cells
                else:
                    spanned_rows = self._rowspan(row) - 1

            if len(cells) < MIN_COLUMNS:
                continue

            first_cell = cells[0]

            if not header_passed:
                if first_cell == HEADER_LABEL:
                    header_passed = True
                continue

            if any(keyword in first_cell for keyword in FOOTNOTE_KEYWORDS):
                continue

            station = cells[1]
            if not first_cell and not station:
                continue

            if first_cell:
                current_river = first_cell
            elif not current_river:
                continue

            if not station:
                continue

            try:
                record = RiverRecord(
                    river=current_river,
                    station=station,
                    water_level=normalize_level(self._cell(cells, 3)),
                    water_change=normalize_optional(self._cell(cells, 4)),
                    water_temp=normalize_optional(self._cell(cells, 5)),
                    discharge=normalize_optional(self._cell(cells, 6)),
                    tendency=tendency_from_glyph(self._cell(cells, 7)),
                    timestamp=timestamp
                )
            except ValidationError as e:
                logger.warning(f"[{self.source_name}] Skipping malformed row: {e.errors()}")
                continue

            records.append(record)

        if not header_passed:
            logger.warning(f"[{self.source_name}] Header row '{HEADER_LABEL}' not found in bulletin")

        logger.info(f"[{self.source_name}] Extracted {len(records)} records")
        return records

    @staticmethod
    def _cell(cells: List[str], index: int) -> str:
        if index < len(cells):
            return cells[index]
        return ""

    @staticmethod
    def _rowspan(row) -> int:
        first = row.find("td", recursive=False)
        if first is None:
            return 1
        try:
            return max(int(first.get("rowspan", 1)), 1)
        except (TypeError, ValueError):
            return 1
