"""
Locating and parsing the localized timestamps published by the sources.

Each source publishes its readings in its own civil timezone and phrase:

    primary bulletin:  "Хидролошки подаци: ПЕТАК 18.04.2025. време: 8:00 (06:00 UTC)"
    regional bulletin: "... НА ДАН 18.04.2025. ГОДИНЕ, У 7:00"
    station series:    "18.04.2025 08:00" (one per row)

Parsers return None (or raise TimestampParseError internally) instead of
guessing: the adapter decides whether to degrade to the processing time
through fallback_timestamp(), which logs the degradation.
"""

import logging
import re
from datetime import datetime, tzinfo
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup

from core.exceptions import TimestampParseError

logger = logging.getLogger(__name__)

BELGRADE_TZ = ZoneInfo("Europe/Belgrade")
SARAJEVO_TZ = ZoneInfo("Europe/Sarajevo")
UTC_TZ = ZoneInfo("UTC")

BULLETIN_LABEL = "Хидролошки подаци:"
BULLETIN_TIME_LABEL = "време:"
BULLETIN_SELECTORS = (
    "div.col-md-12",
    "div",
    "h4",
    "div.container",
)

REGIONAL_TIMESTAMP_RE = re.compile(
    r"НА\s+ДАН\s+(\d{1,2}\.\d{1,2}\.\d{4})\.\s*ГОДИНЕ,\s*У\s*(\d{1,2}:\d{2})"
)

SERIES_FORMAT = "%d.%m.%Y %H:%M"

_DATE_RE = re.compile(r"(\d{1,2})\.(\d{1,2})\.(\d{4})")
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")


# ============================================================================
# Primary bulletin
# ============================================================================

def find_bulletin_timestamp_text(
    soup: BeautifulSoup,
    label: str = BULLETIN_LABEL,
    selectors: Sequence[str] = BULLETIN_SELECTORS
) -> Optional[str]:
    """
    Return the text of the first element containing label.

    Selectors are tried in order and the search stops at the first
    selector that yields a match.
    """
    for selector in selectors:
        for element in soup.select(selector):
            text = element.get_text(" ", strip=True)
            if label in text:
                logger.debug(f"Found timestamp text using selector '{selector}': {text[:120]}")
                return text
    return None


def parse_bulletin_phrase(
    text: str,
    label: str = BULLETIN_LABEL,
    time_label: str = BULLETIN_TIME_LABEL,
    tz: tzinfo = BELGRADE_TZ
) -> datetime:
    """
    Parse "<label> [DAY] DD.MM.YYYY. <time_label> H:MM (...)" into an aware datetime.

    Raises:
        TimestampParseError: If any part of the phrase is missing or malformed
    """
    start = text.find(label)
    if start < 0:
        raise TimestampParseError("Timestamp label not found", context={"text": text[:200]})

    remainder = text[start + len(label):]
    if time_label not in remainder:
        raise TimestampParseError("Time label not found", context={"text": text[:200]})

    date_phrase, time_phrase = remainder.split(time_label, 1)

    # First token with a dot is the date; a weekday name may precede it
    date_token = next((tok for tok in date_phrase.split() if "." in tok), None)
    if date_token is None:
        raise TimestampParseError("Date not found", context={"date_phrase": date_phrase})

    date_match = _DATE_RE.match(date_token)
    if not date_match:
        raise TimestampParseError("Malformed date", context={"date": date_token})

    time_phrase = time_phrase.split("(", 1)[0].strip()
    time_match = _TIME_RE.match(time_phrase)
    if not time_match:
        raise TimestampParseError("Malformed time", context={"time": time_phrase})

    day, month, year = (int(part) for part in date_match.groups())
    hour, minute = (int(part) for part in time_match.groups())

    try:
        return datetime(year, month, day, hour, minute, tzinfo=tz)
    except ValueError as e:
        raise TimestampParseError(
            "Date or time out of range",
            context={"date": date_token, "time": time_phrase},
            original_exception=e
        )


def extract_bulletin_timestamp(soup: BeautifulSoup, tz: tzinfo = BELGRADE_TZ) -> Optional[datetime]:
    """
    Locate and parse the primary bulletin timestamp.

    Returns None when the phrase is missing or unparseable.
    """
    text = find_bulletin_timestamp_text(soup)
    if text is None:
        logger.warning("Bulletin timestamp text not found")
        return None

    try:
        timestamp = parse_bulletin_phrase(text, tz=tz)
    except TimestampParseError as e:
        logger.warning(f"Failed to parse bulletin timestamp: {e.message}", extra={"error_context": e.to_dict()})
        return None

    logger.info(f"Extracted bulletin timestamp: {timestamp.isoformat()}")
    return timestamp


# ============================================================================
# Regional bulletin
# ============================================================================

def parse_regional_timestamp(text: str, tz: tzinfo = SARAJEVO_TZ) -> Optional[datetime]:
    """Parse "НА ДАН DD.MM.YYYY. ГОДИНЕ, У H:MM"; None when absent or invalid."""
    match = REGIONAL_TIMESTAMP_RE.search(text)
    if not match:
        return None

    date_str, time_str = match.groups()
    try:
        parsed = datetime.strptime(f"{date_str} {time_str}", SERIES_FORMAT)
    except ValueError as e:
        logger.warning(f"Invalid regional timestamp '{date_str} {time_str}': {e}")
        return None

    return parsed.replace(tzinfo=tz)


def extract_regional_timestamp(soup: BeautifulSoup, tz: tzinfo = SARAJEVO_TZ) -> Optional[datetime]:
    """Find the first table cell carrying the regional timestamp phrase."""
    for row in soup.select("table tr"):
        cell = row.find("td")
        if cell is None:
            continue

        text = cell.get_text(" ", strip=True)
        if "НА ДАН" not in text or "ГОДИНЕ" not in text:
            continue

        timestamp = parse_regional_timestamp(text, tz=tz)
        if timestamp is not None:
            logger.info(f"Extracted regional timestamp: {timestamp.isoformat()}")
            return timestamp

    return None


# ============================================================================
# Station series
# ============================================================================

def parse_series_datetime(text: str, tz: tzinfo = UTC_TZ) -> datetime:
    """
    Parse a "DD.MM.YYYY HH:MM" cell in the given zone.

    Raises:
        TimestampParseError: If the cell does not match the format
    """
    try:
        parsed = datetime.strptime(text.strip(), SERIES_FORMAT)
    except ValueError as e:
        raise TimestampParseError(
            "Invalid series datetime",
            context={"text": text, "format": SERIES_FORMAT},
            original_exception=e
        )
    return parsed.replace(tzinfo=tz)


# ============================================================================
# Fallback
# ============================================================================

def fallback_timestamp(source_name: str, tz: tzinfo) -> datetime:
    """Processing time in tz, used only when a source timestamp is missing."""
    now = datetime.now(tz)
    logger.warning(
        f"No usable timestamp for {source_name}; "
        f"falling back to processing time {now.isoformat()}"
    )
    return now
