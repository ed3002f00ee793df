"""
Unit tests for source timestamp parsing
"""

import pytest
from datetime import datetime, timezone
from bs4 import BeautifulSoup

from core.exceptions import TimestampParseError
from ingestion.timestamps import (
    BELGRADE_TZ,
    SARAJEVO_TZ,
    UTC_TZ,
    extract_bulletin_timestamp,
    extract_regional_timestamp,
    fallback_timestamp,
    find_bulletin_timestamp_text,
    parse_bulletin_phrase,
    parse_regional_timestamp,
    parse_series_datetime,
)
from tests.conftest import BULLETIN_HTML, REGIONAL_HTML


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestBulletinTimestamp:
    """Primary bulletin "label DAY DD.MM.YYYY. time-label H:MM (...)" phrase"""

    def test_cyrillic_phrase(self):
        text = "Хидролошки подаци: ПЕТАК 18.04.2025. време: 8:00 (06:00 UTC)"

        result = parse_bulletin_phrase(text, tz=BELGRADE_TZ)

        assert result == datetime(2025, 4, 18, 8, 0, tzinfo=BELGRADE_TZ)
        assert result.astimezone(timezone.utc).hour == 6

    @pytest.mark.parametrize("text,label,time_label", [
        ("Hydrological data: FRIDAY 18.04.2025. time: 8:00 (06:00 UTC)", "Hydrological data:", "time:"),
        ("Hidrološki podaci: PETAK 18.04.2025. vreme: 8:00 (06:00 UTC)", "Hidrološki podaci:", "vreme:"),
    ])
    def test_other_labels(self, text, label, time_label):
        result = parse_bulletin_phrase(text, label=label, time_label=time_label, tz=BELGRADE_TZ)

        assert result == datetime(2025, 4, 18, 8, 0, tzinfo=BELGRADE_TZ)

    def test_weekday_is_optional(self):
        result = parse_bulletin_phrase("Хидролошки подаци: 01.12.2024. време: 14:30")

        assert result == datetime(2024, 12, 1, 14, 30, tzinfo=BELGRADE_TZ)

    def test_winter_offset(self):
        result = parse_bulletin_phrase("Хидролошки подаци: 15.01.2025. време: 7:00 (06:00 UTC)")

        assert result.astimezone(timezone.utc) == datetime(2025, 1, 15, 6, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", [
        "Нема података",
        "Хидролошки подаци: ПЕТАК 18.04.2025.",
        "Хидролошки подаци: ПЕТАК време: 8:00",
        "Хидролошки подаци: ПЕТАК 18.04. време: 8:00",
        "Хидролошки подаци: ПЕТАК 18.04.2025. време: осам",
        "Хидролошки подаци: ПЕТАК 31.02.2025. време: 8:00",
    ])
    def test_malformed_phrase_raises(self, text):
        with pytest.raises(TimestampParseError):
            parse_bulletin_phrase(text)

    def test_find_text_in_page(self):
        text = find_bulletin_timestamp_text(soup_of(BULLETIN_HTML))

        assert text.startswith("Хидролошки подаци:")

    def test_extract_from_page(self):
        result = extract_bulletin_timestamp(soup_of(BULLETIN_HTML))

        assert result == datetime(2025, 4, 18, 8, 0, tzinfo=BELGRADE_TZ)

    def test_extract_missing_returns_none(self):
        assert extract_bulletin_timestamp(soup_of("<div>Нема података</div>")) is None


class TestRegionalTimestamp:
    def test_parse_phrase(self):
        result = parse_regional_timestamp("ИЗВЈЕШТАЈ НА ДАН 18.04.2025. ГОДИНЕ, У 7:00")

        assert result == datetime(2025, 4, 18, 7, 0, tzinfo=SARAJEVO_TZ)

    def test_invalid_date_returns_none(self):
        assert parse_regional_timestamp("НА ДАН 30.02.2025. ГОДИНЕ, У 7:00") is None

    def test_absent_returns_none(self):
        assert parse_regional_timestamp("РИЈЕКА") is None

    def test_extract_from_page(self):
        result = extract_regional_timestamp(soup_of(REGIONAL_HTML))

        assert result.astimezone(timezone.utc) == datetime(2025, 4, 18, 5, 0, tzinfo=timezone.utc)


class TestSeriesDatetime:
    def test_parse_in_utc(self):
        result = parse_series_datetime("18.04.2025 08:00")

        assert result == datetime(2025, 4, 18, 8, 0, tzinfo=UTC_TZ)

    def test_invalid_raises(self):
        with pytest.raises(TimestampParseError):
            parse_series_datetime("18-04-2025 08:00")


def test_fallback_is_aware_and_logged(caplog):
    result = fallback_timestamp("hidmet_bulletin", BELGRADE_TZ)

    assert result.tzinfo is BELGRADE_TZ
    assert "falling back to processing time" in caplog.text
