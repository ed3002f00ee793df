"""
Pytest configuration and fixtures
"""

from datetime import datetime, timezone
from typing import AsyncGenerator, Dict, Tuple, Union

import httpx
import pytest
import pytest_asyncio

from ingestion.loaders.sqlite_loader import SQLiteRiverRepository
from models.base import Tendency
from schemas.river import RiverRecord

BULLETIN_URL = "https://www.hidmet.gov.rs/ciril/osmotreni/stanje_voda.php"
SERIES_URL = "https://www.hidmet.gov.rs/ciril/osmotreni/nrt_tabela_grafik.php?hm_id=45902&period=7"
LISTING_URL = "https://novi.rhmzrs.com/page/bilten-izvjestaj-o-vodostanju"
REGIONAL_URL = "https://novi.rhmzrs.com/media/bilten-18-04-2025.html"

BULLETIN_HTML = """
<html><body>
<div class="container">
  <div class="col-md-12"><h4>Хидролошки подаци: ПЕТАК 18.04.2025. време: 8:00 (06:00 UTC)</h4></div>
  <table>
    <thead>
      <tr><th>Река</th><th>Бр.</th><th>Станица</th><th>Кота</th><th>Ниво</th><th>H</th><th>ΔH</th><th>Q</th><th>T</th><th>Тенд.</th></tr>
    </thead>
    <tbody>
      <tr><td>ДУНАВ</td><td>1</td><td><a href="/st/42010">БЕЗДАН</a></td><td>80.6</td><td>x</td><td>250</td><td>-3</td><td>1450</td><td>11.2</td><td><img src="d.gif" alt="опадање"></td></tr>
      <tr><td>САВА</td><td>2</td><td><a href="/st/45099">ШАБАЦ</a></td><td>72.0</td><td>x</td><td>310</td><td>-</td><td>-</td><td>-</td><td><img src="u.gif" title="пораст"></td></tr>
      <tr><td></td><td>3</td><td><a href="/st/0">БЕЗ РЕКЕ</a></td><td></td><td></td><td>100</td><td></td><td></td><td></td><td></td></tr>
      <tr><td colspan="10">Подаци су привремени</td></tr>
    </tbody>
  </table>
</div>
</body></html>
"""

SERIES_HTML = """
<html><body>
<table>
  <tr><td>Датум и време</td><td>Водостај (cm)</td></tr>
  <tr><td>18.04.2025 08:00</td><td>120</td></tr>
  <tr><td>17.04.2025 08:00</td><td>118</td></tr>
  <tr><td>18.04.2025 09:00</td><td>n/a</td></tr>
  <tr><td>32.04.2025 08:00</td><td>100</td></tr>
  <tr><td>Напомена</td><td>x</td></tr>
</table>
</body></html>
"""

LISTING_HTML = """
<html><body>
<ul>
  <li><a href="/page/ostalo">Остали извјештаји</a></li>
  <li><a href="/media/bilten-18-04-2025.html">Редован хидролошки билтен 18.04.2025</a></li>
  <li><a href="/media/bilten-17-04-2025.html">Редован хидролошки билтен 17.04.2025</a></li>
</ul>
</body></html>
"""

REGIONAL_HTML = """
<html><body>
<table>
  <tr><td colspan="8">ИЗВЈЕШТАЈ О ВОДОСТАЊУ НА ДАН 18.04.2025. ГОДИНЕ, У 7:00</td></tr>
  <tr><td>РИЈЕКА</td><td>СТАНИЦА</td><td>КОТА</td><td>H</td><td>ΔH</td><td>T</td><td>Q</td><td>ТЕНД.</td></tr>
  <tr><td rowspan="2">ДРИНА</td><td>ФОЧА</td><td>400</td><td>150</td><td>+2</td><td>9.5</td><td>120</td><td>▲</td></tr>
  <tr><td>ГОРАЖДЕ</td><td>330</td><td>-</td><td>-</td><td>-</td><td>-</td><td>●</td></tr>
  <tr><td>ВРБАС</td><td>БАЊА ЛУКА</td><td>150</td><td>95</td><td>-1</td><td>10.1</td><td>80</td><td>▼</td></tr>
  <tr><td></td><td>ДЕЛИБАШИНО СЕЛО</td><td>140</td><td>88</td><td>0</td><td>10.0</td><td>75</td><td>●</td></tr>
  <tr><td colspan="8">Напомена: подаци су привремени</td></tr>
</table>
</body></html>
"""

Route = Union[str, Tuple[int, str]]


def make_transport(routes: Dict[str, Route]) -> httpx.MockTransport:
    """
    Fake HTTP transport serving routes by exact URL.

    A route is either the body (served with 200) or a (status, body) pair.
    Unknown URLs answer 404.
    """
    table = {httpx.URL(url): route for url, route in routes.items()}

    def handler(request: httpx.Request) -> httpx.Response:
        route = table.get(request.url)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, text=body)
        return httpx.Response(200, text=route)

    return httpx.MockTransport(handler)


def make_record(
    river: str = "ДУНАВ",
    station: str = "БЕЗДАН",
    timestamp: datetime = datetime(2025, 4, 18, 6, 0, tzinfo=timezone.utc),
    water_level: str = "250",
    **kwargs
) -> RiverRecord:
    return RiverRecord(river=river, station=station, timestamp=timestamp, water_level=water_level, **kwargs)


@pytest.fixture
def all_sources_transport():
    """Transport serving every production source successfully"""
    return make_transport({
        BULLETIN_URL: BULLETIN_HTML,
        SERIES_URL: SERIES_HTML,
        LISTING_URL: LISTING_HTML,
        REGIONAL_URL: REGIONAL_HTML,
    })


@pytest_asyncio.fixture(scope="function")
async def repository(tmp_path) -> AsyncGenerator[SQLiteRiverRepository, None]:
    """Throwaway SQLite store per test"""
    repo = await SQLiteRiverRepository.open(str(tmp_path / "riverdata.db"))
    yield repo
    await repo.close()


@pytest.fixture
def sample_records():
    """Two stations on one river plus one on another"""
    return [
        make_record(tendency=Tendency.FALLING, water_change="-3", discharge="1450", water_temp="11.2"),
        make_record(river="ДУНАВ", station="НОВИ САД", water_level="300"),
        make_record(river="САВА", station="ШАБАЦ", water_level="310", tendency=Tendency.RISING),
    ]
