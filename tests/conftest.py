"""
Pytest configuration and fixtures.
"""

import os
import pytest
import httpx

# Keep settings independent of a developer's .env
os.environ.setdefault("ENV", "test")
os.environ.setdefault("ENABLE_REDIS", "false")

from handsup.models.campsite import Campsite, CampsiteCategory, CampingType, CellReceptionLevel, Coordinate, Season
from handsup.services.kv_store import InMemoryKeyValueStore, PersistenceError
from handsup.services.regions import AustralianState
from handsup.services.warning_feeds import BureauWarningFeed

FEED_URL_TEMPLATE = "https://bom.test/fwo/{product_id}.warnings_{feed_code}.xml"

BOM_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Bureau of Meteorology warnings for Victoria</title>
    <item>
      <title>19/14:05 EST Severe Thunderstorm Warning for Blue Mountains</title>
      <link>http://www.bom.gov.au/products/IDV21035.shtml</link>
      <pubDate>Sun, 19 Oct 2025 03:05:00 GMT</pubDate>
      <guid isPermaLink="false">IDV21035-1</guid>
    </item>
    <item>
      <title>19/13:00 EST Major Flood Warning for the Murray River</title>
      <link>http://www.bom.gov.au/products/IDV36500.shtml</link>
      <pubDate>Sun, 19 Oct 2025 02:00:00 GMT</pubDate>
      <guid isPermaLink="false">IDV36500-1</guid>
    </item>
    <item>
      <title>Fire Weather Warning for Mallee</title>
      <link>http://www.bom.gov.au/products/IDV21000.shtml</link>
      <guid isPermaLink="false">IDV21000-1</guid>
    </item>
    <item>
      <title>Flood Watch for North East Victoria</title>
      <guid isPermaLink="false">IDV36300-1</guid>
    </item>
    <item>
      <title>Emergency Warning - Extreme Heatwave for Melbourne</title>
      <guid isPermaLink="false">IDV21900-1</guid>
    </item>
    <item>
      <title>Cancellation of Severe Weather Warning for Gippsland</title>
      <guid isPermaLink="false">IDV21037-1</guid>
    </item>
  </channel>
</rss>
"""


class FailingKeyValueStore(InMemoryKeyValueStore):
    """Reads work, writes always fail."""

    async def set(self, key, value):
        raise PersistenceError(f"could not write {key}")


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_kv():
    return FailingKeyValueStore()


@pytest.fixture
def make_campsite():
    """Factory for campsites with sensible defaults."""
    def _make(**overrides):
        data = {
            "name": "Blue Mountains Bush Camp",
            "address": "Blue Mountains National Park, NSW",
            "location": Coordinate(latitude=-33.7128, longitude=150.3119),
            "notes": "Beautiful bush camping with stunning mountain views",
            "category": CampsiteCategory.BUSH_CAMPING,
            "rating": 4,
            "has_water": True,
            "has_toilets": True,
            "has_fire_pit": True,
            "has_parking": True,
            "emergency_contact": "Blue Mountains Police: 02 4782 8199",
            "nearest_hospital": "Blue Mountains District ANZAC Memorial Hospital",
            "cell_reception": CellReceptionLevel.GOOD,
            "camping_type": CampingType.TENT,
            "season_availability": {Season.SPRING, Season.SUMMER, Season.AUTUMN},
        }
        data.update(overrides)
        return Campsite(**data)
    return _make


@pytest.fixture
def jervis_bay(make_campsite):
    return make_campsite(
        name="Jervis Bay Caravan Park",
        address="Jervis Bay, NSW",
        location=Coordinate(latitude=-35.0748, longitude=150.6681),
        notes="Family-friendly caravan park near beautiful beaches",
        category=CampsiteCategory.CARAVAN_PARK,
        rating=5,
        has_electricity=True,
        has_showers=True,
        has_fire_pit=False,
        has_bbq=True,
        is_accessible=True,
        cell_reception=CellReceptionLevel.EXCELLENT,
        camping_type=CampingType.CARAVAN,
        season_availability={Season.SPRING, Season.SUMMER, Season.AUTUMN, Season.WINTER},
        cost="$45 per night",
    )


@pytest.fixture
def kosciuszko(make_campsite):
    return make_campsite(
        name="Kosciuszko Alpine Camp",
        address="Kosciuszko National Park, NSW",
        location=Coordinate(latitude=-36.45, longitude=148.2633),
        notes="High altitude camping with spectacular alpine views",
        category=CampsiteCategory.NATIONAL_PARK,
        rating=4,
        has_fire_pit=False,
        emergency_contact=None,
        nearest_hospital=None,
        cell_reception=CellReceptionLevel.POOR,
        season_availability={Season.SUMMER, Season.AUTUMN},
        cost="Free",
    )


@pytest.fixture
def bom_feed():
    return BureauWarningFeed(AustralianState.VIC, FEED_URL_TEMPLATE)


@pytest.fixture
def mock_client():
    """Factory for an AsyncClient whose requests go to ``handler``."""
    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _make


@pytest.fixture
def rss_client(mock_client):
    return mock_client(lambda request: httpx.Response(200, content=BOM_RSS))
