"""
Shared fixtures for inventory pipeline tests.
"""

import copy
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict

import pytest

from core.clock import MockClock
from inventory_ingestion.adapter import ScreenAdapter


BASE_TIME = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


_BASE_RECORD: Dict[str, Any] = {
    "SSPName": "Alpha SSP",
    "VenueInfo": {"VenueName": "Mall X", "VenueTypes": ["retail"]},
    "GeoLocation": {
        "Latitude": 4.65,
        "Longitude": -74.05,
        "City": "Bogota",
        "Region": "Cundinamarca",
        "Country": "Colombia",
        "Address": "Calle 100 #15-20",
        "Timezone": "America/Bogota",
    },
    "ScreenInfo": {
        "WidthPixels": 1920,
        "HeightPixels": 1080,
        "Brightness": 6000,
        "PixelsPerInch": 40,
        "IsFixed": True,
        "ImageUrl": "https://cdn.example.com/screens/v1.jpg",
    },
    "PricingInfo": {"FloorPrice": 20, "Currency": "USD"},
    "AudienceInfo": {"EstimatedDailyImpressions": 60000},
    "AvailabilityInfo": {"Status": "Available"},
}


def build_record(source_id: str = "alpha", venue_id: str = "V1", **overrides: Any) -> Dict[str, Any]:
    """A complete, valid SSP record; top-level keys can be overridden."""
    record = copy.deepcopy(_BASE_RECORD)
    record["SSPId"] = source_id
    record["RequestId"] = f"req-{venue_id}"
    record["VenueInfo"]["VenueId"] = venue_id
    record.update(overrides)
    return record


@pytest.fixture
def make_record():
    """Factory for SSP records."""
    return build_record


@pytest.fixture
def mock_clock():
    """Mock clock pinned to a fixed instant."""
    return MockClock(BASE_TIME)


@pytest.fixture
def adapter(mock_clock):
    """Adapter using the mock clock."""
    return ScreenAdapter(clock=mock_clock)


@pytest.fixture
def make_local_screen(adapter):
    """Factory for directly operated (local) screens."""
    def _make(screen_id: str = "local-1", name: str = "Lobby Screen"):
        external = adapter.convert(build_record(venue_id=screen_id))
        return replace(external, id=screen_id, name=name, source_metadata=None)
    return _make
