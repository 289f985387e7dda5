"""Tests for nearest-stop search."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Point, Stop
from transit_mcp.services.stop_service import (
    EARTH_RADIUS_METERS,
    find_stops_near,
    haversine_distance,
)


def _stop(stop_id: str, lat: str | None, lon: str | None) -> Stop:
    return Stop(stop_id=stop_id, stop_name=f"Stop {stop_id}", stop_lat=lat, stop_lon=lon)


@pytest.fixture
def store() -> FeedStore:
    stops = [
        _stop("CENTRE", "52.4800", "-1.9000"),
        _stop("NEAR", "52.4850", "-1.9000"),  # ~556 m north
        _stop("EDGE", "52.4889", "-1.9000"),  # ~990 m north
        _stop("FAR", "52.5000", "-1.8900"),  # ~2.3 km
        _stop("BLANK", None, None),
        _stop("GARBLED", "fifty-two", "-1.9"),
    ]
    return FeedStore(feed_dir=Path("."), stops_by_id={s.stop_id: s for s in stops})


class TestHaversineDistance:
    """Tests for haversine_distance."""

    def test_same_point(self) -> None:
        assert haversine_distance(52.48, -1.90, 52.48, -1.90) == 0

    def test_one_degree_of_latitude(self) -> None:
        expected = EARTH_RADIUS_METERS * 3.141592653589793 / 180
        assert haversine_distance(0, 0, 1, 0) == pytest.approx(expected)

    def test_symmetric(self) -> None:
        a = haversine_distance(52.48, -1.90, 52.50, -1.89)
        b = haversine_distance(52.50, -1.89, 52.48, -1.90)
        assert a == pytest.approx(b)
        assert a == pytest.approx(2300, rel=0.05)


class TestFindStopsNear:
    """Tests for find_stops_near."""

    async def test_returns_stops_within_radius_nearest_first(self, store: FeedStore) -> None:
        stops = await find_stops_near(store, Point(lat=52.48, lon=-1.90), 1000)

        assert [s.stop_id for s in stops] == ["CENTRE", "NEAR", "EDGE"]

    async def test_never_returns_stop_beyond_radius(self, store: FeedStore) -> None:
        center = Point(lat=52.48, lon=-1.90)
        for radius in (100, 600, 1000, 5000):
            for stop in await find_stops_near(store, center, radius):
                coords = stop.coordinates()
                distance = haversine_distance(center.lat, center.lon, coords.lat, coords.lon)
                assert distance <= radius + 1e-6

    async def test_excludes_unparsable_coordinates(self, store: FeedStore) -> None:
        stops = await find_stops_near(store, Point(lat=52.48, lon=-1.90), 50_000)

        ids = {s.stop_id for s in stops}
        assert "BLANK" not in ids
        assert "GARBLED" not in ids
        assert "FAR" in ids

    async def test_nothing_nearby(self, store: FeedStore) -> None:
        assert await find_stops_near(store, Point(lat=45.5, lon=-73.56), 1000) == []

    async def test_empty_store(self) -> None:
        empty = FeedStore(feed_dir=Path("."))
        assert await find_stops_near(empty, Point(lat=52.48, lon=-1.90)) == []

    async def test_scan_yields_to_event_loop(self, store: FeedStore) -> None:
        with (
            patch("transit_mcp.services.stop_service.STOP_YIELD_INTERVAL", 1),
            patch(
                "transit_mcp.services.stop_service.asyncio.sleep", new_callable=AsyncMock
            ) as sleep,
        ):
            stops = await find_stops_near(store, Point(lat=52.48, lon=-1.90), 1000)

        assert sleep.await_count == 6
        assert [s.stop_id for s in stops] == ["CENTRE", "NEAR", "EDGE"]
