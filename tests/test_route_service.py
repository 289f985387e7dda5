"""Tests for route search and stop sequences."""

from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Route, route_type_label
from transit_mcp.models.responses import OutcomeKind
from transit_mcp.services.route_service import (
    route_matches,
    search_routes,
    stop_sequence_for_route,
)


class TestSearchRoutes:
    """Tests for search_routes."""

    async def test_case_insensitive_substring(self, sample_store: FeedStore) -> None:
        response = search_routes(sample_store, "circle")

        assert response.success
        assert [r.route_id for r in response.routes] == ["R1"]
        assert response.routes[0].route_type_label == "Bus"

    async def test_matches_short_name(self, sample_store: FeedStore) -> None:
        response = search_routes(sample_store, "x5")

        assert [r.route_id for r in response.routes] == ["R2"]

    async def test_empty_query_lists_deduplicated_routes(self, sample_store: FeedStore) -> None:
        response = search_routes(sample_store, "")

        assert response.count == 3
        assert [r.route_id for r in response.routes] == ["R1", "R2", "R3"]
        assert response.routes[2].route_type_label == "Tram"

    async def test_limit(self, sample_store: FeedStore) -> None:
        response = search_routes(sample_store, "", limit=2)

        assert response.count == 2

    async def test_no_match(self, sample_store: FeedStore) -> None:
        response = search_routes(sample_store, "ferry")

        assert response.success
        assert response.outcome == OutcomeKind.NO_RESULTS
        assert response.routes == []

    def test_not_loaded(self) -> None:
        response = search_routes(None, "11")

        assert not response.success
        assert response.outcome == OutcomeKind.NOT_READY

    def test_route_matches_ignores_missing_names(self) -> None:
        route = Route(route_id="R9", route_short_name=None, route_long_name="Night Bus")

        assert route_matches(route, "night")
        assert not route_matches(route, "day")


class TestStopSequenceForRoute:
    """Tests for stop_sequence_for_route."""

    async def test_stops_in_order(self, sample_store: FeedStore) -> None:
        response = stop_sequence_for_route(sample_store, "R1")

        assert response.success
        assert response.trip_id == "T1"
        assert [s.stop_id for s in response.stops] == ["A", "B", "C"]

    async def test_collapsed_route_id(self, sample_store: FeedStore) -> None:
        """A collapsed route id resolves to the same representative trip."""
        response = stop_sequence_for_route(sample_store, "R1B")

        assert response.trip_id == "T1"

    async def test_unknown_stop_gets_placeholder(self, sample_store: FeedStore) -> None:
        response = stop_sequence_for_route(sample_store, "R3")

        assert [s.stop_name for s in response.stops] == [
            "Perry Barr",
            "Unknown Stop (ID: UNKNOWN)",
        ]

    async def test_route_without_trips(self, sample_store: FeedStore) -> None:
        response = stop_sequence_for_route(sample_store, "R404")

        assert response.success
        assert response.outcome == OutcomeKind.NO_RESULTS
        assert response.stops == []

    def test_not_loaded(self) -> None:
        response = stop_sequence_for_route(None, "R1")

        assert response.outcome == OutcomeKind.NOT_READY


class TestRouteTypeLabel:
    """Tests for route type labels."""

    def test_known_codes(self) -> None:
        assert route_type_label(0) == "Tram"
        assert route_type_label(1) == "Subway/Metro"
        assert route_type_label(7) == "Funicular"

    def test_unknown_codes(self) -> None:
        assert route_type_label(None) == "Unknown"
        assert route_type_label(715) == "Unknown"
