"""Tests for shape reading and segment extraction."""

from pathlib import Path

import pytest

from transit_mcp.data.cache import ShapeCache
from transit_mcp.data.feed_reader import FeedFileError, FeedSchemaError
from transit_mcp.data.shape_reader import load_shape, read_shape
from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Point, Route, Stop
from transit_mcp.models.responses import OutcomeKind, SuggestedRouteOption
from transit_mcp.services.shape_service import (
    closest_point_index,
    extract_segment,
    segment_for_suggestion,
    segment_for_trip,
    shape_for_trip,
)

STRAIGHT_PATH = [Point(lat=52.48 + i * 0.01, lon=-1.90) for i in range(5)]


class TestReadShape:
    """Tests for the on-demand shape reader."""

    def test_points_ordered_by_sequence(self, tmp_path: Path) -> None:
        shapes = tmp_path / "shapes.txt"
        shapes.write_text(
            "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n"
            "SH1,52.2,-1.2,2\n"
            "SH1,52.1,-1.1,1\n"
            "SH9,50.0,-1.0,1\n"
            "SH1,52.3,-1.3,3\n"
        )

        points = read_shape("SH1", shapes)

        assert [p.lat for p in points] == [52.1, 52.2, 52.3]

    def test_unparsable_rows_are_skipped(self, tmp_path: Path) -> None:
        shapes = tmp_path / "shapes.txt"
        shapes.write_text(
            "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n"
            "SH1,52.1,-1.1,1\n"
            "SH1,north,-1.2,2\n"
            "SH1,52.3,-1.3,\n"
            "SH1,52.4,-1.4,4\n"
        )

        points = read_shape("SH1", shapes)

        assert [p.lat for p in points] == [52.1, 52.4]

    def test_bad_bytes_in_another_shape(self, tmp_path: Path) -> None:
        shapes = tmp_path / "shapes.txt"
        shapes.write_bytes(
            b"shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n"
            b"SH1,52.1,-1.1,1\n"
            b"SH9,50.0,-1.0,1\xff\n"
            b"SH1,52.2,-1.2,2\n"
        )

        points = read_shape("SH1", shapes)

        assert [p.lat for p in points] == [52.1, 52.2]

    def test_unknown_shape(self, tmp_path: Path) -> None:
        shapes = tmp_path / "shapes.txt"
        shapes.write_text("shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n")

        assert read_shape("SH1", shapes) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_shape("SH1", tmp_path / "shapes.txt") == []
        with pytest.raises(FeedFileError):
            load_shape("SH1", tmp_path / "shapes.txt")

    def test_missing_column(self, tmp_path: Path) -> None:
        shapes = tmp_path / "shapes.txt"
        shapes.write_text("shape_id,shape_pt_lat,shape_pt_lon\nSH1,52.1,-1.1\n")

        assert read_shape("SH1", shapes) == []
        with pytest.raises(FeedSchemaError):
            load_shape("SH1", shapes)


class TestExtractSegment:
    """Tests for extract_segment."""

    def test_inclusive_slice_between_closest_points(self) -> None:
        segment = extract_segment(STRAIGHT_PATH, STRAIGHT_PATH[1], STRAIGHT_PATH[3])

        assert segment == STRAIGHT_PATH[1:4]

    def test_endpoints_in_reverse_order(self) -> None:
        segment = extract_segment(STRAIGHT_PATH, STRAIGHT_PATH[3], STRAIGHT_PATH[1])

        assert segment == STRAIGHT_PATH[1:4]

    def test_points_off_the_path_snap_to_nearest(self) -> None:
        near_first = Point(lat=52.4801, lon=-1.9005)
        near_last = Point(lat=52.5199, lon=-1.8995)

        segment = extract_segment(STRAIGHT_PATH, near_first, near_last)

        assert segment == STRAIGHT_PATH

    def test_same_point_gives_empty_segment(self) -> None:
        assert extract_segment(STRAIGHT_PATH, STRAIGHT_PATH[2], STRAIGHT_PATH[2]) == []

    def test_unresolvable_endpoint_returns_full_path(self) -> None:
        assert extract_segment(STRAIGHT_PATH, None, STRAIGHT_PATH[2]) == STRAIGHT_PATH

    def test_empty_path(self) -> None:
        assert extract_segment([], STRAIGHT_PATH[0], STRAIGHT_PATH[1]) == []

    def test_closest_point_index(self) -> None:
        assert closest_point_index(STRAIGHT_PATH, Point(lat=52.509, lon=-1.90)) == 3
        assert closest_point_index([], STRAIGHT_PATH[0]) == -1
        assert closest_point_index(STRAIGHT_PATH, None) == -1


class TestShapeForTrip:
    """Tests for shape_for_trip."""

    async def test_full_shape(self, sample_store: FeedStore) -> None:
        response = await shape_for_trip(sample_store, "T1")

        assert response.success
        assert response.outcome == OutcomeKind.SUCCEEDED
        assert response.shape_id == "SH1"
        assert response.count == 5
        assert response.points[0] == Point(lat=52.48, lon=-1.90)
        assert not response.is_segment

    async def test_trip_without_shape(self, sample_store: FeedStore) -> None:
        response = await shape_for_trip(sample_store, "T4")

        assert response.success
        assert response.outcome == OutcomeKind.NO_RESULTS
        assert response.points == []

    async def test_unknown_trip(self, sample_store: FeedStore) -> None:
        response = await shape_for_trip(sample_store, "NOPE")

        assert response.outcome == OutcomeKind.NO_RESULTS

    async def test_not_ready(self) -> None:
        response = await shape_for_trip(None, "T1")

        assert not response.success
        assert response.outcome == OutcomeKind.NOT_READY

    async def test_missing_shapes_file(self, sample_store: FeedStore) -> None:
        sample_store.shapes_path.unlink()

        response = await shape_for_trip(sample_store, "T1")

        assert not response.success
        assert response.outcome == OutcomeKind.FILE_MISSING

    async def test_cache_avoids_rereading(self, sample_store: FeedStore) -> None:
        cache: ShapeCache = ShapeCache(ttl=60, max_entries=4)
        first = await shape_for_trip(sample_store, "T1", cache)

        sample_store.shapes_path.unlink()
        second = await shape_for_trip(sample_store, "T2", cache)

        assert second.success
        assert second.points == first.points


class TestSegments:
    """Tests for segment_for_trip and segment_for_suggestion."""

    async def test_segment_between_stops(self, sample_store: FeedStore) -> None:
        response = await segment_for_trip(sample_store, "T1", "A", "B")

        assert response.success
        assert response.is_segment
        assert [p.lat for p in response.points] == [52.48, 52.49, 52.50]

    async def test_stop_without_coordinates_falls_back_to_full_path(
        self, sample_store: FeedStore
    ) -> None:
        response = await segment_for_trip(sample_store, "T1", "NOCOORD", "B")

        assert response.success
        assert not response.is_segment
        assert response.count == 5

    async def test_segment_for_suggestion(self, sample_store: FeedStore) -> None:
        suggestion = SuggestedRouteOption(
            route=Route(route_id="R1"),
            route_type_label="Bus",
            origin_stop=sample_store.stops_by_id["B"],
            destination_stop=Stop(
                stop_id="C", stop_name="Perry Barr", stop_lat="52.52", stop_lon="-1.88"
            ),
            trip_id="T1",
            fare=2.5,
        )

        response = await segment_for_suggestion(sample_store, suggestion)

        assert [p.lat for p in response.points] == [52.50, 52.51, 52.52]
