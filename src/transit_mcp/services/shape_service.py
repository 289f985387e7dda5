"""Trip shapes and the part of a shape between two stops."""

import asyncio
import logging

from transit_mcp.data.cache import ShapeCache
from transit_mcp.data.feed_reader import FeedTableError
from transit_mcp.data.shape_reader import load_shape
from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Point, Stop
from transit_mcp.models.responses import OutcomeKind, ShapeResponse, SuggestedRouteOption
from transit_mcp.services.stop_service import point_distance

logger = logging.getLogger(__name__)

ShapeKey = tuple[str, str]


def closest_point_index(path: list[Point], point: Point | None) -> int:
    """Index of the path point nearest to ``point``, or -1 if there is none."""
    if point is None or not path:
        return -1
    return min(range(len(path)), key=lambda i: point_distance(path[i], point))


def extract_segment(
    full_path: list[Point], from_point: Point | None, to_point: Point | None
) -> list[Point]:
    """Cut the part of a path between the points closest to two locations.

    The result runs in path order whichever endpoint comes first. When either
    endpoint cannot be placed on the path the full path is returned. When both
    map to the same path point the segment is empty.

    Args:
        full_path: Ordered shape points.
        from_point: Boarding location.
        to_point: Alighting location.

    Returns:
        Inclusive slice of ``full_path``.
    """
    from_index = closest_point_index(full_path, from_point)
    to_index = closest_point_index(full_path, to_point)
    if from_index == -1 or to_index == -1:
        return list(full_path)

    start = min(from_index, to_index)
    end = max(from_index, to_index)
    if start == end:
        return []
    return full_path[start : end + 1]


async def get_shape_points(
    store: FeedStore, shape_id: str, cache: ShapeCache[ShapeKey, list[Point]] | None = None
) -> list[Point]:
    """Read a shape from the snapshot's shapes.txt, through the cache if given.

    Raises:
        FeedTableError: If shapes.txt is missing or unusable.
    """
    key = (str(store.shapes_path), shape_id)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    points = await asyncio.to_thread(load_shape, shape_id, store.shapes_path)

    if cache is not None and points:
        cache.set(key, points)
    return points


async def shape_for_trip(
    store: FeedStore | None,
    trip_id: str,
    cache: ShapeCache[ShapeKey, list[Point]] | None = None,
) -> ShapeResponse:
    """Get the full shape a trip follows.

    Args:
        store: Current feed snapshot.
        trip_id: Trip whose shape_id is looked up.
        cache: Optional cache of parsed shapes.

    Returns:
        ShapeResponse with the ordered points.
    """
    if store is None or not store.trips:
        return ShapeResponse(
            success=False,
            outcome=OutcomeKind.NOT_READY,
            message="Trip data not available to find shape.",
            trip_id=trip_id,
        )

    trip = store.trip(trip_id)
    if trip is None or trip.shape_id is None:
        logger.warning(f"Trip {trip_id} has no shape_id or trip itself not found")
        return ShapeResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message=f"Trip {trip_id} has no shape or was not found.",
            trip_id=trip_id,
        )

    try:
        points = await get_shape_points(store, trip.shape_id, cache)
    except FeedTableError as e:
        logger.error(f"Cannot load shape for trip {trip_id}: {e}")
        return ShapeResponse(
            success=False,
            outcome=e.kind,
            message=str(e),
            trip_id=trip_id,
            shape_id=trip.shape_id,
        )

    if not points:
        return ShapeResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message=f"No points found for shape {trip.shape_id}.",
            trip_id=trip_id,
            shape_id=trip.shape_id,
        )

    return ShapeResponse(
        success=True,
        outcome=OutcomeKind.SUCCEEDED,
        trip_id=trip_id,
        shape_id=trip.shape_id,
        points=points,
        count=len(points),
    )


async def _segment_between(
    store: FeedStore | None,
    trip_id: str,
    origin: Stop,
    destination: Stop,
    cache: ShapeCache[ShapeKey, list[Point]] | None,
) -> ShapeResponse:
    full = await shape_for_trip(store, trip_id, cache)
    if full.outcome != OutcomeKind.SUCCEEDED:
        return full

    origin_point = origin.coordinates()
    destination_point = destination.coordinates()
    if origin_point is None or destination_point is None:
        logger.warning(
            f"Stop location missing for {origin.stop_id} or {destination.stop_id}, "
            "returning full shape"
        )
        return full.model_copy(
            update={"message": "Stop location data missing for path segment, showing full path."}
        )

    segment = extract_segment(full.points, origin_point, destination_point)
    if not segment:
        return ShapeResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message="Origin and destination map to the same point on the shape.",
            trip_id=trip_id,
            shape_id=full.shape_id,
            is_segment=True,
        )

    return ShapeResponse(
        success=True,
        outcome=OutcomeKind.SUCCEEDED,
        trip_id=trip_id,
        shape_id=full.shape_id,
        points=segment,
        count=len(segment),
        is_segment=True,
    )


async def segment_for_trip(
    store: FeedStore | None,
    trip_id: str,
    origin_stop_id: str,
    destination_stop_id: str,
    cache: ShapeCache[ShapeKey, list[Point]] | None = None,
) -> ShapeResponse:
    """Get the part of a trip's shape between two of its stops.

    Falls back to the full shape when either stop has no usable coordinates.
    """
    if store is None:
        return await shape_for_trip(store, trip_id, cache)
    return await _segment_between(
        store,
        trip_id,
        store.stop_or_placeholder(origin_stop_id),
        store.stop_or_placeholder(destination_stop_id),
        cache,
    )


async def segment_for_suggestion(
    store: FeedStore | None,
    suggestion: SuggestedRouteOption,
    cache: ShapeCache[ShapeKey, list[Point]] | None = None,
) -> ShapeResponse:
    """Get the path a suggested option rides, from boarding to alighting stop."""
    if suggestion.trip_id is None:
        return ShapeResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message="Suggestion has no trip to draw.",
            trip_id="",
        )
    return await _segment_between(
        store, suggestion.trip_id, suggestion.origin_stop, suggestion.destination_stop, cache
    )
