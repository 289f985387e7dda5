"""MCP tools for direct trip suggestions and trip shapes."""

from transit_mcp.app import mcp
from transit_mcp.models.gtfs import Point
from transit_mcp.models.responses import ShapeResponse, SuggestRoutesResponse
from transit_mcp.services.feed_service import get_engine


@mcp.tool()
async def suggest_direct_routes(
    origin_lat: float,
    origin_lon: float,
    destination_lat: float,
    destination_lon: float,
    limit: int = 10,
) -> SuggestRoutesResponse:
    """Suggest direct transit trips between two locations, leaving from now.

    Finds stops within walking distance (1 km by default) of each location and
    every trip running today that calls at one near the origin and later at
    one near the destination. No transfers are considered. For each route and
    stop pair only the earliest departure is shown.

    Examples:
        suggest_direct_routes(52.48, -1.90, 52.50, -1.89)

    Args:
        origin_lat: Latitude of the starting point.
        origin_lon: Longitude of the starting point.
        destination_lat: Latitude of the destination.
        destination_lon: Longitude of the destination.
        limit: Maximum number of options to return (default 10, max 50).

    Returns:
        SuggestRoutesResponse containing:
        - options: Route, boarding and alighting stops, trip_id, times, placeholder fare
        - message: Why the list is empty, when it is
        - service_date / query_time: The date and time the search used
    """
    if limit < 1:
        limit = 1
    elif limit > 50:
        limit = 50

    response = await get_engine().suggest_direct_routes(
        Point(lat=origin_lat, lon=origin_lon),
        Point(lat=destination_lat, lon=destination_lon),
    )
    options = response.options[:limit]
    return response.model_copy(update={"options": options, "count": len(options)})


@mcp.tool()
async def get_trip_shape(trip_id: str) -> ShapeResponse:
    """Get the full geographic path of a trip.

    Args:
        trip_id: Trip ID, e.g. from suggest_direct_routes().

    Returns:
        ShapeResponse with the path as ordered lat/lon points.
    """
    return await get_engine().shape_for_trip(trip_id)


@mcp.tool()
async def get_trip_segment(
    trip_id: str,
    origin_stop_id: str,
    destination_stop_id: str,
) -> ShapeResponse:
    """Get the part of a trip's path between two of its stops.

    Use the trip_id and stop IDs of a suggest_direct_routes() option to draw
    just the ride. Falls back to the full path if a stop has no location.

    Args:
        trip_id: Trip ID.
        origin_stop_id: Boarding stop ID.
        destination_stop_id: Alighting stop ID.

    Returns:
        ShapeResponse with is_segment=True when the path was cut.
    """
    return await get_engine().segment_for_trip(trip_id, origin_stop_id, destination_stop_id)
