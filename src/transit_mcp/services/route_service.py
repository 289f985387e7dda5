"""Route search and stop sequences."""

from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Route, route_type_label
from transit_mcp.models.responses import (
    OutcomeKind,
    RouteResult,
    SearchRoutesResponse,
    StopSequenceResponse,
)

NOT_LOADED_MESSAGE = "No GTFS feed is loaded. Call load_feed first."


def _route_to_result(route: Route) -> RouteResult:
    return RouteResult(
        route_id=route.route_id,
        agency_id=route.agency_id,
        route_short_name=route.route_short_name,
        route_long_name=route.route_long_name,
        route_type=route.route_type,
        route_type_label=route_type_label(route.route_type),
    )


def route_matches(route: Route, query: str) -> bool:
    """Case-insensitive substring match on short or long name."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(
        needle in name.lower()
        for name in (route.route_short_name, route.route_long_name)
        if name
    )


def search_routes(
    store: FeedStore | None, query: str = "", limit: int | None = None
) -> SearchRoutesResponse:
    """Search de-duplicated routes by name.

    Args:
        store: Current feed snapshot.
        query: Text to find in the short or long name. Empty returns every route.
        limit: Maximum number of routes to return.

    Returns:
        SearchRoutesResponse with routes in feed order.
    """
    if store is None or not store.routes:
        return SearchRoutesResponse(
            success=False, outcome=OutcomeKind.NOT_READY, message=NOT_LOADED_MESSAGE
        )

    routes = [_route_to_result(r) for r in store.routes if route_matches(r, query)]
    if limit is not None:
        routes = routes[:limit]

    if not routes:
        return SearchRoutesResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message=f"No routes match '{query}'",
        )

    return SearchRoutesResponse(
        success=True, outcome=OutcomeKind.SUCCEEDED, routes=routes, count=len(routes)
    )


def stop_sequence_for_route(store: FeedStore | None, route_id: str) -> StopSequenceResponse:
    """List the stops a route visits, in order, using its first trip.

    Any route id collapsed into the same de-duplicated route is accepted, and
    trips of every collapsed id are considered. Stop ids missing from stops.txt
    come back as placeholder stops.

    Args:
        store: Current feed snapshot.
        route_id: Route to look up.

    Returns:
        StopSequenceResponse with the stops of the representative trip.
    """
    if store is None or not (store.trips and store.stop_times_by_trip and store.stops_by_id):
        return StopSequenceResponse(
            success=False,
            outcome=OutcomeKind.NOT_READY,
            message="Required schedule data not fully loaded to get stop sequence.",
            route_id=route_id,
        )

    canonical_id = store.route_aliases.get(route_id, route_id)
    trip = next(
        (
            t
            for t in store.trips
            if store.route_aliases.get(t.route_id, t.route_id) == canonical_id
        ),
        None,
    )
    if trip is None:
        return StopSequenceResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message=f"No trip data found for this route ID: {route_id}.",
            route_id=route_id,
        )

    stop_times = store.stop_times_by_trip.get(trip.trip_id)
    if not stop_times:
        return StopSequenceResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message=f"No stop schedule found for a representative trip of route ID: {route_id}.",
            route_id=route_id,
            trip_id=trip.trip_id,
        )

    stops = [store.stop_or_placeholder(st.stop_id) for st in stop_times]
    return StopSequenceResponse(
        success=True,
        outcome=OutcomeKind.SUCCEEDED,
        route_id=route_id,
        trip_id=trip.trip_id,
        stops=stops,
        count=len(stops),
    )
