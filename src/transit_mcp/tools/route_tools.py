"""MCP tools for routes and their stops."""

from transit_mcp.app import mcp
from transit_mcp.models.responses import SearchRoutesResponse, StopSequenceResponse
from transit_mcp.services.feed_service import get_engine


@mcp.tool()
async def search_routes(query: str = "", limit: int = 50) -> SearchRoutesResponse:
    """Search transit routes by name.

    Matches the query case-insensitively against the route short name
    (e.g. "11A") and long name. Routes that look identical to riders
    (same names, agency and type) are listed once.

    Examples:
        search_routes(query="11")  # Routes with "11" in the number or name
        search_routes()  # List routes

    Args:
        query: Text to find in route names. Empty lists every route.
        limit: Maximum number of routes to return (default 50, max 500).

    Returns:
        SearchRoutesResponse with route id, names, and a type label such as "Bus".
    """
    if limit < 1:
        limit = 1
    elif limit > 500:
        limit = 500

    return await get_engine().search_routes(query=query, limit=limit)


@mcp.tool()
async def get_route_stops(route_id: str) -> StopSequenceResponse:
    """List the stops a route serves, in travel order.

    The order comes from one representative trip of the route, so branches
    and short-turn variants of the route are not shown.

    Args:
        route_id: Route ID from search_routes().

    Returns:
        StopSequenceResponse with the stops and the trip used.
    """
    return await get_engine().stop_sequence_for_route(route_id)
