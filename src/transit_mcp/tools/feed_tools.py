"""MCP tools for loading the feed and inspecting its state."""

from transit_mcp.app import mcp
from transit_mcp.models.responses import FeedStatusResponse, LoadFeedResponse
from transit_mcp.services.feed_service import get_engine


@mcp.tool()
async def load_feed(force_refresh: bool = False) -> LoadFeedResponse:
    """Load the static GTFS feed from the configured directory.

    Parses routes, trips, stops, calendar, calendar_dates and stop_times into
    memory. Other tools need a loaded feed; call this first. If a feed is
    already loaded it is reused unless force_refresh is set. A failed refresh
    keeps the previously loaded feed in service.

    Examples:
        load_feed()  # Load once
        load_feed(force_refresh=True)  # Re-read the files after they changed

    Args:
        force_refresh: Rebuild from disk even if a feed is already loaded.
                       Cancels any load already running.

    Returns:
        LoadFeedResponse containing:
        - outcome: succeeded, file_missing, malformed_schema or out_of_memory
        - tables: Per-table rows loaded and rows skipped
        - built_at: When the live snapshot was built
    """
    return await get_engine().load_feed(force_refresh=force_refresh)


@mcp.tool()
async def feed_status() -> FeedStatusResponse:
    """Report whether a feed is loaded, loading, and ready for suggestions.

    Returns:
        FeedStatusResponse with entity counts per table and the build time.
    """
    return get_engine().status()
