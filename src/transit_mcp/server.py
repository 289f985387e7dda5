import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from transit_mcp.app import mcp
from transit_mcp.data.config import get_feed_config
from transit_mcp.data.store_builder import build_store
from transit_mcp.models.responses import OutcomeKind

# Registers the tools on `mcp`
from transit_mcp.tools import feed_tools, route_tools, trip_tools  # noqa: F401


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the transit MCP server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from transit_mcp import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


async def run_load(feed_dir: Path) -> bool:
    """Parse a feed directory and print per-table counts."""
    result = await build_store(feed_dir)

    print(f"\nLoad finished: {result.outcome.value}")
    for status in result.tables:
        line = f"  {status.filename}: {status.rows_loaded:,} rows"
        if status.rows_skipped:
            line += f" ({status.rows_skipped:,} skipped)"
        if status.outcome != OutcomeKind.SUCCEEDED:
            line += f" [{status.outcome.value}]"
        print(line)

    if result.store is None:
        print(f"\nError: {result.message}")
        return False

    print(f"\nReady for suggestions: {'yes' if result.store.is_ready else 'no'}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="transit-mcp",
        description="GTFS Transit MCP Server",
    )
    subparsers = parser.add_subparsers(dest="command")

    # load command
    load_parser = subparsers.add_parser(
        "load",
        help="Parse a GTFS feed directory and report table counts",
    )
    load_parser.add_argument(
        "feed_dir",
        type=Path,
        nargs="?",
        default=None,
        help="Path to the GTFS directory (default: GTFS_FEED_DIR or data/gtfs)",
    )
    load_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.command == "load":
        log_level = logging.DEBUG if args.verbose else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        feed_dir = args.feed_dir or get_feed_config().feed_dir
        if not asyncio.run(run_load(feed_dir)):
            sys.exit(1)
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
