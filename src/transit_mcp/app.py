"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` from here, not from server.py.
"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "GTFS Transit",
    instructions=(
        "Static GTFS transit feed - route search, stop sequences, "
        "direct trip suggestions between coordinates, and trip shapes"
    ),
)
