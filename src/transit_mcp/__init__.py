"""GTFS feed engine and MCP server for direct transit trip suggestions."""

__version__ = "0.1.0"
