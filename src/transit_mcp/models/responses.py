from enum import Enum

from pydantic import BaseModel, Field

from transit_mcp.models.gtfs import Point, Route, Stop


class OutcomeKind(str, Enum):
    """Closed set of outcomes a caller can render without inspecting causes."""

    SUCCEEDED = "succeeded"
    FILE_MISSING = "file_missing"
    MALFORMED_SCHEMA = "malformed_schema"
    OUT_OF_MEMORY = "out_of_memory"
    NOT_READY = "not_ready"
    NO_RESULTS = "no_results"


class TableStatus(BaseModel):
    """Result of reading one GTFS table during a feed build."""

    table: str
    filename: str
    outcome: OutcomeKind
    rows_loaded: int = 0
    rows_skipped: int = Field(default=0, description="Malformed rows that were skipped")
    message: str | None = None


class LoadFeedResponse(BaseModel):
    """Response for load_feed."""

    success: bool
    outcome: OutcomeKind
    message: str | None = None
    tables: list[TableStatus] = Field(default_factory=list)
    built_at: str | None = Field(default=None, description="ISO timestamp of the live snapshot")


class FeedStatusResponse(BaseModel):
    """Current state of the feed engine."""

    loaded: bool
    loading: bool
    ready: bool = Field(description="All collections needed for suggestions are populated")
    feed_dir: str
    built_at: str | None = None
    counts: dict[str, int] = Field(default_factory=dict)


class RouteResult(BaseModel):
    route_id: str
    agency_id: str | None = None
    route_short_name: str | None = Field(default=None, description="Route number or line name")
    route_long_name: str | None = None
    route_type: int | None = Field(default=None, description="GTFS route_type code (0-7)")
    route_type_label: str = Field(description="e.g. 'Bus', 'Tram'")


class SearchRoutesResponse(BaseModel):
    success: bool
    outcome: OutcomeKind
    message: str | None = None
    routes: list[RouteResult] = Field(default_factory=list)
    count: int = Field(default=0, description="Number of routes returned")


class StopSequenceResponse(BaseModel):
    success: bool
    outcome: OutcomeKind
    message: str | None = None
    route_id: str
    trip_id: str | None = Field(default=None, description="Representative trip used")
    stops: list[Stop] = Field(default_factory=list)
    count: int = 0


class SuggestedRouteOption(BaseModel):
    """A direct trip from a stop near the origin to a stop near the destination."""

    route: Route
    route_type_label: str
    origin_stop: Stop
    destination_stop: Stop
    trip_id: str | None = None
    trip_headsign: str | None = None
    origin_departure_time: str | None = Field(
        default=None, description="Departure at origin stop, HH:MM:SS"
    )
    origin_departure_formatted: str | None = None
    destination_arrival_time: str | None = Field(
        default=None, description="Arrival at destination stop, HH:MM:SS"
    )
    destination_arrival_formatted: str | None = None
    fare: float = Field(description="Placeholder fare, not a real fare calculation")

    @property
    def key(self) -> str:
        """Identity of the option: route, origin stop, destination stop."""
        return f"{self.route.route_id}-{self.origin_stop.stop_id}-{self.destination_stop.stop_id}"


class SuggestRoutesResponse(BaseModel):
    success: bool
    outcome: OutcomeKind
    message: str | None = None
    options: list[SuggestedRouteOption] = Field(default_factory=list)
    count: int = 0
    service_date: str | None = Field(default=None, description="Service date YYYY-MM-DD")
    query_time: str | None = Field(default=None, description="Query time HH:MM:SS")
    origin_stop_count: int = Field(default=0, description="Stops found near the origin")
    destination_stop_count: int = Field(default=0, description="Stops found near the destination")


class ShapeResponse(BaseModel):
    success: bool
    outcome: OutcomeKind
    message: str | None = None
    trip_id: str
    shape_id: str | None = None
    points: list[Point] = Field(default_factory=list)
    count: int = 0
    is_segment: bool = Field(
        default=False, description="True when points are the part between two stops"
    )
