"""Immutable in-memory snapshot of a parsed GTFS feed."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from transit_mcp.models.gtfs import (
    CalendarException,
    CalendarItem,
    Route,
    Stop,
    StopTime,
    Trip,
)

SHAPES_FILENAME = "shapes.txt"


@dataclass(frozen=True)
class FeedStore:
    """One fully built feed snapshot.

    A snapshot is built off to the side by the store builder and then published
    by a single reference assignment; nothing mutates it afterwards, so queries
    read it without locking.
    """

    feed_dir: Path
    routes: tuple[Route, ...] = ()
    # every route_id seen in routes.txt -> route_id of its de-duplicated Route
    route_aliases: dict[str, str] = field(default_factory=dict)
    trips: tuple[Trip, ...] = ()
    stops_by_id: dict[str, Stop] = field(default_factory=dict)
    stop_times_by_trip: dict[str, tuple[StopTime, ...]] = field(default_factory=dict)
    calendars_by_service: dict[str, CalendarItem] = field(default_factory=dict)
    exceptions_by_service: dict[str, tuple[CalendarException, ...]] = field(default_factory=dict)
    built_at: datetime = field(default_factory=datetime.now, compare=False)
    routes_by_id: dict[str, Route] = field(init=False, repr=False, compare=False)
    trips_by_id: dict[str, Trip] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "routes_by_id", {r.route_id: r for r in self.routes})
        object.__setattr__(self, "trips_by_id", {t.trip_id: t for t in self.trips})

    @property
    def shapes_path(self) -> Path:
        return self.feed_dir / SHAPES_FILENAME

    @property
    def is_ready(self) -> bool:
        """True when every collection the suggestion engine relies on is populated."""
        return bool(
            self.routes
            and self.trips
            and self.stops_by_id
            and self.stop_times_by_trip
            and self.calendars_by_service
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.routes
            or self.trips
            or self.stops_by_id
            or self.stop_times_by_trip
            or self.calendars_by_service
        )

    def route_for(self, route_id: str) -> Route | None:
        """Resolve a route id (canonical or collapsed alias) to its Route."""
        canonical = self.route_aliases.get(route_id, route_id)
        return self.routes_by_id.get(canonical)

    def trip(self, trip_id: str) -> Trip | None:
        return self.trips_by_id.get(trip_id)

    def stop_or_placeholder(self, stop_id: str) -> Stop:
        return self.stops_by_id.get(stop_id) or Stop.placeholder(stop_id)

    def counts(self) -> dict[str, int]:
        """Entity counts per collection."""
        return {
            "routes": len(self.routes),
            "trips": len(self.trips),
            "stops": len(self.stops_by_id),
            "stop_times": sum(len(v) for v in self.stop_times_by_trip.values()),
            "calendar": len(self.calendars_by_service),
            "calendar_dates": sum(len(v) for v in self.exceptions_by_service.values()),
        }
