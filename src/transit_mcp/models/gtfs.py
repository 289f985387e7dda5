"""Models for GTFS entities held in the feed store."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

# GTFS route_type codes -> display label
ROUTE_TYPE_LABELS: dict[int, str] = {
    0: "Tram",
    1: "Subway/Metro",
    2: "Rail",
    3: "Bus",
    4: "Ferry",
    5: "Cable Car",
    6: "Gondola",
    7: "Funicular",
}

UNKNOWN_ROUTE_TYPE_LABEL = "Unknown"


def route_type_label(route_type: int | None) -> str:
    """Return the display label for a GTFS route_type code."""
    if route_type is None:
        return UNKNOWN_ROUTE_TYPE_LABEL
    return ROUTE_TYPE_LABELS.get(route_type, UNKNOWN_ROUTE_TYPE_LABEL)


class Point(BaseModel):
    """A WGS84 coordinate."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class Route(BaseModel):
    """GTFS route entity."""

    model_config = ConfigDict(frozen=True)

    route_id: str
    agency_id: str | None = None
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_type: int | None = None  # 0-7, see ROUTE_TYPE_LABELS

    @property
    def dedup_key(self) -> str:
        """Display identity used to collapse routes that look the same to riders."""
        route_type = "" if self.route_type is None else str(self.route_type)
        return "|".join(
            [
                self.route_short_name or "",
                self.route_long_name or "",
                self.agency_id or "",
                route_type,
            ]
        )


class Stop(BaseModel):
    """GTFS stop entity.

    Coordinates are kept as the raw feed text and parsed on use, so a stop with
    a broken coordinate still shows up in stop sequences.
    """

    model_config = ConfigDict(frozen=True)

    stop_id: str
    stop_code: str | None = None
    stop_name: str
    stop_desc: str | None = None
    stop_lat: str | None = None
    stop_lon: str | None = None
    location_type: str | None = None  # 0=stop, 1=station, 2=entrance
    parent_station: str | None = None

    @classmethod
    def placeholder(cls, stop_id: str) -> "Stop":
        """Stand-in for a stop id referenced by stop_times but missing from stops."""
        return cls(stop_id=stop_id, stop_name=f"Unknown Stop (ID: {stop_id})")

    def coordinates(self) -> Point | None:
        """Parse the raw coordinates, or None if absent or unparsable."""
        if self.stop_lat is None or self.stop_lon is None:
            return None
        try:
            return Point(lat=float(self.stop_lat), lon=float(self.stop_lon))
        except ValueError:
            return None


class Trip(BaseModel):
    """GTFS trip entity."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: str
    service_id: str
    trip_headsign: str | None = None
    direction_id: int | None = None
    shape_id: str | None = None


class CalendarItem(BaseModel):
    """GTFS calendar entity for weekly service patterns."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool
    start_date: str  # YYYYMMDD
    end_date: str  # YYYYMMDD

    def runs_on_weekday(self, weekday: int) -> bool:
        """Weekday flag, 0=Monday .. 6=Sunday."""
        flags = (
            self.monday,
            self.tuesday,
            self.wednesday,
            self.thursday,
            self.friday,
            self.saturday,
            self.sunday,
        )
        return flags[weekday]


class CalendarException(BaseModel):
    """GTFS calendar_dates entity for service exceptions."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    date: str  # YYYYMMDD
    exception_type: int  # 1=added, 2=removed


# stop_times and shapes are the two largest tables in a feed, so their rows are
# plain dataclasses rather than validated models.


@dataclass(frozen=True)
class StopTime:
    """GTFS stop_times entity."""

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_time: str | None = None  # HH:MM:SS (can exceed 24:00:00)
    departure_time: str | None = None
    stop_headsign: str | None = None

    @property
    def boarding_time(self) -> str | None:
        """Departure time, falling back to arrival time."""
        return self.departure_time or self.arrival_time

    @property
    def alighting_time(self) -> str | None:
        """Arrival time, falling back to departure time."""
        return self.arrival_time or self.departure_time


@dataclass(frozen=True)
class ShapePoint:
    """GTFS shapes entity. Read on demand and never kept in the store."""

    shape_id: str
    lat: float
    lon: float
    sequence: int
    dist_traveled: float | None = None

    def to_point(self) -> Point:
        return Point(lat=self.lat, lon=self.lon)
