"""Builds an in-memory FeedStore from a directory of GTFS tables."""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from operator import attrgetter
from pathlib import Path
from typing import Any

from transit_mcp.data.feed_reader import FeedRow, FeedTableError, open_table
from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import (
    CalendarException,
    CalendarItem,
    Route,
    Stop,
    StopTime,
    Trip,
)
from transit_mcp.models.responses import OutcomeKind, TableStatus

logger = logging.getLogger(__name__)

WEEKDAY_COLUMNS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True)
class TableDefinition:
    filename: str
    required_columns: tuple[str, ...]
    optional: bool = False  # file may be absent from the feed
    log_skipped_rows: bool = True  # False for the high-volume tables


# shapes.txt is read on demand per request, never during a build.
TABLE_DEFINITIONS: dict[str, TableDefinition] = {
    "routes": TableDefinition("routes.txt", ("route_id",)),
    "trips": TableDefinition("trips.txt", ("trip_id", "route_id", "service_id")),
    "stops": TableDefinition("stops.txt", ("stop_id",)),
    "calendar": TableDefinition(
        "calendar.txt", ("service_id", *WEEKDAY_COLUMNS, "start_date", "end_date")
    ),
    "calendar_dates": TableDefinition(
        "calendar_dates.txt", ("service_id", "date", "exception_type"), optional=True
    ),
    "stop_times": TableDefinition(
        "stop_times.txt", ("trip_id", "stop_id", "stop_sequence"), log_skipped_rows=False
    ),
}

REQUIRED_TABLES = ("routes", "trips", "stops", "calendar", "stop_times")

# Rows read between cooperative yields to the event loop
YIELD_EVERY_ROWS = 10000

# Malformed rows logged individually per low-volume table before going quiet
MAX_LOGGED_SKIPS = 5

ProgressCallback = Callable[[str, int], None]


def _required(row: FeedRow, column: str) -> str:
    value = row.get(column)
    if value is None:
        raise ValueError(f"missing {column}")
    return value


def _optional_int(row: FeedRow, column: str) -> int | None:
    value = row.get(column)
    if value is None:
        return None
    return int(value)


def _flag(row: FeedRow, column: str) -> bool:
    value = int(_required(row, column))
    if value not in (0, 1):
        raise ValueError(f"{column} must be 0 or 1, got {value}")
    return value == 1


def parse_route(row: FeedRow) -> Route:
    return Route(
        route_id=_required(row, "route_id"),
        agency_id=row.get("agency_id"),
        route_short_name=row.get("route_short_name"),
        route_long_name=row.get("route_long_name"),
        route_type=_optional_int(row, "route_type"),
    )


def parse_trip(row: FeedRow) -> Trip:
    return Trip(
        trip_id=_required(row, "trip_id"),
        route_id=_required(row, "route_id"),
        service_id=_required(row, "service_id"),
        trip_headsign=row.get("trip_headsign"),
        direction_id=_optional_int(row, "direction_id"),
        shape_id=row.get("shape_id"),
    )


def parse_stop(row: FeedRow) -> Stop:
    stop_id = _required(row, "stop_id")
    return Stop(
        stop_id=stop_id,
        stop_code=row.get("stop_code"),
        stop_name=row.get("stop_name") or f"Unnamed Stop (ID: {stop_id})",
        stop_desc=row.get("stop_desc"),
        stop_lat=row.get("stop_lat"),
        stop_lon=row.get("stop_lon"),
        location_type=row.get("location_type"),
        parent_station=row.get("parent_station"),
    )


def parse_calendar(row: FeedRow) -> CalendarItem:
    return CalendarItem(
        service_id=_required(row, "service_id"),
        **{day: _flag(row, day) for day in WEEKDAY_COLUMNS},
        start_date=_required(row, "start_date"),
        end_date=_required(row, "end_date"),
    )


def parse_calendar_exception(row: FeedRow) -> CalendarException:
    return CalendarException(
        service_id=_required(row, "service_id"),
        date=_required(row, "date"),
        exception_type=int(_required(row, "exception_type")),
    )


def parse_stop_time(row: FeedRow) -> StopTime:
    return StopTime(
        trip_id=_required(row, "trip_id"),
        stop_id=_required(row, "stop_id"),
        stop_sequence=int(_required(row, "stop_sequence")),
        arrival_time=row.get("arrival_time"),
        departure_time=row.get("departure_time"),
        stop_headsign=row.get("stop_headsign"),
    )


def deduplicate_routes(routes: list[Route]) -> tuple[list[Route], dict[str, str]]:
    """Collapse routes that share short name, long name, agency and type.

    The first route_id seen for a display identity is kept. Returns the
    surviving routes in feed order and a map from every route_id to the
    route_id that now represents it.
    """
    canonical_by_key: dict[str, Route] = {}
    aliases: dict[str, str] = {}
    for route in routes:
        if route.route_id in aliases:
            logger.warning(f"Duplicate route_id {route.route_id} in routes.txt, keeping the first")
            continue
        kept = canonical_by_key.setdefault(route.dedup_key, route)
        aliases[route.route_id] = kept.route_id
    return list(canonical_by_key.values()), aliases


@dataclass
class BuildResult:
    """Outcome of one feed build. ``store`` is set only when the build succeeded."""

    outcome: OutcomeKind
    store: FeedStore | None = None
    tables: list[TableStatus] = field(default_factory=list)
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.store is not None


class StoreBuilder:
    """Reads the GTFS tables of one feed directory into a new FeedStore."""

    def __init__(self, feed_dir: Path, progress: ProgressCallback | None = None):
        """Initialize the builder.

        Args:
            feed_dir: Directory holding the decompressed GTFS .txt tables.
            progress: Optional callback invoked with (table_name, rows_loaded)
                      after each table.
        """
        self.feed_dir = Path(feed_dir)
        self._progress = progress

    async def build(self) -> BuildResult:
        """Parse every table except shapes and assemble a snapshot.

        Table-level failures do not stop the remaining tables from being read,
        but any failure of a required table fails the build. The caller's
        current snapshot is never touched here.

        Returns:
            BuildResult with the new store on success.
        """
        if not self.feed_dir.is_dir():
            message = f"GTFS feed directory not found: {self.feed_dir}"
            logger.error(message)
            return BuildResult(outcome=OutcomeKind.FILE_MISSING, message=message)

        statuses: dict[str, TableStatus] = {}

        routes: list[Route] = []
        trips: list[Trip] = []
        stops_by_id: dict[str, Stop] = {}
        calendars: dict[str, CalendarItem] = {}
        exceptions: dict[str, list[CalendarException]] = defaultdict(list)
        stop_times: dict[str, list[StopTime]] = defaultdict(list)

        def add_stop(stop: Stop) -> None:
            stops_by_id[stop.stop_id] = stop

        def add_calendar(item: CalendarItem) -> None:
            calendars.setdefault(item.service_id, item)

        def add_exception(item: CalendarException) -> None:
            exceptions[item.service_id].append(item)

        def add_stop_time(item: StopTime) -> None:
            stop_times[item.trip_id].append(item)

        statuses["routes"] = await self._load_table("routes", parse_route, routes.append)
        statuses["trips"] = await self._load_table("trips", parse_trip, trips.append)
        statuses["stops"] = await self._load_table("stops", parse_stop, add_stop)
        statuses["calendar"] = await self._load_table("calendar", parse_calendar, add_calendar)
        statuses["calendar_dates"] = await self._load_table(
            "calendar_dates", parse_calendar_exception, add_exception
        )

        try:
            statuses["stop_times"] = await self._load_table(
                "stop_times", parse_stop_time, add_stop_time
            )
        except MemoryError:
            stop_times.clear()
            message = "Out of memory processing schedule data (stop_times.txt)."
            logger.error(message)
            statuses["stop_times"] = TableStatus(
                table="stop_times",
                filename=TABLE_DEFINITIONS["stop_times"].filename,
                outcome=OutcomeKind.OUT_OF_MEMORY,
                message=message,
            )
            return BuildResult(
                outcome=OutcomeKind.OUT_OF_MEMORY,
                tables=list(statuses.values()),
                message=message,
            )

        failed = [
            statuses[name]
            for name in REQUIRED_TABLES
            if statuses[name].outcome != OutcomeKind.SUCCEEDED
        ]
        if failed:
            names = ", ".join(status.filename for status in failed)
            return BuildResult(
                outcome=failed[0].outcome,
                tables=list(statuses.values()),
                message=f"Required GTFS tables could not be loaded: {names}",
            )

        unique_routes, route_aliases = deduplicate_routes(routes)
        if len(unique_routes) != len(routes):
            logger.info(f"  Collapsed {len(routes):,} routes into {len(unique_routes):,}")

        store = FeedStore(
            feed_dir=self.feed_dir,
            routes=tuple(unique_routes),
            route_aliases=route_aliases,
            trips=tuple(trips),
            stops_by_id=stops_by_id,
            stop_times_by_trip={
                trip_id: tuple(sorted(items, key=attrgetter("stop_sequence")))
                for trip_id, items in stop_times.items()
            },
            calendars_by_service=calendars,
            exceptions_by_service={k: tuple(v) for k, v in exceptions.items()},
        )

        if store.is_empty:
            return BuildResult(
                outcome=OutcomeKind.MALFORMED_SCHEMA,
                tables=list(statuses.values()),
                message="GTFS feed contains no usable rows",
            )

        counts = store.counts()
        logger.info(
            "Feed build complete: "
            + ", ".join(f"{name}={count:,}" for name, count in counts.items())
        )
        return BuildResult(
            outcome=OutcomeKind.SUCCEEDED,
            store=store,
            tables=list(statuses.values()),
        )

    async def _load_table(
        self,
        table_name: str,
        parse: Callable[[FeedRow], Any],
        collect: Callable[[Any], None],
    ) -> TableStatus:
        """Stream one table through ``parse`` into ``collect``.

        MemoryError is left to propagate so the caller can discard partial data.
        """
        definition = TABLE_DEFINITIONS[table_name]
        path = self.feed_dir / definition.filename

        if definition.optional and not path.exists():
            logger.info(f"Optional file {definition.filename} not found")
            return TableStatus(
                table=table_name,
                filename=definition.filename,
                outcome=OutcomeKind.SUCCEEDED,
                message="optional file not present",
            )

        logger.info(f"Loading {table_name} from {definition.filename}...")

        loaded = 0
        skipped = 0
        try:
            with open_table(path, definition.required_columns) as reader:
                for count, row in enumerate(reader, start=1):
                    try:
                        collect(parse(row))
                        loaded += 1
                    except ValueError as e:
                        skipped += 1
                        if definition.log_skipped_rows and skipped <= MAX_LOGGED_SKIPS:
                            logger.warning(
                                f"Skipping malformed line in {definition.filename}: {e} ({row})"
                            )
                    if count % YIELD_EVERY_ROWS == 0:
                        await asyncio.sleep(0)
                skipped += reader.skipped_rows
        except FeedTableError as e:
            logger.error(f"Failed to load {table_name}: {e}")
            return TableStatus(
                table=table_name,
                filename=definition.filename,
                outcome=e.kind,
                rows_loaded=0,
                message=str(e),
            )

        logger.info(
            f"  Loaded {loaded:,} rows from {definition.filename}"
            + (f" (skipped {skipped:,} invalid)" if skipped else "")
        )
        if self._progress is not None:
            self._progress(table_name, loaded)

        await asyncio.sleep(0)
        return TableStatus(
            table=table_name,
            filename=definition.filename,
            outcome=OutcomeKind.SUCCEEDED,
            rows_loaded=loaded,
            rows_skipped=skipped,
        )


async def build_store(feed_dir: Path, progress: ProgressCallback | None = None) -> BuildResult:
    """Build a FeedStore from a GTFS directory.

    Args:
        feed_dir: Directory holding the decompressed GTFS .txt tables.
        progress: Optional per-table progress callback.

    Returns:
        BuildResult; ``result.store`` is None when the build failed.
    """
    return await StoreBuilder(feed_dir, progress).build()
