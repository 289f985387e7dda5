"""Direct-trip suggestions between two coordinates."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Point, Route, StopTime, Trip, route_type_label
from transit_mcp.models.responses import (
    OutcomeKind,
    SuggestedRouteOption,
    SuggestRoutesResponse,
)
from transit_mcp.services.calendar_service import (
    active_service_ids,
    format_gtfs_time,
    safe_gtfs_time_to_seconds,
    time_to_gtfs_format,
)
from transit_mcp.services.stop_service import NEARBY_STOP_RADIUS_METERS, find_stops_near

logger = logging.getLogger(__name__)

# Trips scanned between cooperative yields to the event loop
TRIP_YIELD_INTERVAL = 256

DEFAULT_PLACEHOLDER_FARE = 2.50

NOT_READY_MESSAGE = "Core schedule data not fully loaded to suggest routes."
NO_ROUTES_MESSAGE = "No direct upcoming routes found between the selected locations."


@dataclass
class DirectLeg:
    """Boarding and alighting stop times found on one trip."""

    trip: Trip
    route: Route
    boarding: StopTime
    alighting: StopTime

    @property
    def key(self) -> str:
        return f"{self.route.route_id}-{self.boarding.stop_id}-{self.alighting.stop_id}"

    @property
    def departure_seconds(self) -> int | None:
        return safe_gtfs_time_to_seconds(self.boarding.boarding_time)


def _no_stops_message(has_origin: bool, has_destination: bool) -> str:
    if not has_origin and not has_destination:
        return "No stops found near origin or destination."
    if not has_origin:
        return "No stops found near your origin."
    return "No stops found near your destination."


def find_direct_leg(
    stop_times: tuple[StopTime, ...],
    origin_stop_ids: set[str],
    destination_stop_ids: set[str],
    after_seconds: int,
) -> tuple[StopTime, StopTime] | None:
    """Find where a trip can be boarded near the origin and left near the destination.

    The boarding stop is the first one near the origin whose departure (or
    arrival, if no departure) is at or after ``after_seconds``. The alighting
    stop is the first one near the destination strictly later in the sequence.

    Args:
        stop_times: The trip's stop times in sequence order.
        origin_stop_ids: Stops within walking distance of the origin.
        destination_stop_ids: Stops within walking distance of the destination.
        after_seconds: Time of day, in seconds, the rider is ready to board.

    Returns:
        (boarding, alighting) pair, or None if the trip does not connect them.
    """
    boarding_index = None
    for index, stop_time in enumerate(stop_times):
        if stop_time.stop_id not in origin_stop_ids:
            continue
        departure = safe_gtfs_time_to_seconds(stop_time.boarding_time)
        if departure is not None and departure >= after_seconds:
            boarding_index = index
            break

    if boarding_index is None:
        return None

    for stop_time in stop_times[boarding_index + 1 :]:
        if stop_time.stop_id in destination_stop_ids:
            return stop_times[boarding_index], stop_time

    return None


def _to_option(store: FeedStore, leg: DirectLeg, fare: float) -> SuggestedRouteOption:
    departure = leg.boarding.boarding_time
    arrival = leg.alighting.alighting_time
    return SuggestedRouteOption(
        route=leg.route,
        route_type_label=route_type_label(leg.route.route_type),
        origin_stop=store.stops_by_id[leg.boarding.stop_id],
        destination_stop=store.stops_by_id[leg.alighting.stop_id],
        trip_id=leg.trip.trip_id,
        trip_headsign=leg.trip.trip_headsign,
        origin_departure_time=departure,
        origin_departure_formatted=format_gtfs_time(departure) if departure else None,
        destination_arrival_time=arrival,
        destination_arrival_formatted=(
            format_gtfs_time(arrival) if safe_gtfs_time_to_seconds(arrival) is not None else None
        ),
        fare=fare,
    )


async def suggest_direct_routes(
    store: FeedStore | None,
    origin: Point,
    destination: Point,
    now: datetime,
    radius_meters: float = NEARBY_STOP_RADIUS_METERS,
    fare: float = DEFAULT_PLACEHOLDER_FARE,
) -> SuggestRoutesResponse:
    """Suggest single-trip journeys from near ``origin`` to near ``destination``.

    Every trip whose service runs on ``now``'s date is scanned. Departures are
    compared with ``now``'s time of day in seconds, so trips past 24:00:00 are
    treated as belonging to the same day.

    For each route, origin stop and destination stop only the earliest
    departure is kept. Options are ordered by departure time.

    Args:
        store: Current feed snapshot, or None if no feed has been loaded.
        origin: Starting coordinate.
        destination: Target coordinate.
        now: Wall-clock date and time to plan from.
        radius_meters: Walking radius around each coordinate.
        fare: Placeholder fare attached to every option.

    Returns:
        SuggestRoutesResponse with the options and an advisory message.
    """
    query_time = time_to_gtfs_format(now)
    service_date = now.date()

    if store is None or not store.is_ready:
        return SuggestRoutesResponse(
            success=False,
            outcome=OutcomeKind.NOT_READY,
            message=NOT_READY_MESSAGE,
            service_date=service_date.isoformat(),
            query_time=query_time,
        )

    nearby_origin = await find_stops_near(store, origin, radius_meters)
    nearby_destination = await find_stops_near(store, destination, radius_meters)
    logger.debug(
        f"Found {len(nearby_origin)} stops near origin, "
        f"{len(nearby_destination)} near destination"
    )

    if not nearby_origin or not nearby_destination:
        return SuggestRoutesResponse(
            success=True,
            outcome=OutcomeKind.NO_RESULTS,
            message=_no_stops_message(bool(nearby_origin), bool(nearby_destination)),
            service_date=service_date.isoformat(),
            query_time=query_time,
            origin_stop_count=len(nearby_origin),
            destination_stop_count=len(nearby_destination),
        )

    origin_ids = {stop.stop_id for stop in nearby_origin}
    destination_ids = {stop.stop_id for stop in nearby_destination}
    now_seconds = now.hour * 3600 + now.minute * 60 + now.second
    active_services = await active_service_ids(store, service_date)

    best: dict[str, DirectLeg] = {}
    for count, trip in enumerate(store.trips, start=1):
        if count % TRIP_YIELD_INTERVAL == 0:
            await asyncio.sleep(0)

        if trip.service_id not in active_services:
            continue
        stop_times = store.stop_times_by_trip.get(trip.trip_id)
        if not stop_times:
            continue

        found = find_direct_leg(stop_times, origin_ids, destination_ids, now_seconds)
        if found is None:
            continue

        route = store.route_for(trip.route_id)
        if route is None:
            continue

        leg = DirectLeg(trip=trip, route=route, boarding=found[0], alighting=found[1])
        existing = best.get(leg.key)
        if existing is None or leg.departure_seconds < existing.departure_seconds:
            best[leg.key] = leg

    legs = sorted(best.values(), key=lambda leg: leg.departure_seconds)
    options = [_to_option(store, leg, fare) for leg in legs]

    logger.info(f"Suggested {len(options)} direct options for {service_date} {query_time}")

    return SuggestRoutesResponse(
        success=True,
        outcome=OutcomeKind.SUCCEEDED if options else OutcomeKind.NO_RESULTS,
        message=None if options else NO_ROUTES_MESSAGE,
        options=options,
        count=len(options),
        service_date=service_date.isoformat(),
        query_time=query_time,
        origin_stop_count=len(nearby_origin),
        destination_stop_count=len(nearby_destination),
    )
