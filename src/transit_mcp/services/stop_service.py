"""Nearest-stop search over the feed snapshot."""

import asyncio
import math

from transit_mcp.data.store import FeedStore
from transit_mcp.models.gtfs import Point, Stop

# Earth's radius in meters for haversine calculation
EARTH_RADIUS_METERS = 6_371_000

# Walking radius around an origin or destination
NEARBY_STOP_RADIUS_METERS = 1000

# Stops scanned between cooperative yields to the event loop
STOP_YIELD_INTERVAL = 1024


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in meters.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def point_distance(a: Point, b: Point) -> float:
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


async def find_stops_near(
    store: FeedStore,
    point: Point,
    radius_meters: float = NEARBY_STOP_RADIUS_METERS,
) -> list[Stop]:
    """Find stops within a radius of a location.

    Uses a bounding box test to discard far-away stops cheaply, then
    calculates exact haversine distance for final filtering and sorting.
    Stops with missing or unparsable coordinates are never returned.

    Args:
        store: Feed snapshot to search.
        point: Center of the search.
        radius_meters: Search radius in meters.

    Returns:
        Stops sorted by distance, nearest first.
    """
    # 1 degree of latitude ~= 111,000 meters
    # 1 degree of longitude varies with latitude
    lat_delta = radius_meters / 111_000
    cos_lat = math.cos(math.radians(point.lat))
    lon_delta = radius_meters / (111_000 * cos_lat) if cos_lat > 1e-9 else 360.0

    stops_with_distance: list[tuple[Stop, float]] = []
    for count, stop in enumerate(store.stops_by_id.values(), start=1):
        if count % STOP_YIELD_INTERVAL == 0:
            await asyncio.sleep(0)
        coords = stop.coordinates()
        if coords is None:
            continue
        if abs(coords.lat - point.lat) > lat_delta or abs(coords.lon - point.lon) > lon_delta:
            continue
        distance = point_distance(point, coords)
        if distance <= radius_meters:
            stops_with_distance.append((stop, distance))

    stops_with_distance.sort(key=lambda x: x[1])
    return [stop for stop, _ in stops_with_distance]
