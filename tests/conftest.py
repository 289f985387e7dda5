"""Shared GTFS fixtures."""

from pathlib import Path

import pytest

from transit_mcp.data.store import FeedStore
from transit_mcp.data.store_builder import build_store

# 2024-01-08 is a Monday
MONDAY = "20240108"


def write_feed(feed_dir: Path, tables: dict[str, str]) -> Path:
    """Write GTFS tables (file name -> text) into ``feed_dir``."""
    feed_dir.mkdir(parents=True, exist_ok=True)
    for filename, text in tables.items():
        (feed_dir / filename).write_text(text, encoding="utf-8")
    return feed_dir


SAMPLE_TABLES = {
    # R1B looks identical to R1 to riders and is collapsed into it
    "routes.txt": (
        "route_id,agency_id,route_short_name,route_long_name,route_type,route_color\n"
        "R1,TFWM,11A,Outer Circle,3,FF0000\n"
        "R1B,TFWM,11A,Outer Circle,3,FF0000\n"
        "R2,TFWM,X50,City - Solihull,3,00FF00\n"
        "R3,MML,M1,Midland Metro,0,0000FF\n"
    ),
    "trips.txt": (
        "trip_id,route_id,service_id,trip_headsign,direction_id,shape_id\n"
        "T1,R1,S1,Perry Barr,0,SH1\n"
        "T2,R1B,S1,Perry Barr,0,SH1\n"
        "T3,R2,S1,Solihull,1,SH2\n"
        "T4,R3,WEEKEND,Wolverhampton,0,\n"
    ),
    "stops.txt": (
        "stop_id,stop_code,stop_name,stop_lat,stop_lon,location_type,parent_station\n"
        "A,43000,Corporation Street,52.48,-1.90,0,\n"
        "A2,43001,Corporation Street North,52.483,-1.899,0,\n"
        "B,43002,Six Ways,52.50,-1.89,0,\n"
        "C,43003,Perry Barr,52.52,-1.88,0,\n"
        "NOCOORD,43004,Depot,,,0,\n"
    ),
    "calendar.txt": (
        "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date\n"
        "S1,1,1,1,1,1,0,0,20200101,20991231\n"
        "WEEKEND,0,0,0,0,0,1,1,20200101,20991231\n"
    ),
    "calendar_dates.txt": (
        "service_id,date,exception_type\n"
        "S1,20240101,2\n"
        "WEEKEND,20240101,1\n"
    ),
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
        "T1,08:00:00,08:00:00,A,1\n"
        "T1,08:15:00,08:15:00,B,2\n"
        "T1,08:30:00,08:30:00,C,3\n"
        "T2,08:40:00,08:40:00,A,1\n"
        "T2,08:55:00,08:55:00,B,2\n"
        "T3,07:50:00,07:50:00,A2,1\n"
        "T3,08:20:00,08:20:00,B,2\n"
        "T4,10:00:00,10:00:00,C,1\n"
        "T4,10:10:00,10:10:00,UNKNOWN,2\n"
    ),
    "shapes.txt": (
        "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence,shape_dist_traveled\n"
        "SH1,52.48,-1.90,1,0\n"
        "SH2,52.483,-1.899,1,0\n"
        "SH1,52.49,-1.895,2,1.2\n"
        "SH1,52.50,-1.89,3,2.4\n"
        "SH2,52.50,-1.89,2,2.0\n"
        "SH1,52.51,-1.885,4,3.6\n"
        "SH1,52.52,-1.88,5,4.8\n"
    ),
}


@pytest.fixture
def sample_feed_dir(tmp_path: Path) -> Path:
    """Create a sample GTFS directory with routes, trips, calendars and shapes."""
    return write_feed(tmp_path / "gtfs", SAMPLE_TABLES)


@pytest.fixture
async def sample_store(sample_feed_dir: Path) -> FeedStore:
    """Build the sample feed into a store."""
    result = await build_store(sample_feed_dir)
    assert result.store is not None
    return result.store
