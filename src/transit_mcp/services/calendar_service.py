"""GTFS time/date helpers and the service calendar evaluator."""

import asyncio
import logging
from datetime import date, datetime

from transit_mcp.data.store import FeedStore

logger = logging.getLogger(__name__)

GTFS_DATE_FORMAT = "%Y%m%d"

EXCEPTION_ADDED = 1
EXCEPTION_REMOVED = 2

# Trips scanned between cooperative yields to the event loop
SCAN_YIELD_INTERVAL = 1024


def parse_gtfs_time(time_str: str) -> tuple[int, int, int]:
    """Parse a GTFS time string into hours, minutes, seconds.

    GTFS times can exceed 24:00:00 for trips that extend past midnight.
    For example, "25:30:00" means 1:30 AM the next day.

    Args:
        time_str: Time string in HH:MM:SS format (hours can exceed 24).

    Returns:
        Tuple of (hours, minutes, seconds).

    Raises:
        ValueError: If the time string is invalid.
    """
    parts = time_str.strip().split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2])
    except ValueError as e:
        raise ValueError(f"Invalid GTFS time format: {time_str}") from e

    return hours, minutes, seconds


def gtfs_time_to_seconds(time_str: str) -> int:
    """Convert a GTFS time string to seconds since midnight.

    There is no wraparound, so "25:30:00" is 91800.

    Args:
        time_str: Time string in HH:MM:SS format.

    Returns:
        Total seconds since midnight (can exceed 86400 for next-day times).
    """
    hours, minutes, seconds = parse_gtfs_time(time_str)
    return hours * 3600 + minutes * 60 + seconds


def safe_gtfs_time_to_seconds(time_str: str | None) -> int | None:
    """Like gtfs_time_to_seconds, but None for absent or unparsable times."""
    if time_str is None:
        return None
    try:
        return gtfs_time_to_seconds(time_str)
    except ValueError:
        return None


def format_gtfs_time(time_str: str) -> str:
    """Format a GTFS time string for human display.

    Converts 24-hour format to 12-hour with AM/PM.
    Times >= 24:00 are shown with "(+1)" suffix to indicate next day.

    Args:
        time_str: Time string in HH:MM:SS format.

    Returns:
        Human-readable time like "8:30 AM" or "1:30 AM (+1)".
    """
    hours, minutes, _ = parse_gtfs_time(time_str)

    next_day = ""
    if hours >= 24:
        hours -= 24
        next_day = " (+1)"

    period = "AM"
    display_hour = hours
    if hours == 0:
        display_hour = 12
    elif hours == 12:
        period = "PM"
    elif hours > 12:
        display_hour = hours - 12
        period = "PM"

    return f"{display_hour}:{minutes:02d} {period}{next_day}"


def time_to_gtfs_format(dt: datetime) -> str:
    """Convert a datetime to GTFS time format (HH:MM:SS)."""
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"


def parse_gtfs_date(date_str: str) -> date:
    """Parse a GTFS YYYYMMDD date.

    Raises:
        ValueError: If the string is not a valid date.
    """
    return datetime.strptime(date_str.strip(), GTFS_DATE_FORMAT).date()


def is_service_active(store: FeedStore, service_id: str, day: date) -> bool:
    """Decide whether a service runs on a given date.

    An exception in calendar_dates for that date takes precedence over the
    weekly pattern in calendar. Records with unparsable dates are logged and
    treated as non-matching, so the answer falls back to inactive rather than
    raising.

    Args:
        store: Feed snapshot to evaluate against.
        service_id: Service identifier from trips.txt.
        day: Calendar date to check.

    Returns:
        True if the service operates on ``day``.
    """
    for exception in store.exceptions_by_service.get(service_id, ()):
        try:
            exception_date = parse_gtfs_date(exception.date)
        except ValueError:
            logger.warning(
                f"Unparsable date '{exception.date}' in calendar_dates for service {service_id}"
            )
            continue
        if exception_date == day:
            if exception.exception_type == EXCEPTION_ADDED:
                return True
            if exception.exception_type == EXCEPTION_REMOVED:
                return False

    calendar = store.calendars_by_service.get(service_id)
    if calendar is None:
        return False

    try:
        start = parse_gtfs_date(calendar.start_date)
        end = parse_gtfs_date(calendar.end_date)
    except ValueError:
        logger.warning(
            f"Unparsable date range {calendar.start_date}-{calendar.end_date} "
            f"in calendar for service {service_id}"
        )
        return False

    if not start <= day <= end:
        return False

    return calendar.runs_on_weekday(day.weekday())


async def active_service_ids(store: FeedStore, day: date) -> set[str]:
    """Evaluate each distinct service id referenced by trips once for ``day``."""
    service_ids: set[str] = set()
    for count, trip in enumerate(store.trips, start=1):
        if count % SCAN_YIELD_INTERVAL == 0:
            await asyncio.sleep(0)
        service_ids.add(trip.service_id)
    return {sid for sid in service_ids if is_service_active(store, sid, day)}
