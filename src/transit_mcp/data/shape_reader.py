"""On-demand reader for shapes.txt.

shapes.txt is usually the largest table in a feed, so it is never loaded into
the store. Each request streams the file once and keeps only the rows of the
requested shape.
"""

import logging
from pathlib import Path

from transit_mcp.data.feed_reader import FeedRow, FeedTableError, open_table
from transit_mcp.models.gtfs import Point, ShapePoint

logger = logging.getLogger(__name__)

SHAPE_REQUIRED_COLUMNS = ("shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence")


def parse_shape_point(row: FeedRow) -> ShapePoint:
    """Build a ShapePoint from a shapes.txt row.

    Raises:
        ValueError: If any required field is absent or not numeric.
    """
    shape_id = row.get("shape_id")
    lat = row.get("shape_pt_lat")
    lon = row.get("shape_pt_lon")
    sequence = row.get("shape_pt_sequence")
    if shape_id is None or lat is None or lon is None or sequence is None:
        raise ValueError("incomplete shape row")
    dist = row.get("shape_dist_traveled")
    return ShapePoint(
        shape_id=shape_id,
        lat=float(lat),
        lon=float(lon),
        sequence=int(sequence),
        dist_traveled=float(dist) if dist is not None else None,
    )


def load_shape(shape_id: str, shapes_path: Path) -> list[Point]:
    """Read one shape's points, ordered by shape_pt_sequence.

    Rows that fail to parse are skipped. Points with equal sequence keep their
    file order.

    Args:
        shape_id: Shape to extract.
        shapes_path: Path to shapes.txt.

    Returns:
        Ordered points; empty if the shape id does not occur.

    Raises:
        FeedTableError: If the file is missing or its header is unusable.
    """
    points: list[ShapePoint] = []
    skipped = 0
    with open_table(shapes_path, SHAPE_REQUIRED_COLUMNS) as reader:
        for row in reader.filter_rows("shape_id", shape_id):
            try:
                points.append(parse_shape_point(row))
            except ValueError:
                skipped += 1

    if skipped:
        logger.debug(f"Skipped {skipped} unparsable rows for shape {shape_id}")

    points.sort(key=lambda p: p.sequence)
    return [p.to_point() for p in points]


def read_shape(shape_id: str, shapes_path: Path) -> list[Point]:
    """Like load_shape, but a file-level failure is logged and yields []."""
    try:
        return load_shape(shape_id, shapes_path)
    except FeedTableError as e:
        logger.error(f"Failed to read shape {shape_id}: {e}")
        return []
