"""GeoJSON LineString encoding for persisted route paths."""

from collections.abc import Sequence
import json
from typing import Any

from shapely.errors import GEOSException
from shapely.geometry import LineString, mapping, shape

from storyroute.config import RouteMode
from storyroute.logging import get_logger
from storyroute.route.errors import InvalidGeometryError
from storyroute.route.models import Coordinate, valid_points

logger = get_logger(__name__)


def path_to_geojson(path: Sequence[Coordinate]) -> str:
    """Serialize a route path as a GeoJSON LineString string.

    Args:
        path: Ordered (lng, lat) coordinates

    Returns:
        JSON text of the form {"type": "LineString", "coordinates": [...]}

    Raises:
        InvalidGeometryError: If the path has fewer than two valid points
    """
    points = valid_points(path)
    if len(points) < 2:
        raise InvalidGeometryError(f"LineString needs at least 2 valid points, got {len(points)}")
    return json.dumps(mapping(LineString(points)))


def path_from_geojson(payload: str | dict[str, Any]) -> list[Coordinate]:
    """Parse a persisted GeoJSON LineString into a list of (lng, lat) coordinates.

    Invalid individual points are dropped. Anything that is not a LineString with
    at least two valid points is rejected.

    Raises:
        InvalidGeometryError: If the payload is not a usable LineString
    """
    try:
        data = json.loads(payload) if isinstance(payload, str) else payload
    except json.JSONDecodeError as e:
        raise InvalidGeometryError(f"Route path is not valid JSON: {e}") from e

    if not isinstance(data, dict) or data.get("type") != "LineString":
        geom_type = data.get("type") if isinstance(data, dict) else type(data).__name__
        raise InvalidGeometryError(f"Expected a LineString geometry, got {geom_type}")

    raw_coordinates = data.get("coordinates") or []
    points = valid_points(raw_coordinates)
    dropped = len(raw_coordinates) - len(points)
    if dropped:
        logger.warning("Dropped invalid route path points", dropped=dropped, kept=len(points))
    if len(points) < 2:
        raise InvalidGeometryError(f"LineString needs at least 2 valid points, got {len(points)}")

    try:
        line = shape({"type": "LineString", "coordinates": points})
    except (GEOSException, ValueError) as e:
        raise InvalidGeometryError(f"Route path is not a valid LineString: {e}") from e

    return [(float(x), float(y)) for x, y, *_ in line.coords]


def infer_route_mode(path: Sequence[Coordinate]) -> RouteMode:
    """Guess how a stored path was built: two points means a straight line."""
    return RouteMode.STRAIGHT if len(path) == 2 else RouteMode.ROAD
