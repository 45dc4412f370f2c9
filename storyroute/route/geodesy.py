"""Geodesic helpers for moving a marker along a route path.

All paths are sequences of (lng, lat) pairs in degrees. Distances are in
kilometres. Interpolation inside a segment is planar in lat/lng, which is a
close approximation for the short segments a road router produces.
"""

from collections.abc import Iterator, Sequence
import math
from typing import Any

from storyroute.config import EARTH_RADIUS_KM
from storyroute.logging import get_logger
from storyroute.route.models import Coordinate, is_valid_point, to_coordinate

logger = get_logger(__name__)


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two (lng, lat) points using the haversine formula.

    Args:
        a: First coordinate (lng, lat) in degrees
        b: Second coordinate (lng, lat) in degrees

    Returns:
        Distance in kilometres
    """
    lng1, lat1 = a[0], a[1]
    lng2, lat2 = b[0], b[1]
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    h = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def clean_path(path: Sequence[Any] | None) -> list[Coordinate]:
    """Drop malformed points from an externally supplied path.

    Logs a single warning per call when anything was dropped; never raises.
    """
    if not path:
        return []
    cleaned: list[Coordinate] = []
    skipped: list[int] = []
    for index, point in enumerate(path):
        if is_valid_point(point):
            cleaned.append(to_coordinate(point))
        else:
            skipped.append(index)
    if skipped:
        logger.warning("Skipping invalid route points", indexes=skipped[:10], skipped=len(skipped), kept=len(cleaned))
    return cleaned


def _segments(points: Sequence[Coordinate]) -> Iterator[tuple[Coordinate, Coordinate, float]]:
    """Yield (start, end, length_km) for every non-degenerate consecutive pair."""
    for start, end in zip(points[:-1], points[1:]):
        seg = distance(start, end)
        if seg > 0 and math.isfinite(seg):
            yield start, end, seg


def _lerp(start: Coordinate, end: Coordinate, ratio: float) -> Coordinate:
    return (
        start[0] + (end[0] - start[0]) * ratio,
        start[1] + (end[1] - start[1]) * ratio,
    )


def _length(points: Sequence[Coordinate]) -> float:
    total = 0.0
    for _start, _end, seg in _segments(points):
        total += seg
    return total


def path_length(path: Sequence[Any]) -> float:
    """Total length of a path in kilometres; 0 for fewer than two valid points."""
    return _length(clean_path(path))


def position_at_distance(path: Sequence[Any], traveled_km: float) -> Coordinate | None:
    """Return the point reached after travelling ``traveled_km`` along the path.

    Invalid points are skipped and their valid neighbours joined directly.

    Args:
        path: Route path of (lng, lat) points
        traveled_km: Distance from the start, clamped at 0

    Returns:
        The interpolated (lng, lat) position, the last valid point if the distance
        exceeds the path length, or None if the path has no valid point
    """
    points = clean_path(path)
    if not points:
        return None
    return _position(points, traveled_km, _length(points))


def _position(points: Sequence[Coordinate], traveled_km: float, total_km: float) -> Coordinate:
    if traveled_km <= 0:
        return points[0]
    if traveled_km >= total_km:
        return points[-1]

    accumulated = 0.0
    for start, end, seg in _segments(points):
        if accumulated + seg >= traveled_km:
            position = _lerp(start, end, (traveled_km - accumulated) / seg)
            if is_valid_point(position):
                return position
        accumulated += seg
    return points[-1]


def visited_prefix(path: Sequence[Any], progress: float) -> list[Coordinate]:
    """Sub-path already travelled at ``progress``, ending with the interpolated cut point."""
    points = clean_path(path)
    if not points:
        return []
    return _visited(points, progress, _length(points))


def _visited(points: Sequence[Coordinate], progress: float, total_km: float) -> list[Coordinate]:
    target = min(max(progress, 0.0), 1.0) * total_km
    prefix = [points[0]]
    if target <= 0:
        return prefix

    accumulated = 0.0
    for start, end, seg in _segments(points):
        if accumulated + seg <= target:
            prefix.append(end)
            accumulated += seg
            continue
        cut = _lerp(start, end, (target - accumulated) / seg)
        if cut != prefix[-1]:
            prefix.append(cut)
        break
    return prefix


def bearing(path: Sequence[Any], progress: float) -> float | None:
    """Planar heading in degrees of the segment being traversed at ``progress``.

    Measured counter-clockwise from east (atan2 of the lat and lng deltas). Used
    for marker rotation only.
    """
    points = clean_path(path)
    return _bearing(points, progress, _length(points))


def _bearing(points: Sequence[Coordinate], progress: float, total_km: float) -> float | None:
    target = min(max(progress, 0.0), 1.0) * total_km
    accumulated = 0.0
    for start, end, seg in _segments(points):
        if accumulated + seg >= target:
            return math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))
        accumulated += seg
    return None


class PathGeometry:
    """A cleaned path with its length computed once, for per-frame queries."""

    def __init__(self, path: Sequence[Any]):
        self.points = clean_path(path)
        self.length_km = _length(self.points)

    @property
    def is_animatable(self) -> bool:
        return len(self.points) >= 2

    def position_at(self, progress: float) -> Coordinate | None:
        if not self.points:
            return None
        return _position(self.points, min(max(progress, 0.0), 1.0) * self.length_km, self.length_km)

    def visited(self, progress: float) -> list[Coordinate]:
        if not self.points:
            return []
        return _visited(self.points, progress, self.length_km)

    def bearing_at(self, progress: float) -> float | None:
        return _bearing(self.points, progress, self.length_km)
