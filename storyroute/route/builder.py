"""Build one route path from an ordered list of waypoints."""

from collections.abc import Hashable, Mapping, Sequence
from typing import Protocol

from storyroute.config import RouteMode
from storyroute.logging import get_logger
from storyroute.route.errors import InsufficientWaypointsError, RouteNotFoundError, RouteResolutionError
from storyroute.route.models import Coordinate, is_valid_point, to_coordinate, valid_points

logger = get_logger(__name__)


class WaypointResolver(Protocol):
    def resolve(self, ref: Hashable) -> Coordinate | None:
        """Return the coordinate of a waypoint reference, or None if it cannot be resolved."""
        ...


class RouteResolver(Protocol):
    def resolve_route(self, coordinates: Sequence[Coordinate], mode: RouteMode) -> list[Coordinate]:
        """Return a path visiting ``coordinates`` in order.

        Raises:
            RouteNotFoundError: If no connecting path exists
        """
        ...


class MappingWaypointResolver:
    """Resolves references by looking them up in a mapping of id to (lng, lat)."""

    def __init__(self, locations: Mapping[Hashable, Sequence[float]]):
        self._locations = locations

    def resolve(self, ref: Hashable) -> Coordinate | None:
        point = self._locations.get(ref)
        return to_coordinate(point) if is_valid_point(point) else None


class StraightLineRouter:
    """Connects waypoints directly, in order."""

    def resolve_route(self, coordinates: Sequence[Coordinate], mode: RouteMode = RouteMode.STRAIGHT) -> list[Coordinate]:
        return list(coordinates)


def _dedupe(waypoints: Sequence[Hashable]) -> list[Hashable]:
    seen: set[Hashable] = set()
    unique: list[Hashable] = []
    for ref in waypoints:
        if ref in seen:
            continue
        seen.add(ref)
        unique.append(ref)
    return unique


def build_route_path(
    waypoints: Sequence[Hashable],
    mode: RouteMode,
    resolver: WaypointResolver,
    router: RouteResolver | None = None,
) -> list[Coordinate]:
    """Turn ordered waypoint references into one stitched route path.

    Duplicate references are collapsed to their first occurrence and
    unresolvable ones are dropped. Nothing is persisted here.

    Args:
        waypoints: Ordered waypoint references (location ids)
        mode: ``road`` asks the router once for the whole list, ``straight`` joins points directly
        resolver: Maps a reference to its (lng, lat)
        router: Routing collaborator, required for ``road`` mode

    Returns:
        Route path of at least two (lng, lat) points

    Raises:
        InsufficientWaypointsError: If fewer than two distinct waypoints resolve
        RouteNotFoundError: If the router finds no path or returns fewer than two valid points
    """
    mode = RouteMode(mode)
    coordinates: list[Coordinate] = []
    for ref in _dedupe(waypoints):
        point = resolver.resolve(ref)
        if point is None or not is_valid_point(point):
            logger.warning("Dropping unresolvable waypoint", waypoint=ref)
            continue
        coordinates.append(to_coordinate(point))

    if len(set(coordinates)) < 2:
        raise InsufficientWaypointsError(f"Need at least 2 distinct waypoints, got {len(set(coordinates))}")

    if mode is RouteMode.STRAIGHT:
        path = StraightLineRouter().resolve_route(coordinates, mode)
    else:
        if router is None:
            raise RouteResolutionError("Road mode needs a routing collaborator")
        path = valid_points(router.resolve_route(coordinates, mode))
        if len(path) < 2:
            raise RouteNotFoundError(f"Router returned {len(path)} usable points for {len(coordinates)} waypoints")

    logger.info("Route path built", mode=mode.value, waypoints=len(coordinates), points=len(path))
    return path
