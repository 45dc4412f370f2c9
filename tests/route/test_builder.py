"""Behavior tests for building one route path from ordered waypoints."""

from unittest.mock import Mock

import pytest

from storyroute.config import RouteMode
from storyroute.route.builder import MappingWaypointResolver, StraightLineRouter, build_route_path
from storyroute.route.errors import InsufficientWaypointsError, RouteNotFoundError, RouteResolutionError

LOCATIONS = {
    "a": (11.5755, 48.1374),
    "b": (11.5775, 48.1425),
    "c": (11.5923, 48.1527),
    "a-twin": (11.5755, 48.1374),
}


@pytest.fixture
def resolver() -> MappingWaypointResolver:
    return MappingWaypointResolver(LOCATIONS)


class TestStraightMode:
    """Test connecting waypoints directly."""

    def test_connects_waypoints_in_order(self, resolver):
        """Should return the waypoint coordinates as the path."""
        path = build_route_path(["a", "b", "c"], RouteMode.STRAIGHT, resolver)

        assert path == [LOCATIONS["a"], LOCATIONS["b"], LOCATIONS["c"]]

    def test_repeated_waypoint_is_collapsed(self, resolver):
        """Should build the same path for [A, A, B] as for [A, B]."""
        assert build_route_path(["a", "a", "b"], "straight", resolver) == build_route_path(["a", "b"], "straight", resolver)

    def test_keeps_first_occurrence_order(self, resolver):
        """Should keep each waypoint where it first appears."""
        path = build_route_path(["b", "a", "b", "c"], RouteMode.STRAIGHT, resolver)

        assert path == [LOCATIONS["b"], LOCATIONS["a"], LOCATIONS["c"]]

    def test_drops_unresolvable_waypoints(self, resolver):
        """Should skip references the resolver cannot place."""
        path = build_route_path(["a", "missing", "b"], RouteMode.STRAIGHT, resolver)

        assert path == [LOCATIONS["a"], LOCATIONS["b"]]


class TestInsufficientWaypoints:
    """Test rejecting routes without two distinct places."""

    @pytest.mark.parametrize("waypoints", [[], ["a"], ["a", "a"], ["a", "missing"], ["a", "a-twin"]])
    def test_raises_for_fewer_than_two_distinct_points(self, resolver, waypoints):
        """Should raise instead of returning a partial path."""
        with pytest.raises(InsufficientWaypointsError):
            build_route_path(waypoints, RouteMode.STRAIGHT, resolver)

    def test_is_a_resolution_error(self, resolver):
        """Should be catchable as a route resolution failure."""
        with pytest.raises(RouteResolutionError):
            build_route_path(["a"], RouteMode.ROAD, resolver, Mock())


class TestRoadMode:
    """Test delegating to the routing collaborator."""

    def test_calls_router_once_with_all_waypoints(self, resolver):
        """Should ask the router for the whole journey in one call."""
        router = Mock()
        router.resolve_route.return_value = [[11.5755, 48.1374], [11.576, 48.14], [11.5923, 48.1527]]

        path = build_route_path(["a", "b", "c"], RouteMode.ROAD, resolver, router)

        router.resolve_route.assert_called_once_with([LOCATIONS["a"], LOCATIONS["b"], LOCATIONS["c"]], RouteMode.ROAD)
        assert path == [(11.5755, 48.1374), (11.576, 48.14), (11.5923, 48.1527)]

    def test_router_without_usable_path_raises(self, resolver):
        """Should raise when the router returns fewer than two valid points."""
        router = Mock()
        router.resolve_route.return_value = [[11.5755, 48.1374], [None, None]]

        with pytest.raises(RouteNotFoundError):
            build_route_path(["a", "b"], RouteMode.ROAD, resolver, router)

    def test_router_failure_propagates(self, resolver):
        """Should let the router's not-found error reach the caller."""
        router = Mock()
        router.resolve_route.side_effect = RouteNotFoundError("no route")

        with pytest.raises(RouteNotFoundError, match="no route"):
            build_route_path(["a", "b"], RouteMode.ROAD, resolver, router)

    def test_requires_a_router(self, resolver):
        """Should refuse road mode without a routing collaborator."""
        with pytest.raises(RouteResolutionError):
            build_route_path(["a", "b"], RouteMode.ROAD, resolver)


class TestStraightLineRouter:
    """Test the direct-connection router."""

    def test_returns_coordinates_unchanged(self):
        """Should echo the waypoints as the route."""
        coordinates = [(0.0, 0.0), (1.0, 1.0)]

        assert StraightLineRouter().resolve_route(coordinates) == coordinates
