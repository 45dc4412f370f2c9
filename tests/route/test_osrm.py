"""Behavior tests for the OSRM road routing client."""

from unittest.mock import Mock, patch

import httpx
import pytest

from storyroute.config import RouteMode, RoutingProfile
from storyroute.route.errors import InsufficientWaypointsError, RouteNotFoundError, RoutingServiceError
from storyroute.route.osrm import OsrmRouter

WAYPOINTS = [(11.5755, 48.1374), (11.5923, 48.1527)]

OK_RESPONSE = {
    "code": "Ok",
    "routes": [
        {
            "geometry": {"type": "LineString", "coordinates": [[11.5755, 48.1374], [11.58, 48.145], [11.5923, 48.1527]]},
            "distance": 2310.4,
            "duration": 312.7,
        }
    ],
    "waypoints": [
        {"location": [11.57551, 48.13741], "name": "Marienplatz"},
        {"location": [11.59231, 48.15271], "name": "Englischer Garten"},
    ],
}


def _mock_client(mock_client_class: Mock, payload: dict | None = None) -> Mock:
    mock_response = Mock()
    mock_response.json.return_value = payload if payload is not None else OK_RESPONSE
    mock_response.is_client_error = False
    mock_response.raise_for_status.return_value = None
    mock_client = Mock()
    mock_client.get.return_value = mock_response
    mock_client_class.return_value.__enter__.return_value = mock_client
    return mock_client


class TestOsrmRouter:
    """Test resolving road routes through OSRM."""

    @patch("storyroute.route.osrm.httpx.Client")
    def test_returns_route_geometry(self, mock_client_class):
        """Should return the GeoJSON coordinates of the first route."""
        _mock_client(mock_client_class)

        path = OsrmRouter().resolve_route(WAYPOINTS, RouteMode.ROAD)

        assert path == [(11.5755, 48.1374), (11.58, 48.145), (11.5923, 48.1527)]

    @patch("storyroute.route.osrm.httpx.Client")
    def test_requests_full_geojson_overview(self, mock_client_class):
        """Should call the route endpoint with all waypoints and GeoJSON geometry."""
        mock_client = _mock_client(mock_client_class)

        OsrmRouter(base_url="http://osrm.local/").resolve_route(WAYPOINTS)

        url = mock_client.get.call_args.args[0]
        kwargs = mock_client.get.call_args.kwargs
        assert url == "http://osrm.local/route/v1/driving/11.5755,48.1374;11.5923,48.1527"
        assert kwargs["params"] == {"overview": "full", "geometries": "geojson", "alternatives": "false"}
        assert kwargs["timeout"] == 30.0

    @patch("storyroute.route.osrm.httpx.Client")
    def test_walking_uses_foot_profile(self, mock_client_class):
        """Should map the walking profile to OSRM's foot profile."""
        mock_client = _mock_client(mock_client_class)

        OsrmRouter(profile=RoutingProfile.WALKING).resolve_route(WAYPOINTS)

        assert "/route/v1/foot/" in mock_client.get.call_args.args[0]

    @patch("storyroute.route.osrm.httpx.Client")
    def test_summary_includes_distance_and_snapped_waypoints(self, mock_client_class):
        """Should expose OSRM distance, duration and snapped waypoints."""
        _mock_client(mock_client_class)

        summary = OsrmRouter().route_summary(WAYPOINTS)

        assert summary.distance_m == 2310.4
        assert summary.duration_s == 312.7
        assert summary.waypoints == [(11.57551, 48.13741), (11.59231, 48.15271)]
        assert summary.waypoint_names == ["Marienplatz", "Englischer Garten"]

    @patch("storyroute.route.osrm.httpx.Client")
    def test_no_route_raises_not_found(self, mock_client_class):
        """Should raise when OSRM answers without a route."""
        _mock_client(mock_client_class, {"code": "NoRoute", "message": "Impossible route", "routes": []})

        with pytest.raises(RouteNotFoundError):
            OsrmRouter().resolve_route(WAYPOINTS)

    @pytest.mark.parametrize("code", ["NoRoute", "NoSegment"])
    @patch("storyroute.route.osrm.httpx.Client")
    def test_no_route_status_400_raises_not_found(self, mock_client_class, code):
        """Should read OSRM's 400 answer for unroutable waypoints as a missing route."""
        mock_client = _mock_client(mock_client_class)
        request = httpx.Request("GET", "https://router.project-osrm.org/route/v1/driving/0,0;1,1")
        mock_client.get.return_value = httpx.Response(
            400, json={"code": code, "message": "Impossible route between points"}, request=request
        )

        with pytest.raises(RouteNotFoundError, match=code):
            OsrmRouter().resolve_route(WAYPOINTS)

    @patch("storyroute.route.osrm.httpx.Client")
    def test_other_client_errors_raise_service_error(self, mock_client_class):
        """Should keep treating malformed-query answers as service errors."""
        mock_client = _mock_client(mock_client_class)
        request = httpx.Request("GET", "https://router.project-osrm.org/route/v1/driving/0,0;1,1")
        mock_client.get.return_value = httpx.Response(
            400, json={"code": "InvalidQuery", "message": "Query string malformed"}, request=request
        )

        with pytest.raises(RoutingServiceError):
            OsrmRouter().resolve_route(WAYPOINTS)

    @patch("storyroute.route.osrm.httpx.Client")
    def test_http_error_raises_service_error(self, mock_client_class):
        """Should wrap HTTP error statuses in a routing service error."""
        mock_client = _mock_client(mock_client_class)
        mock_client.get.return_value.raise_for_status.side_effect = httpx.HTTPStatusError(
            "503 Service Unavailable", request=Mock(), response=Mock()
        )

        with pytest.raises(RoutingServiceError) as exc_info:
            OsrmRouter().resolve_route(WAYPOINTS)

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @patch("storyroute.route.osrm.httpx.Client")
    def test_network_error_raises_service_error(self, mock_client_class):
        """Should wrap transport errors in a routing service error."""
        mock_client = _mock_client(mock_client_class)
        mock_client.get.side_effect = httpx.ConnectError("Connection refused")

        with pytest.raises(RoutingServiceError):
            OsrmRouter().resolve_route(WAYPOINTS)

    @patch("storyroute.route.osrm.httpx.Client")
    def test_straight_mode_skips_network(self, mock_client_class):
        """Should connect waypoints directly without calling OSRM."""
        path = OsrmRouter().resolve_route(WAYPOINTS, RouteMode.STRAIGHT)

        assert path == WAYPOINTS
        mock_client_class.assert_not_called()

    def test_single_waypoint_is_rejected(self):
        """Should refuse to route fewer than two coordinates."""
        with pytest.raises(InsufficientWaypointsError):
            OsrmRouter().route_summary([(11.5755, 48.1374)])
