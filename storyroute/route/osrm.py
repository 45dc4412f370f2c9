"""OSRM routing backend."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from storyroute.config import OSRM_BASE_URL, OSRM_TIMEOUT_S, RouteMode, RoutingProfile
from storyroute.logging import get_logger
from storyroute.route.builder import StraightLineRouter
from storyroute.route.errors import InsufficientWaypointsError, RouteNotFoundError, RoutingServiceError
from storyroute.route.models import Coordinate, valid_points

logger = get_logger(__name__)

OSRM_PROFILES: dict[RoutingProfile, str] = {
    RoutingProfile.DRIVING: "driving",
    RoutingProfile.WALKING: "foot",
    RoutingProfile.CYCLING: "cycling",
}

# OSRM answers these with HTTP 400 and a JSON body
OSRM_NO_ROUTE_CODES = frozenset({"NoRoute", "NoSegment"})


@dataclass(frozen=True)
class RouteSummary:
    path: list[Coordinate]
    distance_m: float
    duration_s: float
    waypoints: list[Coordinate] = field(default_factory=list)
    waypoint_names: list[str] = field(default_factory=list)


class OsrmRouter:
    """Road routing through an OSRM ``/route/v1`` endpoint."""

    def __init__(
        self,
        base_url: str = OSRM_BASE_URL,
        profile: RoutingProfile = RoutingProfile.DRIVING,
        timeout: float = OSRM_TIMEOUT_S,
    ):
        self.base_url = base_url.rstrip("/")
        self.profile = RoutingProfile(profile)
        self.timeout = timeout

    def build_url(self, coordinates: Sequence[Coordinate]) -> str:
        points = ";".join(f"{lng},{lat}" for lng, lat in coordinates)
        return f"{self.base_url}/route/v1/{OSRM_PROFILES[self.profile]}/{points}"

    def resolve_route(self, coordinates: Sequence[Coordinate], mode: RouteMode = RouteMode.ROAD) -> list[Coordinate]:
        if RouteMode(mode) is RouteMode.STRAIGHT:
            return StraightLineRouter().resolve_route(coordinates, mode)
        return self.route_summary(coordinates).path

    def route_summary(self, coordinates: Sequence[Coordinate]) -> RouteSummary:
        """Ask OSRM for the best road route through ``coordinates``.

        Args:
            coordinates: Ordered (lng, lat) waypoints, at least two

        Returns:
            The route geometry with OSRM's distance, duration and snapped waypoints

        Raises:
            InsufficientWaypointsError: If fewer than two coordinates are given
            RoutingServiceError: For network errors and HTTP error statuses
            RouteNotFoundError: If OSRM answers without a usable route
        """
        if len(coordinates) < 2:
            raise InsufficientWaypointsError(f"OSRM needs at least 2 coordinates, got {len(coordinates)}")

        url = self.build_url(coordinates)
        params = {"overview": "full", "geometries": "geojson", "alternatives": "false"}
        try:
            with httpx.Client() as client:
                response = client.get(url, params=params, timeout=self.timeout)
                data = _no_route_body(response)
                if data is None:
                    response.raise_for_status()
                    data = response.json()
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            logger.exception("OSRM request failed", url=url)
            raise RoutingServiceError(f"OSRM request failed: {e}") from e

        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            logger.warning("No route found", code=data.get("code"), message=data.get("message"))
            raise RouteNotFoundError(f"OSRM found no route: {data.get('code')}")

        route = routes[0]
        path = valid_points((route.get("geometry") or {}).get("coordinates"))
        if len(path) < 2:
            raise RouteNotFoundError(f"OSRM route has {len(path)} usable points")

        waypoints = data.get("waypoints") or []
        summary = RouteSummary(
            path=path,
            distance_m=float(route.get("distance", 0.0)),
            duration_s=float(route.get("duration", 0.0)),
            waypoints=valid_points([wp.get("location") for wp in waypoints]),
            waypoint_names=[wp.get("name", "") for wp in waypoints],
        )
        logger.info(
            "OSRM route resolved",
            profile=self.profile.value,
            points=len(path),
            distance_m=summary.distance_m,
            duration_s=summary.duration_s,
        )
        return summary


def _no_route_body(response: httpx.Response) -> dict[str, Any] | None:
    """Return the JSON body of a client-error answer that means "no route"."""
    if not response.is_client_error:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("code") in OSRM_NO_ROUTE_CODES:
        return body
    return None
