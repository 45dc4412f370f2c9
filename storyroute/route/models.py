"""Data model for route animations."""

from dataclasses import dataclass, field
from enum import Enum
import json
import math
from typing import Any

from storyroute.config import (
    DEFAULT_ICON_SIZE,
    DEFAULT_ROUTE_COLOR,
    DEFAULT_ROUTE_WIDTH,
    DEFAULT_VISITED_COLOR,
    IconType,
)

# (lng, lat), GeoJSON order
Coordinate = tuple[float, float]


def is_valid_number(value: Any) -> bool:  # noqa: ANN401
    """Return True for a finite int or float (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def is_valid_point(point: Any) -> bool:  # noqa: ANN401
    """Return True when ``point`` is a (lng, lat) pair of finite numbers."""
    if point is None or isinstance(point, str | bytes):
        return False
    try:
        if len(point) < 2:
            return False
        return is_valid_number(point[0]) and is_valid_number(point[1])
    except TypeError:
        return False


def to_coordinate(point: Any) -> Coordinate:  # noqa: ANN401
    return (float(point[0]), float(point[1]))


def valid_points(path: Any) -> list[Coordinate]:  # noqa: ANN401
    """Filter a raw path down to its valid coordinates, preserving order."""
    if not path:
        return []
    return [to_coordinate(point) for point in path if is_valid_point(point)]


class Phase(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class IconDescriptor:
    """Which icon the marker shows: a built-in type or a custom image."""

    icon_type: IconType = IconType.CAR
    icon_url: str | None = None
    size: tuple[int, int] = DEFAULT_ICON_SIZE


@dataclass(frozen=True)
class CameraState:
    center: Coordinate
    zoom: float

    @classmethod
    def parse(cls, raw: str | dict[str, Any] | None) -> "CameraState | None":
        """Parse a persisted camera state, returning None for empty or unusable input."""
        if raw is None or raw == "":
            return None
        data = json.loads(raw) if isinstance(raw, str) else raw
        center = data.get("center")
        zoom = data.get("zoom")
        if not is_valid_point(center) or not is_valid_number(zoom):
            return None
        return cls(center=to_coordinate(center), zoom=float(zoom))

    def to_dict(self) -> dict[str, Any]:
        return {"center": list(self.center), "zoom": self.zoom}


@dataclass(frozen=True)
class CameraTransition:
    before: CameraState | None = None
    after: CameraState | None = None


@dataclass(frozen=True)
class RouteAnimationSpec:
    """Immutable description of one route animation instance."""

    route_id: str
    origin: Coordinate
    destination: Coordinate
    path: tuple[Coordinate, ...]
    duration_ms: float
    icon: IconDescriptor = field(default_factory=IconDescriptor)
    route_color: str = DEFAULT_ROUTE_COLOR
    visited_color: str = DEFAULT_VISITED_COLOR
    route_width: int = DEFAULT_ROUTE_WIDTH
    chain_id: str | None = None
    camera: CameraTransition = field(default_factory=CameraTransition)
    follow_camera: bool = False
    follow_zoom: float | None = None
    segment_id: str = ""
    start_time_ms: float | None = None
    end_time_ms: float | None = None
    start_delay_ms: float = 0
    show_location_info_on_arrival: bool = False
    location_info_display_ms: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RouteAnimationSpec":
        """Build a spec from the persisted camelCase form.

        ``routePath`` is a GeoJSON LineString (string or dict). Camera states are
        JSON strings holding ``center`` and ``zoom``.
        """
        from storyroute.route.geojson import path_from_geojson

        icon_type = IconType(data.get("iconType") or IconType.CAR.value)
        width = data.get("iconWidth") or DEFAULT_ICON_SIZE[0]
        height = data.get("iconHeight") or DEFAULT_ICON_SIZE[1]
        return cls(
            route_id=str(data["routeAnimationId"]),
            segment_id=str(data.get("segmentId", "")),
            origin=(float(data["fromLng"]), float(data["fromLat"])),
            destination=(float(data["toLng"]), float(data["toLat"])),
            path=tuple(path_from_geojson(data["routePath"])),
            duration_ms=float(data["durationMs"]),
            icon=IconDescriptor(icon_type=icon_type, icon_url=data.get("iconUrl") or None, size=(width, height)),
            route_color=data.get("routeColor") or DEFAULT_ROUTE_COLOR,
            visited_color=data.get("visitedColor") or DEFAULT_VISITED_COLOR,
            route_width=int(data.get("routeWidth") or DEFAULT_ROUTE_WIDTH),
            chain_id=data.get("chainId"),
            camera=CameraTransition(
                before=CameraState.parse(data.get("cameraStateBefore")),
                after=CameraState.parse(data.get("cameraStateAfter")),
            ),
            follow_camera=bool(data.get("followCamera", False)),
            follow_zoom=data.get("followCameraZoom"),
            start_time_ms=data.get("startTimeMs"),
            end_time_ms=data.get("endTimeMs"),
            start_delay_ms=data.get("startDelayMs") or 0,
            show_location_info_on_arrival=bool(data.get("showLocationInfoOnArrival", False)),
            location_info_display_ms=data.get("locationInfoDisplayDurationMs"),
        )

    def to_dict(self) -> dict[str, Any]:
        from storyroute.route.geojson import path_to_geojson

        data: dict[str, Any] = {
            "routeAnimationId": self.route_id,
            "segmentId": self.segment_id,
            "fromLng": self.origin[0],
            "fromLat": self.origin[1],
            "toLng": self.destination[0],
            "toLat": self.destination[1],
            "routePath": path_to_geojson(self.path),
            "iconType": self.icon.icon_type.value,
            "iconUrl": self.icon.icon_url,
            "iconWidth": self.icon.size[0],
            "iconHeight": self.icon.size[1],
            "routeColor": self.route_color,
            "visitedColor": self.visited_color,
            "routeWidth": self.route_width,
            "durationMs": self.duration_ms,
            "startDelayMs": self.start_delay_ms,
            "startTimeMs": self.start_time_ms,
            "endTimeMs": self.end_time_ms,
            "followCamera": self.follow_camera,
            "followCameraZoom": self.follow_zoom,
            "showLocationInfoOnArrival": self.show_location_info_on_arrival,
            "locationInfoDisplayDurationMs": self.location_info_display_ms,
            "chainId": self.chain_id,
        }
        if self.camera.before is not None:
            data["cameraStateBefore"] = json.dumps(self.camera.before.to_dict())
        if self.camera.after is not None:
            data["cameraStateAfter"] = json.dumps(self.camera.after.to_dict())
        return data


@dataclass
class RunnerState:
    """Mutable per-runner playback state."""

    progress: float = 0.0
    start_timestamp: float | None = None
    has_completed: bool = False
    is_playing: bool = False
    phase: Phase = Phase.IDLE
