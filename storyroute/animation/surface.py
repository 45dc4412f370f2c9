"""Rendering surface boundary.

The map widget can be torn down or not yet mounted at any time. Every
mutation goes through ``SurfaceHandle.with_surface`` which checks liveness
first and turns a dead surface into a skipped mutation instead of an error.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import itertools
from typing import Any, Protocol, TypeVar

from storyroute.logging import get_logger
from storyroute.route.models import Coordinate

logger = get_logger(__name__)

T = TypeVar("T")

LayerId = int


class SurfaceUnavailableError(Exception):
    """Raised by a surface whose underlying widget is gone mid-call."""


@dataclass(frozen=True)
class PolylineStyle:
    color: str
    weight: float
    opacity: float = 1.0
    dash_array: str | None = None


@dataclass(frozen=True)
class IconContent:
    """Visual content for a point marker, as produced by an icon renderer."""

    html: str | None = None
    image_url: str | None = None
    size: tuple[int, int] = (32, 32)
    rotation: float = 0.0

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.size[0] / 2, self.size[1] / 2)


class RenderingSurface(Protocol):
    """Primitives the host map offers. Coordinates are (lng, lat)."""

    def is_alive(self) -> bool: ...

    def add_polyline(self, points: Sequence[Coordinate], style: PolylineStyle) -> LayerId: ...

    def set_polyline_points(self, layer: LayerId, points: Sequence[Coordinate]) -> None: ...

    def add_marker(self, position: Coordinate, icon: IconContent, z_index: int = 0) -> LayerId: ...

    def move_marker(self, layer: LayerId, position: Coordinate) -> None: ...

    def set_marker_rotation(self, layer: LayerId, degrees: float) -> None: ...

    def remove_layer(self, layer: LayerId) -> None: ...

    def get_zoom(self) -> float: ...

    def pan_to(self, center: Coordinate, duration_s: float = 0.0) -> None: ...

    def set_zoom(self, zoom: float, duration_s: float = 0.0) -> None: ...

    def set_view(self, center: Coordinate, zoom: float, duration_s: float = 0.0) -> None: ...


class SurfaceHandle:
    """Liveness-checked access to a rendering surface that may vanish."""

    def __init__(self, surface: RenderingSurface | None = None):
        self._surface = surface

    def attach(self, surface: RenderingSurface) -> None:
        self._surface = surface

    def detach(self) -> None:
        self._surface = None

    def is_usable(self) -> bool:
        if self._surface is None:
            return False
        try:
            return bool(self._surface.is_alive())
        except SurfaceUnavailableError:
            return False

    def with_surface(self, fn: Callable[[RenderingSurface], T], default: T | None = None) -> T | None:
        """Run ``fn`` against the surface if it is usable.

        Returns ``default`` when the surface is missing, destroyed, or disappears
        while ``fn`` runs. Any other exception propagates.
        """
        if not self.is_usable():
            logger.debug("Surface unavailable, skipping mutation")
            return default
        try:
            return fn(self._surface)  # pyright: ignore[reportArgumentType]
        except SurfaceUnavailableError as e:
            logger.debug("Surface went away during mutation", error=str(e))
            return default


@dataclass
class RecordedLayer:
    kind: str
    points: list[Coordinate] = field(default_factory=list)
    style: PolylineStyle | None = None
    icon: IconContent | None = None
    z_index: int = 0
    rotation: float = 0.0


class RecordingSurface:
    """In-memory surface that records layers and camera commands.

    Used by the headless demo and by tests in place of a real map widget.
    """

    def __init__(self, zoom: float = 12.0, center: Coordinate = (0.0, 0.0)):
        self.layers: dict[LayerId, RecordedLayer] = {}
        self.zoom = zoom
        self.center = center
        self.alive = True
        self.camera_log: list[tuple[str, Any]] = []
        self.markers_created = 0
        self._ids = itertools.count(1)

    def _layer(self, layer: LayerId) -> RecordedLayer:
        if not self.alive:
            raise SurfaceUnavailableError("surface destroyed")
        # Layers removed from the map keep accepting updates, like detached Leaflet layers
        return self.layers.get(layer) or RecordedLayer(kind="detached")

    def is_alive(self) -> bool:
        return self.alive

    def destroy(self) -> None:
        self.alive = False

    def add_polyline(self, points: Sequence[Coordinate], style: PolylineStyle) -> LayerId:
        layer_id = next(self._ids)
        self.layers[layer_id] = RecordedLayer(kind="polyline", points=list(points), style=style)
        return layer_id

    def set_polyline_points(self, layer: LayerId, points: Sequence[Coordinate]) -> None:
        self._layer(layer).points = list(points)

    def add_marker(self, position: Coordinate, icon: IconContent, z_index: int = 0) -> LayerId:
        layer_id = next(self._ids)
        self.layers[layer_id] = RecordedLayer(kind="marker", points=[position], icon=icon, z_index=z_index)
        self.markers_created += 1
        return layer_id

    def move_marker(self, layer: LayerId, position: Coordinate) -> None:
        self._layer(layer).points = [position]

    def set_marker_rotation(self, layer: LayerId, degrees: float) -> None:
        self._layer(layer).rotation = degrees

    def remove_layer(self, layer: LayerId) -> None:
        self.layers.pop(layer, None)

    def get_zoom(self) -> float:
        return self.zoom

    def pan_to(self, center: Coordinate, duration_s: float = 0.0) -> None:
        self.center = center
        self.camera_log.append(("pan_to", center))

    def set_zoom(self, zoom: float, duration_s: float = 0.0) -> None:
        self.zoom = zoom
        self.camera_log.append(("set_zoom", zoom))

    def set_view(self, center: Coordinate, zoom: float, duration_s: float = 0.0) -> None:
        self.center = center
        self.zoom = zoom
        self.camera_log.append(("set_view", (center, zoom)))

    def marker_layers(self) -> dict[LayerId, RecordedLayer]:
        return {layer_id: layer for layer_id, layer in self.layers.items() if layer.kind == "marker"}

    def marker_position(self, layer: LayerId) -> Coordinate | None:
        recorded = self.layers.get(layer)
        return recorded.points[0] if recorded and recorded.points else None
