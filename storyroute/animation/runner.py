"""Per-route animation driver.

An ``AnimationRunner`` owns the progress clock of one route animation. Each
frame it computes progress from elapsed time, moves the marker (its own or the
chain's shared one), truncates the visited line and rotates the marker to the
current heading. State moves IDLE → PLAYING → COMPLETED, and back to IDLE on
stop.
"""

from collections.abc import Callable

from storyroute.animation.camera import CameraSynchronizer
from storyroute.animation.icons import EmojiIconRenderer, IconRenderer
from storyroute.animation.pool import ContinuityPool
from storyroute.animation.scheduler import FrameScheduler
from storyroute.animation.surface import LayerId, PolylineStyle, RenderingSurface, SurfaceHandle
from storyroute.config import MARKER_Z_INDEX, ROUTE_LINE_DASH, ROUTE_LINE_OPACITY
from storyroute.logging import get_logger
from storyroute.route.geodesy import PathGeometry
from storyroute.route.models import Coordinate, Phase, RouteAnimationSpec, RunnerState

logger = get_logger(__name__)

PositionCallback = Callable[[Coordinate, float], None]
CompleteCallback = Callable[[], None]


class AnimationRunner:
    """Drives one route animation on a rendering surface."""

    def __init__(
        self,
        spec: RouteAnimationSpec,
        scheduler: FrameScheduler,
        surface: SurfaceHandle,
        pool: ContinuityPool | None = None,
        camera: CameraSynchronizer | None = None,
        icons: IconRenderer | None = None,
        member_id: str | None = None,
        on_position_update: PositionCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ):
        self.spec = spec
        self.member_id = member_id or spec.route_id
        self.state = RunnerState()
        self.geometry = PathGeometry(spec.path)
        self.on_position_update = on_position_update
        self.on_complete = on_complete

        self._scheduler = scheduler
        self._surface = surface
        self._pool = pool
        self._camera = camera or CameraSynchronizer(surface, scheduler, transition=spec.camera)
        self._icons = icons or EmojiIconRenderer()

        self._frame_handle: int | None = None
        self._route_line: LayerId | None = None
        self._visited_line: LayerId | None = None
        self._marker: LayerId | None = None

    @property
    def chain_id(self) -> str | None:
        return self.spec.chain_id if self._pool is not None else None

    @property
    def marker(self) -> LayerId | None:
        return self._marker

    @property
    def visited_line(self) -> LayerId | None:
        return self._visited_line

    @property
    def camera(self) -> CameraSynchronizer:
        return self._camera

    @property
    def uses_shared_marker(self) -> bool:
        return self.chain_id is not None

    @property
    def has_pending_frame(self) -> bool:
        return self._frame_handle is not None

    def attach(self) -> bool:
        """Draw the route and join the chain without starting playback.

        Returns:
            True once every layer exists; play() and later frames retry otherwise
        """
        return self._ensure_layers()

    def play(self) -> None:
        """Start or resume playback. A completed runner stays completed until stopped."""
        if self.state.is_playing:
            return
        if self.state.has_completed:
            logger.debug("Route already completed, ignoring play", route_id=self.spec.route_id)
            return
        if not self.geometry.is_animatable:
            logger.warning("Route path has fewer than 2 valid points", route_id=self.spec.route_id)
            return

        self.state.is_playing = True
        self.state.phase = Phase.PLAYING
        self.state.start_timestamp = None
        self._camera.reset()

        # Chain membership has to exist before ownership is claimed
        self._ensure_layers()
        if self.chain_id is not None:
            self._pool.set_member_animating(self.chain_id, self.member_id, True)  # pyright: ignore[reportOptionalMemberAccess]
        self._camera.apply_before()
        logger.info(
            "Route animation started",
            route_id=self.spec.route_id,
            chain_id=self.chain_id,
            duration_ms=self.spec.duration_ms,
            length_km=round(self.geometry.length_km, 3),
        )
        self._request_frame()

    def stop(self) -> None:
        """Cancel playback and reset to the origin. Safe to call repeatedly.

        A shared chain marker is only moved back when this member was driving
        it, to this route's own origin. Stopping every leg of a chain therefore
        leaves the marker at the origin of the leg that was playing last, not at
        the start of the journey.
        """
        if self._frame_handle is not None:
            self._scheduler.cancel(self._frame_handle)
            self._frame_handle = None

        was_owner = self.chain_id is not None and self._pool.is_owner(self.chain_id, self.member_id)  # pyright: ignore[reportOptionalMemberAccess]
        was_active = self.state.is_playing or self.state.has_completed or self.state.progress > 0

        self.state.is_playing = False
        self.state.has_completed = False
        self.state.progress = 0.0
        self.state.start_timestamp = None
        self.state.phase = Phase.IDLE
        self._camera.reset()

        if self.chain_id is not None:
            self._pool.set_member_animating(self.chain_id, self.member_id, False)  # pyright: ignore[reportOptionalMemberAccess]
            if was_owner:
                self._pool.update_position(self.chain_id, self.spec.origin, self.member_id)  # pyright: ignore[reportOptionalMemberAccess]
        elif self._marker is not None:
            marker = self._marker
            self._surface.with_surface(lambda surface: surface.move_marker(marker, self.spec.origin))

        if self._visited_line is not None:
            visited = self._visited_line
            self._surface.with_surface(lambda surface: surface.set_polyline_points(visited, []))

        if was_active:
            logger.info("Route animation stopped", route_id=self.spec.route_id)

    def dispose(self) -> None:
        """Stop and remove every layer this runner added, releasing its chain membership."""
        self.stop()
        own_layers = [self._route_line, self._visited_line]
        if self.chain_id is None:
            own_layers.append(self._marker)
        for layer in own_layers:
            if layer is not None:
                self._surface.with_surface(lambda surface, layer=layer: surface.remove_layer(layer))
        if self.chain_id is not None:
            self._pool.release(self.chain_id, self.member_id)  # pyright: ignore[reportOptionalMemberAccess]
        self._route_line = self._visited_line = self._marker = None

    def _request_frame(self) -> None:
        self._frame_handle = self._scheduler.request(self._on_frame)

    def _ensure_layers(self) -> bool:
        """Create missing layers; returns True once every layer exists."""
        spec = self.spec

        if self._route_line is None:
            style = PolylineStyle(
                color=spec.route_color,
                weight=spec.route_width,
                opacity=ROUTE_LINE_OPACITY,
                dash_array=ROUTE_LINE_DASH,
            )
            self._route_line = self._surface.with_surface(lambda surface: surface.add_polyline(self.geometry.points, style))

        if self._visited_line is None:
            style = PolylineStyle(color=spec.visited_color, weight=spec.route_width + 1)
            self._visited_line = self._surface.with_surface(lambda surface: surface.add_polyline([], style))

        if self._marker is None:
            if self.chain_id is not None:
                self._marker = self._pool.get_or_create_marker(  # pyright: ignore[reportOptionalMemberAccess]
                    self.chain_id, spec.icon, spec.origin, self.member_id
                )
            else:
                icon = self._icons.render_icon(spec.icon)
                self._marker = self._surface.with_surface(
                    lambda surface: surface.add_marker(spec.origin, icon, z_index=MARKER_Z_INDEX)
                )

        return None not in (self._route_line, self._visited_line, self._marker)

    def _on_frame(self, now: float) -> None:
        self._frame_handle = None
        if not self.state.is_playing:
            return
        if not self._ensure_layers():
            self._request_frame()
            return

        if self.state.start_timestamp is None:
            self.state.start_timestamp = now
        elapsed = now - self.state.start_timestamp
        duration = self.spec.duration_ms
        progress = 1.0 if duration <= 0 else min(max(elapsed / duration, 0.0), 1.0)
        self.state.progress = progress

        position = self.geometry.position_at(progress)
        if position is None:
            self._request_frame()
            return

        drives_marker = self._move_marker(position)
        if self.on_position_update is not None:
            self.on_position_update(position, progress)
        self._update_visuals(progress)

        self._camera.apply_before()
        if drives_marker:
            self._camera.follow(position)

        if progress >= 1.0:
            # Final position, visited line and after-camera must land on a live surface
            if not self._surface.is_usable():
                self._request_frame()
                return
            self._complete()
        else:
            self._request_frame()

    def _move_marker(self, position: Coordinate) -> bool:
        """Returns False when another chain member owns the shared marker."""
        if self.chain_id is not None:
            return self._pool.update_position(self.chain_id, position, self.member_id)  # pyright: ignore[reportOptionalMemberAccess]
        marker = self._marker
        self._surface.with_surface(lambda surface: surface.move_marker(marker, position))  # pyright: ignore[reportArgumentType]
        return True

    def _update_visuals(self, progress: float) -> None:
        visited = self.geometry.visited(progress)
        heading = self.geometry.bearing_at(progress)
        visited_line = self._visited_line
        marker = self._marker
        may_rotate = self.chain_id is None or self._pool.is_owner(self.chain_id, self.member_id)  # pyright: ignore[reportOptionalMemberAccess]

        def _apply(surface: RenderingSurface) -> None:
            surface.set_polyline_points(visited_line, visited)  # pyright: ignore[reportArgumentType]
            if heading is not None and may_rotate:
                surface.set_marker_rotation(marker, heading)  # pyright: ignore[reportArgumentType]

        self._surface.with_surface(_apply)

    def _complete(self) -> None:
        self.state.progress = 1.0
        self.state.is_playing = False
        self.state.has_completed = True
        self.state.phase = Phase.COMPLETED
        if self.chain_id is not None:
            self._pool.set_member_animating(self.chain_id, self.member_id, False)  # pyright: ignore[reportOptionalMemberAccess]
        self._camera.apply_after()
        logger.info("Route animation completed", route_id=self.spec.route_id, chain_id=self.chain_id)
        if self.on_complete is not None:
            self.on_complete()
