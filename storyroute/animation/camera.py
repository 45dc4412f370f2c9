"""Camera follow mode and before/after transitions for one route animation."""

from storyroute.animation.scheduler import FrameScheduler
from storyroute.animation.surface import RenderingSurface, SurfaceHandle
from storyroute.config import (
    CAMERA_THROTTLE_MS,
    CAMERA_TRANSITION_GUARD_MS,
    CAMERA_TRANSITION_MS,
    FOLLOW_PAN_DURATION_S,
    FOLLOW_ZOOM_THRESHOLD,
)
from storyroute.logging import get_logger
from storyroute.route.models import CameraState, CameraTransition, Coordinate

logger = get_logger(__name__)


class CameraSynchronizer:
    """Issues camera commands for a runner.

    The before-transition runs once per play cycle, alongside the route rather
    than ahead of it. While it animates, follow pans are suppressed so the two
    do not fight. Follow pans are throttled to one per ``CAMERA_THROTTLE_MS``.
    """

    def __init__(
        self,
        surface: SurfaceHandle,
        scheduler: FrameScheduler,
        transition: CameraTransition | None = None,
        follow: bool = False,
        follow_zoom: float | None = None,
        skip_initial_camera: bool = False,
    ):
        self._surface = surface
        self._scheduler = scheduler
        self.transition = transition or CameraTransition()
        self.follow_enabled = follow
        self.follow_zoom = follow_zoom
        self.skip_initial_camera = skip_initial_camera

        self._before_applied = skip_initial_camera
        self._after_applied = False
        self._transition_until: float | None = None
        self._last_pan_ms: float | None = None

    @property
    def is_transitioning(self) -> bool:
        return self._transition_until is not None and self._scheduler.now() < self._transition_until

    def reset(self) -> None:
        """Start a fresh play cycle."""
        self._before_applied = self.skip_initial_camera
        self._after_applied = False
        self._transition_until = None
        self._last_pan_ms = None

    def apply_before(self) -> bool:
        """Apply the before-transition if this cycle has not applied it yet.

        Returns:
            True if a camera command was issued
        """
        if self._before_applied:
            return False
        before = self.transition.before
        if before is None:
            self._before_applied = True
            return False
        if not self._set_view(before):
            return False

        self._before_applied = True
        self._transition_until = self._scheduler.now() + CAMERA_TRANSITION_GUARD_MS
        logger.debug("Applied camera state before route", center=before.center, zoom=before.zoom)
        return True

    def apply_after(self) -> bool:
        if self._after_applied:
            return False
        after = self.transition.after
        if after is None:
            self._after_applied = True
            return False
        if not self._set_view(after):
            return False

        self._after_applied = True
        logger.debug("Applied camera state after route", center=after.center, zoom=after.zoom)
        return True

    def follow(self, position: Coordinate) -> bool:
        """Pan toward ``position`` when follow mode allows it.

        Returns:
            True if a pan was issued
        """
        if not self.follow_enabled or self.is_transitioning:
            return False
        now = self._scheduler.now()
        if self._last_pan_ms is not None and now - self._last_pan_ms < CAMERA_THROTTLE_MS:
            return False

        def _pan(surface: RenderingSurface) -> bool:
            if self.follow_zoom is not None and abs(surface.get_zoom() - self.follow_zoom) > FOLLOW_ZOOM_THRESHOLD:
                surface.set_zoom(self.follow_zoom, duration_s=FOLLOW_PAN_DURATION_S)
            surface.pan_to(position, duration_s=FOLLOW_PAN_DURATION_S)
            return True

        if not self._surface.with_surface(_pan, default=False):
            return False
        self._last_pan_ms = now
        return True

    def _set_view(self, state: CameraState) -> bool:
        def _apply(surface: RenderingSurface) -> bool:
            surface.set_view(state.center, state.zoom, duration_s=CAMERA_TRANSITION_MS / 1000)
            return True

        return bool(self._surface.with_surface(_apply, default=False))
