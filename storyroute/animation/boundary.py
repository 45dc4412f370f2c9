"""Host-facing wrapper around one route animation.

``RoutePlayback`` is what a story map host talks to: it decides whether the
route rides a shared chain marker, builds the runner and its camera, and
translates the host's mount/unmount and is-playing signals into runner calls.
"""

from dataclasses import replace

from storyroute.animation.camera import CameraSynchronizer
from storyroute.animation.chains import ChainIndex
from storyroute.animation.icons import IconRenderer
from storyroute.animation.pool import ContinuityPool
from storyroute.animation.runner import AnimationRunner, CompleteCallback, PositionCallback
from storyroute.animation.scheduler import FrameScheduler
from storyroute.animation.surface import SurfaceHandle
from storyroute.logging import get_logger
from storyroute.route.models import Phase, RouteAnimationSpec

logger = get_logger(__name__)


class RoutePlayback:
    def __init__(
        self,
        spec: RouteAnimationSpec,
        scheduler: FrameScheduler,
        surface: SurfaceHandle,
        pool: ContinuityPool | None = None,
        chains: ChainIndex | None = None,
        icons: IconRenderer | None = None,
        skip_initial_camera: bool = False,
        on_position_update: PositionCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ):
        self.spec = replace(spec, chain_id=self._resolve_chain_id(spec, pool, chains))
        self.is_playing = False
        self._scheduler = scheduler
        self._surface = surface
        self._pool = pool
        self._icons = icons
        self._skip_initial_camera = skip_initial_camera
        self._on_position_update = on_position_update
        self._on_complete = on_complete
        self._runner: AnimationRunner | None = None

    @staticmethod
    def _resolve_chain_id(spec: RouteAnimationSpec, pool: ContinuityPool | None, chains: ChainIndex | None) -> str | None:
        if pool is None:
            return None
        if chains is not None:
            return chains.chain_id_for(spec.route_id) if chains.is_part_of_chain(spec.route_id) else None
        return spec.chain_id

    @property
    def runner(self) -> AnimationRunner | None:
        return self._runner

    @property
    def is_mounted(self) -> bool:
        return self._runner is not None

    @property
    def phase(self) -> Phase:
        return self._runner.state.phase if self._runner else Phase.IDLE

    def mount(self) -> AnimationRunner:
        """Create the runner and draw its layers, joining the chain if it has one.

        Starts playing right away if the host already asked to play.
        """
        if self._runner is None:
            camera = CameraSynchronizer(
                self._surface,
                self._scheduler,
                transition=self.spec.camera,
                follow=self.spec.follow_camera,
                follow_zoom=self.spec.follow_zoom,
                skip_initial_camera=self._skip_initial_camera,
            )
            self._runner = AnimationRunner(
                self.spec,
                self._scheduler,
                self._surface,
                pool=self._pool if self.spec.chain_id else None,
                camera=camera,
                icons=self._icons,
                on_position_update=self._on_position_update,
                on_complete=self._on_complete,
            )
            attached = self._runner.attach()
            logger.debug(
                "Mounted route playback",
                route_id=self.spec.route_id,
                chain_id=self.spec.chain_id,
                layers_ready=attached,
            )
        if self.is_playing:
            self._runner.play()
        return self._runner

    def unmount(self) -> None:
        if self._runner is None:
            return
        self._runner.dispose()
        self._runner = None
        logger.debug("Unmounted route playback", route_id=self.spec.route_id)

    def set_playing(self, playing: bool) -> None:
        self.is_playing = playing
        if self._runner is None:
            return
        if playing:
            self._runner.play()
        else:
            self._runner.stop()
