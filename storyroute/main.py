"""Headless demo: play a two-leg journey as one chained marker animation."""

import argparse

from storyroute.animation.boundary import RoutePlayback
from storyroute.animation.chains import ChainIndex
from storyroute.animation.pool import ContinuityPool
from storyroute.animation.scheduler import ManualFrameScheduler
from storyroute.animation.surface import RecordingSurface, SurfaceHandle
from storyroute.config import IconType, RouteMode
from storyroute.logging import get_logger
from storyroute.route.builder import MappingWaypointResolver, RouteResolver, StraightLineRouter, build_route_path
from storyroute.route.errors import RouteResolutionError
from storyroute.route.models import CameraState, CameraTransition, IconDescriptor, RouteAnimationSpec
from storyroute.route.osrm import OsrmRouter

LOCATIONS: dict[str, tuple[float, float]] = {
    "marienplatz": (11.5755, 48.1374),
    "odeonsplatz": (11.5775, 48.1425),
    "englischer-garten": (11.5923, 48.1527),
}

JOURNEY: list[tuple[str, list[str]]] = [
    ("leg-1", ["marienplatz", "odeonsplatz"]),
    ("leg-2", ["odeonsplatz", "englischer-garten"]),
]


def _build_specs(mode: RouteMode, router: RouteResolver, duration_ms: float) -> list[RouteAnimationSpec]:
    resolver = MappingWaypointResolver(LOCATIONS)
    specs: list[RouteAnimationSpec] = []
    for index, (route_id, waypoints) in enumerate(JOURNEY):
        path = build_route_path(waypoints, mode, resolver, router)
        specs.append(
            RouteAnimationSpec(
                route_id=route_id,
                segment_id=f"segment-{index}",
                origin=LOCATIONS[waypoints[0]],
                destination=LOCATIONS[waypoints[-1]],
                path=tuple(path),
                duration_ms=duration_ms,
                icon=IconDescriptor(icon_type=IconType.CAR),
                follow_camera=True,
                follow_zoom=15,
                camera=CameraTransition(before=CameraState(center=LOCATIONS[waypoints[0]], zoom=14)),
            )
        )
    return specs


def main(argv: list[str] | None = None) -> None:
    """Build the demo journey and play it frame by frame on an in-memory surface."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--road", action="store_true", help="route along roads with OSRM instead of straight lines")
    parser.add_argument("--duration-ms", type=float, default=2000.0, help="duration of each leg")
    args = parser.parse_args(argv)

    logger = get_logger(__name__)
    mode = RouteMode.ROAD if args.road else RouteMode.STRAIGHT
    router: RouteResolver = OsrmRouter() if args.road else StraightLineRouter()
    logger.info("Starting route animation demo", mode=mode.value, legs=len(JOURNEY))

    try:
        specs = _build_specs(mode, router, args.duration_ms)
    except RouteResolutionError:
        logger.exception("Could not build demo journey")
        raise SystemExit(1) from None

    surface = RecordingSurface(center=LOCATIONS["marienplatz"], zoom=13)
    handle = SurfaceHandle(surface)
    scheduler = ManualFrameScheduler()
    pool = ContinuityPool(handle)
    chains = ChainIndex.from_routes(specs)

    playbacks: list[RoutePlayback] = []

    def _hand_off(index: int) -> None:
        runner = playbacks[index].runner
        logger.info("Leg completed", route_id=specs[index].route_id, marker=runner.marker if runner else None)
        if index + 1 < len(playbacks):
            playbacks[index + 1].set_playing(True)

    for index, spec in enumerate(specs):
        playback = RoutePlayback(
            spec,
            scheduler,
            handle,
            pool=pool,
            chains=chains,
            skip_initial_camera=index > 0,
            on_complete=lambda index=index: _hand_off(index),
        )
        playback.mount()
        playbacks.append(playback)

    playbacks[0].set_playing(True)
    frames = scheduler.run_until_idle(step_ms=16)

    logger.info(
        "Demo finished",
        frames=frames,
        chains=len(chains),
        markers_created=surface.markers_created,
        markers_on_map=len(surface.marker_layers()),
        camera_commands=len(surface.camera_log),
    )

    for playback in playbacks:
        playback.unmount()


if __name__ == "__main__":
    main()
