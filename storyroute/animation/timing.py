"""Segment timing that accounts for route animations.

A segment must not end before its route animations finish. Routes either run
at an explicit time (``start_time_ms`` set) or sequentially from the segment
start, in which case camera transitions, start delay and the arrival info
popup all add to the route's end time.
"""

from collections.abc import Iterable, Sequence

from storyroute.config import DEFAULT_SEGMENT_DURATION_MS, SEQUENTIAL_CAMERA_MS
from storyroute.route.models import RouteAnimationSpec


def route_end_time_ms(route: RouteAnimationSpec) -> float:
    if route.end_time_ms is not None:
        return route.end_time_ms
    if route.start_time_ms is not None:
        return route.start_time_ms + route.duration_ms

    total = 0.0
    if route.camera.before is not None:
        total += SEQUENTIAL_CAMERA_MS
    if route.start_delay_ms and route.start_delay_ms > 0:
        total += route.start_delay_ms
    total += route.duration_ms
    if route.camera.after is not None:
        total += SEQUENTIAL_CAMERA_MS
    if route.show_location_info_on_arrival and route.location_info_display_ms:
        total += route.location_info_display_ms
    return total


def max_route_end_time_ms(routes: Iterable[RouteAnimationSpec]) -> float:
    """Latest end time among ``routes``, or 0 when there are none."""
    return max((route_end_time_ms(route) for route in routes), default=0.0)


def effective_segment_duration_ms(base_ms: float | None, routes: Sequence[RouteAnimationSpec]) -> float:
    """Segment duration stretched to cover every route animation.

    Args:
        base_ms: The segment's own duration; falsy means the default of 5000 ms
        routes: Route animations belonging to the segment
    """
    return max(base_ms or DEFAULT_SEGMENT_DURATION_MS, max_route_end_time_ms(routes))


def total_timeline_duration_ms(segments: Iterable[tuple[float | None, Sequence[RouteAnimationSpec]]]) -> float:
    """Sum of effective durations over (base_ms, routes) pairs."""
    return sum(effective_segment_duration_ms(base_ms, routes) for base_ms, routes in segments)


def route_extension_ms(base_ms: float | None, routes: Sequence[RouteAnimationSpec]) -> float:
    return max(0.0, max_route_end_time_ms(routes) - (base_ms or DEFAULT_SEGMENT_DURATION_MS))


def has_extended_routes(base_ms: float | None, routes: Sequence[RouteAnimationSpec]) -> bool:
    return max_route_end_time_ms(routes) > (base_ms or DEFAULT_SEGMENT_DURATION_MS)
