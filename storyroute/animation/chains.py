"""Detection of route chains: consecutive routes that continue each other."""

from collections.abc import Iterable, Mapping

from storyroute.config import CHAIN_LOCATION_TOLERANCE
from storyroute.logging import get_logger
from storyroute.route.models import Coordinate, RouteAnimationSpec

logger = get_logger(__name__)


def locations_match(a: Coordinate, b: Coordinate, tolerance: float = CHAIN_LOCATION_TOLERANCE) -> bool:
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def detect_route_chains(routes: Iterable[RouteAnimationSpec]) -> dict[str, str]:
    """Group routes into chains that can share one marker.

    Routes are visited in (segment_id, start_time_ms) order. A route joins the
    first chain whose last route ends where this one starts and uses the same
    icon type; otherwise it opens a new chain.

    Args:
        routes: Route animations of a story map, in any order

    Returns:
        Mapping of route id to chain id (``chain-{index}-{icon_type}``)
    """
    ordered = sorted(routes, key=lambda route: (route.segment_id, route.start_time_ms or 0))
    chains: list[list[RouteAnimationSpec]] = []

    for route in ordered:
        for chain in chains:
            last = chain[-1]
            if locations_match(last.destination, route.origin) and last.icon.icon_type == route.icon.icon_type:
                chain.append(route)
                break
        else:
            chains.append([route])

    mapping: dict[str, str] = {}
    for index, chain in enumerate(chains):
        chain_id = f"chain-{index}-{chain[0].icon.icon_type.value}"
        for route in chain:
            mapping[route.route_id] = chain_id

    logger.debug("Detected route chains", routes=len(ordered), chains=len(chains))
    return mapping


class ChainIndex:
    """Route id to chain id lookup with chain sizes."""

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = dict(mapping)
        self._sizes: dict[str, int] = {}
        for chain_id in self._mapping.values():
            self._sizes[chain_id] = self._sizes.get(chain_id, 0) + 1

    @classmethod
    def from_routes(cls, routes: Iterable[RouteAnimationSpec]) -> "ChainIndex":
        return cls(detect_route_chains(routes))

    def __len__(self) -> int:
        return len(self._sizes)

    def chain_id_for(self, route_id: str) -> str | None:
        return self._mapping.get(route_id)

    def is_part_of_chain(self, route_id: str) -> bool:
        """True only when the route shares its chain with at least one other route."""
        chain_id = self._mapping.get(route_id)
        return chain_id is not None and self._sizes[chain_id] > 1

    def members(self, chain_id: str) -> list[str]:
        return [route_id for route_id, cid in self._mapping.items() if cid == chain_id]
