"""Shared marker registry for chained route animations.

Routes that form a chain (A→B, then B→C) share one marker so the vehicle never
disappears between segments. The pool holds at most one marker per chain id.
Members register when they obtain the marker and unregister on release; the
marker is removed from the surface only when the last member leaves.
"""

from dataclasses import dataclass, field

from storyroute.animation.icons import EmojiIconRenderer, IconRenderer
from storyroute.animation.surface import LayerId, RenderingSurface, SurfaceHandle
from storyroute.config import MARKER_Z_INDEX
from storyroute.logging import get_logger
from storyroute.route.errors import ChainInvariantError
from storyroute.route.models import Coordinate, IconDescriptor

logger = get_logger(__name__)


@dataclass
class ChainEntry:
    marker: LayerId | None = None
    owner: str | None = None
    members: set[str] = field(default_factory=set)
    animating: dict[str, bool] = field(default_factory=dict)
    position: Coordinate | None = None

    @property
    def is_animating(self) -> bool:
        return any(self.animating.values())


class ContinuityPool:
    """Registry of one shared marker per chain, injected into every runner of a map."""

    def __init__(self, surface: SurfaceHandle, icons: IconRenderer | None = None):
        self._surface = surface
        self._icons = icons or EmojiIconRenderer()
        self._entries: dict[str, ChainEntry] = {}

    def __len__(self) -> int:
        return sum(1 for entry in self._entries.values() if entry.marker is not None)

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._entries

    def entry(self, chain_id: str) -> ChainEntry | None:
        return self._entries.get(chain_id)

    def marker_for(self, chain_id: str) -> LayerId | None:
        entry = self._entries.get(chain_id)
        return entry.marker if entry else None

    def get_or_create_marker(
        self,
        chain_id: str,
        visual: IconDescriptor,
        initial_position: Coordinate,
        member_id: str,
    ) -> LayerId | None:
        """Return the chain's marker, creating it on first use.

        An existing marker is returned untouched. Returns None while the surface
        is unavailable; the member stays registered and can retry.

        Raises:
            ChainInvariantError: If a second marker appears for the same chain
        """
        entry = self._entries.setdefault(chain_id, ChainEntry())
        entry.members.add(member_id)
        entry.animating.setdefault(member_id, False)

        if entry.marker is not None:
            logger.debug("Reusing chain marker", chain_id=chain_id, member_id=member_id, marker=entry.marker)
            return entry.marker

        icon = self._icons.render_icon(visual)

        def _create(surface: RenderingSurface) -> LayerId:
            return surface.add_marker(initial_position, icon, z_index=MARKER_Z_INDEX)

        marker = self._surface.with_surface(_create)
        if marker is None:
            return None
        if entry.marker is not None:
            self._surface.with_surface(lambda surface: surface.remove_layer(marker))
            raise ChainInvariantError(f"Chain {chain_id} already has marker {entry.marker}, refusing {marker}")

        entry.marker = marker
        entry.position = initial_position
        logger.info("Created chain marker", chain_id=chain_id, member_id=member_id, marker=marker)
        return marker

    def update_position(self, chain_id: str, position: Coordinate, member_id: str) -> bool:
        """Move the chain marker on behalf of ``member_id``.

        Once a member owns the chain only that member may move the marker.

        Returns:
            True if the move was accepted
        """
        entry = self._entries.get(chain_id)
        if entry is None or entry.marker is None:
            return False
        if entry.owner is not None and entry.owner != member_id:
            return False

        marker = entry.marker
        entry.position = position
        self._surface.with_surface(lambda surface: surface.move_marker(marker, position))
        return True

    def set_member_animating(self, chain_id: str, member_id: str, animating: bool) -> None:
        entry = self._entries.get(chain_id)
        if entry is None:
            return
        entry.animating[member_id] = animating
        if animating:
            if entry.owner not in (None, member_id):
                logger.debug("Chain ownership handed off", chain_id=chain_id, previous=entry.owner, owner=member_id)
            entry.owner = member_id
        elif entry.owner == member_id:
            entry.owner = None

    def is_owner(self, chain_id: str, member_id: str) -> bool:
        entry = self._entries.get(chain_id)
        return entry is not None and entry.owner == member_id

    def release(self, chain_id: str, member_id: str) -> None:
        """Unregister a member; the marker is removed once no members remain. Idempotent."""
        entry = self._entries.get(chain_id)
        if entry is None:
            return
        entry.members.discard(member_id)
        entry.animating.pop(member_id, None)
        if entry.owner == member_id:
            entry.owner = None
        if entry.members:
            return

        del self._entries[chain_id]
        marker = entry.marker
        if marker is not None:
            self._surface.with_surface(lambda surface: surface.remove_layer(marker))
        logger.info("Released chain marker", chain_id=chain_id, marker=marker)

    def clear(self) -> None:
        """Drop every chain, removing markers from the surface where possible."""
        for chain_id, entry in list(self._entries.items()):
            marker = entry.marker
            if marker is not None:
                self._surface.with_surface(lambda surface, m=marker: surface.remove_layer(m))
            logger.debug("Cleared chain", chain_id=chain_id)
        self._entries.clear()
