"""Marker icon rendering."""

from typing import Protocol

from storyroute.animation.surface import IconContent
from storyroute.config import IconType
from storyroute.route.models import IconDescriptor

ICON_EMOJI: dict[IconType, str] = {
    IconType.CAR: "🚗",
    IconType.WALKING: "🚶",
    IconType.BIKE: "🚴",
    IconType.PLANE: "✈️",
    IconType.BUS: "🚌",
    IconType.TRAIN: "🚆",
    IconType.MOTORCYCLE: "🏍️",
    IconType.BOAT: "⛵",
    IconType.TRUCK: "🚛",
    IconType.HELICOPTER: "🚁",
    IconType.CUSTOM: "📍",
}

FALLBACK_EMOJI = "📍"

_ICON_STYLE = "font-size: 24px; text-align: center; filter: drop-shadow(0 2px 4px rgba(0,0,0,0.3));"


class IconRenderer(Protocol):
    def render_icon(self, icon: IconDescriptor, rotation: float = 0.0) -> IconContent: ...


class EmojiIconRenderer:
    """Renders built-in icon types as rotated emoji and custom icons as images."""

    def render_icon(self, icon: IconDescriptor, rotation: float = 0.0) -> IconContent:
        if icon.icon_url:
            return IconContent(image_url=icon.icon_url, size=icon.size, rotation=rotation)

        emoji = ICON_EMOJI.get(icon.icon_type, FALLBACK_EMOJI)
        style = _ICON_STYLE
        if rotation:
            style += f" transform: rotate({rotation:.1f}deg);"
        return IconContent(html=f'<div style="{style}">{emoji}</div>', size=icon.size, rotation=rotation)
