from __future__ import annotations

from nexus_view.models.items import Highlight

POSITIVE_COLOR = "#00f3ff"
NEGATIVE_COLOR = "#ff0055"
FORWARD_COLOR = "#00ff00"
BACKWARD_COLOR = "#ff0000"
UPDATE_COLOR = "#ffff00"
NODE_COLOR = "#00f3ff"

DEFAULT_NODE_SIZE = 12.0
DEFAULT_TEXT_SIZE = 10.0
DEFAULT_ANIM_WIDTH = 4.0


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def weight_color(weight: float) -> str:
    return POSITIVE_COLOR if weight > 0 else NEGATIVE_COLOR


def highlight_color(highlight: Highlight, fallback: str) -> str:
    if highlight == Highlight.FORWARD:
        return FORWARD_COLOR
    if highlight == Highlight.BACKWARD:
        return BACKWARD_COLOR
    if highlight == Highlight.UPDATE:
        return UPDATE_COLOR
    return fallback


def link_width(weight: float, scale: float, highlight: Highlight, anim_width: float = DEFAULT_ANIM_WIDTH) -> float:
    """Stroke width: fixed when highlighted, else proportional to |w| with a 0.5 floor."""
    base = anim_width if highlight != Highlight.NONE else max(0.5, abs(weight) * 3.0)
    return base * scale


def link_opacity(weight: float, highlight: Highlight) -> float:
    if highlight != Highlight.NONE:
        return 0.9
    return min(1.0, abs(weight)) * 0.3


def node_fill_opacity(value: float, is_input: bool) -> float:
    """Inputs are always opaque; other nodes brighten with their value."""
    return 1.0 if is_input else clamp01(0.2 + value * 0.8)


def node_radius(scale: float, active: bool, node_size: float = DEFAULT_NODE_SIZE) -> float:
    return (node_size * 1.3 if active else node_size) * scale


def show_label(scale: float, text_size: float = DEFAULT_TEXT_SIZE) -> bool:
    """Value labels are hidden on far (small) nodes."""
    return scale > 0.4 and text_size > 0
