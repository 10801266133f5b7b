"""
Matplotlib render surface.

Draws a depth-sorted render list onto an `Axes` in list order, so the
painter's ordering computed by the scene builder is preserved through
`zorder`. Screen coordinates are pixels with y pointing down.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.colors import to_rgba
from matplotlib.patches import Circle

from nexus_view.models.items import (
    ActivationControlItem,
    Highlight,
    LayerControlItem,
    LinkItem,
    NodeItem,
    RenderItem,
)
from nexus_view.utils.style import (
    DEFAULT_ANIM_WIDTH,
    DEFAULT_NODE_SIZE,
    DEFAULT_TEXT_SIZE,
    NODE_COLOR,
    highlight_color,
    link_opacity,
    link_width,
    node_fill_opacity,
    node_radius,
    show_label,
    weight_color,
)

BACKGROUND = "#020617"
# Activation mini-plot box (width, height) and its gap above the label, in pixels at scale 1
MINI_PLOT_SIZE = (40.0, 20.0)
MINI_PLOT_GAP = 14.0


def _draw_link(ax: Axes, item: LinkItem, z: int, anim_width: float) -> None:
    color = highlight_color(item.highlight, weight_color(item.weight))
    ax.plot(
        [item.pos.x, item.to_pos.x],
        [item.pos.y, item.to_pos.y],
        color=color,
        linewidth=link_width(item.weight, item.pos.scale, item.highlight, anim_width),
        alpha=link_opacity(item.weight, item.highlight),
        linestyle="--" if item.highlight != Highlight.NONE else "-",
        zorder=z,
    )


def _draw_node(ax: Axes, item: NodeItem, z: int, node_size: float, text_size: float) -> None:
    active = item.highlight in (Highlight.FORWARD, Highlight.BACKWARD)
    color = highlight_color(item.highlight, NODE_COLOR)
    radius = node_radius(item.pos.scale, active, node_size)
    ax.add_patch(
        Circle(
            (item.pos.x, item.pos.y),
            radius,
            facecolor=to_rgba(color, node_fill_opacity(item.value, item.is_input)),
            edgecolor=color,
            linewidth=2 * item.pos.scale,
            zorder=z,
        )
    )
    if show_label(item.pos.scale, text_size):
        ax.text(
            item.pos.x,
            item.pos.y + radius * 1.5 + 5,
            f"{item.value:.2f}",
            ha="center",
            va="top",
            color="white",
            fontsize=text_size * item.pos.scale,
            zorder=z,
        )


def _draw_layer_control(ax: Axes, item: LayerControlItem, z: int, text_size: float) -> None:
    ax.text(
        item.pos.x,
        item.pos.y,
        f"{item.rows}x{item.cols}",
        ha="center",
        va="center",
        color="#94a3b8",
        fontsize=max(1.0, text_size * 0.8 * item.pos.scale),
        bbox={"facecolor": "black", "alpha": 0.5, "edgecolor": "#334155"},
        zorder=z,
    )


def _mini_plot(item: ActivationControlItem) -> Tuple[np.ndarray, np.ndarray, float, float]:
    """Map the sampled curve and the marker into a box sitting on top of the label."""
    curve = np.asarray(item.curve, dtype=float)
    xs, ys = curve[:, 0], curve[:, 1]
    w, h = MINI_PLOT_SIZE[0] * item.pos.scale, MINI_PLOT_SIZE[1] * item.pos.scale
    x_lo, x_hi = float(xs.min()), float(xs.max())
    y_lo, y_hi = float(ys.min()), float(ys.max())
    x_span = (x_hi - x_lo) or 1.0
    y_span = (y_hi - y_lo) or 1.0
    left = item.pos.x - w / 2.0
    bottom = item.pos.y - MINI_PLOT_GAP * item.pos.scale

    def to_screen(x, y):
        return left + (x - x_lo) / x_span * w, bottom - (y - y_lo) / y_span * h

    px, py = to_screen(xs, ys)
    mx, my = to_screen(min(max(item.marker_x, x_lo), x_hi), min(max(item.marker_y, y_lo), y_hi))
    return px, py, float(mx), float(my)


def _draw_activation_control(ax: Axes, item: ActivationControlItem, z: int, text_size: float) -> None:
    if len(item.curve) > 1:
        px, py, mx, my = _mini_plot(item)
        ax.plot(px, py, color=item.color, linewidth=1.5 * item.pos.scale, zorder=z, gid="activation-curve")
        ax.plot([mx], [my], "o", color="white", markersize=3 * item.pos.scale, zorder=z, gid="activation-marker")
    ax.text(
        item.pos.x,
        item.pos.y,
        item.name,
        ha="center",
        va="bottom",
        color=item.color,
        fontsize=max(1.0, text_size * 0.8 * item.pos.scale),
        zorder=z,
    )


def draw_scene(
    items: Iterable[RenderItem],
    ax: Optional[Axes] = None,
    node_size: float = DEFAULT_NODE_SIZE,
    text_size: float = DEFAULT_TEXT_SIZE,
    anim_width: float = DEFAULT_ANIM_WIDTH,
    size: Tuple[float, float] = (800.0, 600.0),
) -> Axes:
    """
    Draw `items` (already depth-sorted) and return the axes.

    Args:
        items: Render list from the scene builder
        ax: Target axes; a new figure is created when omitted
        node_size: Base node radius in pixels
        text_size: Base label size; 0 hides value labels
        anim_width: Stroke width of highlighted links
        size: Viewport (width, height) in pixels
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(size[0] / 100.0, size[1] / 100.0))
    ax.set_facecolor(BACKGROUND)
    for z, item in enumerate(items, start=1):
        if isinstance(item, LinkItem):
            _draw_link(ax, item, z, anim_width)
        elif isinstance(item, NodeItem):
            _draw_node(ax, item, z, node_size, text_size)
        elif isinstance(item, LayerControlItem):
            _draw_layer_control(ax, item, z, text_size)
        elif isinstance(item, ActivationControlItem):
            _draw_activation_control(ax, item, z, text_size)
    ax.set_xlim(0, size[0])
    ax.set_ylim(size[1], 0)
    ax.set_aspect("equal")
    ax.set_axis_off()
    return ax


def save_scene_png(items: Iterable[RenderItem], path: str, **kwargs) -> None:
    """Render `items` to a PNG file."""
    ax = draw_scene(items, **kwargs)
    fig = ax.figure
    fig.savefig(path, facecolor=BACKGROUND)
    plt.close(fig)
