"""
Scene composition.

Turns a `NetworkSnapshot` plus camera into a flat, depth-sorted list of
immutable render items. Sorting ascending by depth is the painter's
algorithm: far items come first so near items overdraw them.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import numpy as np

from nexus_core.activations import ACTIVATIONS, sample_curve
from nexus_core.config import ViewConfig
from nexus_core.enums import Activation, Phase
from nexus_core.network import NetworkSnapshot
from nexus_core.scheduler import IDLE, SchedulerState, is_layer_active, is_link_active
from nexus_core.simulation import Simulation

from nexus_view.models.camera import Camera
from nexus_view.models.items import (
    ActivationControlItem,
    EditKind,
    Highlight,
    LayerControlItem,
    LinkItem,
    NodeItem,
    RenderItem,
)
from nexus_view.projection import ProjectionEngine

UPDATE_EPSILON = 1e-3


@lru_cache(maxsize=64)
def _curve(activation: Activation, lo: float, hi: float, n: int):
    return sample_curve(activation, lo, hi, n)


def _phase_highlight(state: SchedulerState) -> Highlight:
    return Highlight.FORWARD if state.phase == Phase.FORWARD else Highlight.BACKWARD


def _node_items(
    snapshot: NetworkSnapshot,
    engine: ProjectionEngine,
    state: SchedulerState,
    inputs: Sequence[float],
    targets: Sequence[float],
) -> List[RenderItem]:
    items: List[RenderItem] = []
    last = len(engine.layer_dims) - 1
    view = engine.view
    for layer, (rows, cols) in enumerate(engine.layer_dims):
        active = is_layer_active(state, layer)
        highlight = _phase_highlight(state) if active else Highlight.NONE
        for r in range(rows):
            for c in range(cols):
                flat = r * cols + c
                pos = engine.project(layer, r, c)
                if not engine.in_front(pos):
                    continue
                value = float(snapshot.values[layer][flat])
                is_input = layer == 0
                is_output = layer == last
                bias: Optional[float] = None
                if is_input:
                    edit, edit_value = EditKind.INPUT, float(inputs[flat]) if flat < len(inputs) else 0.0
                elif is_output:
                    edit, edit_value = EditKind.TARGET, float(targets[flat]) if flat < len(targets) else 0.0
                else:
                    bias = float(snapshot.biases[layer - 1][flat])
                    edit, edit_value = EditKind.BIAS, bias
                items.append(
                    NodeItem(
                        key=f"node-{layer}-{flat}",
                        layer=layer,
                        index=flat,
                        row=r,
                        col=c,
                        value=value,
                        bias=bias,
                        is_input=is_input,
                        is_output=is_output,
                        edit=edit,
                        edit_value=edit_value,
                        highlight=highlight,
                        pos=pos,
                        depth=pos.depth,
                    )
                )

                # Controls hang off the middle column of the layer
                if c != cols // 2:
                    continue
                offset = view.control_offset * pos.scale
                ctrl = pos.shifted(dy=offset, ddepth=view.control_depth_bias)
                if r == rows - 1 and engine.in_front(ctrl):
                    items.append(
                        LayerControlItem(
                            key=f"ctrl-{layer}",
                            layer=layer,
                            rows=rows,
                            cols=cols,
                            can_grow_rows=rows < view.max_extent,
                            can_shrink_rows=rows > view.min_extent,
                            can_grow_cols=cols < view.max_extent,
                            can_shrink_cols=cols > view.min_extent,
                            pos=ctrl,
                            depth=ctrl.depth,
                        )
                    )
                ctrl = pos.shifted(dy=-offset, ddepth=view.control_depth_bias)
                if r == 0 and 0 < layer < last and engine.in_front(ctrl):
                    items.append(_activation_control(snapshot, layer, ctrl, view))
    return items


def _activation_control(snapshot: NetworkSnapshot, layer: int, pos, view: ViewConfig) -> ActivationControlItem:
    activation = snapshot.activation_for(layer)
    d = ACTIVATIONS[activation]
    pre = snapshot.pre_activations[layer]
    marker_x = float(np.mean(pre)) if pre.size else 0.0
    marker_y = float(d.func(marker_x))
    lo, hi = view.curve_range
    return ActivationControlItem(
        key=f"act-{layer}",
        layer=layer,
        activation=activation,
        name=d.name,
        color=d.color,
        curve=_curve(activation, float(lo), float(hi), int(view.curve_samples)),
        marker_x=marker_x,
        marker_y=marker_y,
        pos=pos,
        depth=pos.depth,
    )


def _link_items(snapshot: NetworkSnapshot, engine: ProjectionEngine, state: SchedulerState) -> List[RenderItem]:
    items: List[RenderItem] = []
    dims = engine.layer_dims
    for layer, weights in enumerate(snapshot.weights):
        from_rows, from_cols = dims[layer]
        to_rows, to_cols = dims[layer + 1]
        deltas = snapshot.deltas[layer]
        active = is_link_active(state, layer)
        to_points = [
            (r2 * to_cols + c2, engine.project(layer + 1, r2, c2))
            for r2 in range(to_rows)
            for c2 in range(to_cols)
        ]
        for r1 in range(from_rows):
            for c1 in range(from_cols):
                from_flat = r1 * from_cols + c1
                from_pos = engine.project(layer, r1, c1)
                if not engine.in_front(from_pos):
                    continue
                for to_flat, to_pos in to_points:
                    if not engine.in_front(to_pos):
                        continue
                    w = float(weights[from_flat, to_flat])
                    delta = float(deltas[from_flat, to_flat])
                    if active:
                        highlight = _phase_highlight(state)
                    elif state.phase == Phase.UPDATING and abs(delta) > UPDATE_EPSILON:
                        highlight = Highlight.UPDATE
                    else:
                        highlight = Highlight.NONE
                    items.append(
                        LinkItem(
                            key=f"link-{layer}-{from_flat}-{to_flat}",
                            layer=layer,
                            from_index=from_flat,
                            to_index=to_flat,
                            weight=w,
                            sign=int(np.sign(w)),
                            magnitude=abs(w),
                            delta=delta,
                            highlight=highlight,
                            pos=from_pos,
                            to_pos=to_pos,
                            depth=(from_pos.depth + to_pos.depth) / 2.0,
                        )
                    )
    return items


def build_scene(
    snapshot: NetworkSnapshot,
    layer_dims: Sequence[Tuple[int, int]],
    camera: Camera,
    state: SchedulerState = IDLE,
    inputs: Sequence[float] = (),
    targets: Sequence[float] = (),
    view: ViewConfig | None = None,
) -> List[RenderItem]:
    """
    Compose the render list for one frame.

    Units at or behind the near plane are left out, along with the links and
    controls attached to them.

    Args:
        snapshot: Network state to draw
        layer_dims: (rows, cols) grid per layer; sizes must match the snapshot
        camera: Camera to project with
        state: Scheduler state driving highlights
        inputs: Current input values (shown on input controls)
        targets: Current targets (shown on output controls)
        view: Projection and control constants

    Returns:
        List of render items sorted ascending by depth
    """
    engine = ProjectionEngine(layer_dims, camera, view)
    items = _node_items(snapshot, engine, state, inputs, targets)
    items.extend(_link_items(snapshot, engine, state))
    items.sort(key=lambda item: item.depth)
    return items


def build_simulation_scene(sim: Simulation, camera: Camera, view: ViewConfig | None = None) -> List[RenderItem]:
    """Render list for the current state of a `Simulation`."""
    return build_scene(
        sim.render_snapshot(),
        sim.layer_dims,
        camera,
        state=sim.state,
        inputs=list(sim.inputs),
        targets=list(sim.targets),
        view=view,
    )
