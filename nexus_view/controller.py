"""
Interaction controller.

Translates pointer gestures and control clicks into camera moves, per-unit
edits and architecture edits. Every value coming from a control is clamped
here, so invalid architectures never reach the network model.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from nexus_core.activations import next_activation
from nexus_core.config import ViewConfig
from nexus_core.enums import Activation
from nexus_core.simulation import HIDDEN_DEFAULT, Simulation

from nexus_view.models.camera import PRESET_ANGLES, Camera, ProjectionMode, ViewPreset
from nexus_view.models.items import EditKind, NodeItem, RenderItem
from nexus_view.scene_builder import build_simulation_scene

logger = logging.getLogger(__name__)

PRIMARY_BUTTON = 1
SECONDARY_BUTTON = 2

NEW_LAYER_DIM = (2, 2)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class InteractionController:
    """
    Owns the camera and routes user edits to the `Simulation`.

    Args:
        sim: Simulation to edit
        camera: Camera to move (defaults to the configured defaults)
        view: Limits and sensitivities
        on_rebuild: Called after every architecture edit, e.g. to cancel a
            runner's in-flight cycle
    """

    def __init__(
        self,
        sim: Simulation,
        camera: Camera | None = None,
        view: ViewConfig | None = None,
        on_rebuild: Callable[[], None] | None = None,
    ):
        self.sim = sim
        self.view = view or ViewConfig()
        self.camera = camera or Camera.from_config(self.view)
        self.on_rebuild = on_rebuild
        self._dragging = False
        self._last: Optional[tuple] = None

    # ----- pointer -----
    def pointer_down(self, x: float, y: float) -> None:
        self._dragging = True
        self._last = (x, y)

    def pointer_move(self, x: float, y: float, buttons: int) -> None:
        """Primary drag orbits; secondary (or both buttons) pans."""
        if not self._dragging or self._last is None:
            return
        dx = x - self._last[0]
        dy = y - self._last[1]
        if buttons == PRIMARY_BUTTON:
            self.orbit(dx, dy)
        elif buttons & SECONDARY_BUTTON:
            self.pan(dx, dy)
        self._last = (x, y)

    def pointer_up(self) -> None:
        self._dragging = False
        self._last = None

    # ----- camera -----
    def orbit(self, dx: float, dy: float) -> None:
        cam = self.camera
        s = self.view.orbit_sensitivity
        cam.yaw += dx * s
        cam.pitch = _clamp(cam.pitch + dy * s, -self.view.pitch_limit, self.view.pitch_limit)
        if cam.preset is not None:
            cam.preset = None
            cam.mode = ProjectionMode.PERSPECTIVE

    def pan(self, dx: float, dy: float) -> None:
        self.camera.pan_x += dx
        self.camera.pan_y += dy

    def wheel(self, delta_y: float) -> None:
        zoom = self.camera.zoom - delta_y * self.view.zoom_sensitivity
        self.camera.zoom = _clamp(zoom, self.view.min_zoom, self.view.max_zoom)

    def apply_preset(self, preset: ViewPreset) -> None:
        """Lock an axis-aligned orthographic view."""
        yaw, pitch = PRESET_ANGLES[preset]
        self.camera.yaw = yaw
        self.camera.pitch = pitch
        self.camera.mode = ProjectionMode.ORTHOGRAPHIC
        self.camera.preset = preset

    def set_projection(self, mode: ProjectionMode) -> None:
        self.camera.mode = mode
        self.camera.preset = None

    def reset_view(self) -> None:
        self.camera = Camera.from_config(self.view)

    # ----- per-unit edits -----
    def set_input(self, index: int, value: float) -> None:
        lo, hi = self.view.input_range
        self.sim.set_input(index, _clamp(float(value), lo, hi))

    def set_target(self, index: int, value: float) -> None:
        lo, hi = self.view.input_range
        self.sim.set_target(index, _clamp(float(value), lo, hi))

    def set_hidden_bias(self, layer: int, value: float) -> bool:
        """Broadcast a bias over hidden layer `layer`. Returns False for non-hidden layers."""
        if not 0 < layer < self.sim.num_layers - 1:
            return False
        lo, hi = self.view.bias_range
        self.sim.set_layer_bias(layer, _clamp(float(value), lo, hi))
        return True

    def edit_node(self, node: NodeItem, value: float) -> None:
        """Apply a drag on the control attached to `node`."""
        if node.edit == EditKind.INPUT:
            self.set_input(node.index, value)
        elif node.edit == EditKind.TARGET:
            self.set_target(node.index, value)
        elif node.edit == EditKind.BIAS:
            self.set_hidden_bias(node.layer, value)

    # ----- architecture edits -----
    def _apply_architecture(self, dims: List[tuple], activations: List[Activation]) -> None:
        self.sim.set_architecture(dims, activations)
        if self.on_rebuild is not None:
            self.on_rebuild()

    def modify_layer(self, layer: int, axis: str, delta: int) -> bool:
        """
        Grow or shrink one axis ('rows' or 'cols') of a layer grid.

        Returns:
            bool: True if the grid changed and the network was rebuilt
        """
        if axis not in ("rows", "cols"):
            raise ValueError(f"axis must be 'rows' or 'cols', got {axis!r}")
        dims = list(self.sim.layer_dims)
        rows, cols = dims[layer]
        lo, hi = self.view.min_extent, self.view.max_extent
        if axis == "rows":
            new = (int(_clamp(rows + delta, lo, hi)), cols)
        else:
            new = (rows, int(_clamp(cols + delta, lo, hi)))
        if new == dims[layer]:
            return False
        dims[layer] = new
        self._apply_architecture(dims, list(self.sim.activations))
        return True

    def add_layer(self) -> bool:
        """Insert a 2x2 LeakyReLU layer before the output layer."""
        dims = list(self.sim.layer_dims)
        if len(dims) >= self.view.max_layers:
            return False
        acts = list(self.sim.activations)
        dims.insert(len(dims) - 1, NEW_LAYER_DIM)
        acts.insert(len(acts) - 1, HIDDEN_DEFAULT)
        self._apply_architecture(dims, acts)
        return True

    def remove_layer(self) -> bool:
        """Drop the layer just before the output layer."""
        dims = list(self.sim.layer_dims)
        if len(dims) <= self.view.min_layers:
            return False
        acts = list(self.sim.activations)
        del dims[-2]
        del acts[-2]
        self._apply_architecture(dims, acts)
        return True

    def cycle_activation(self, layer: int) -> Optional[Activation]:
        """Advance a hidden layer's activation; weights are kept."""
        if not 0 < layer < self.sim.num_layers - 1:
            return None
        nxt = next_activation(self.sim.activations[layer - 1])
        self.sim.set_activation(layer, nxt)
        logger.debug("Layer %d activation -> %s", layer, nxt.name)
        return nxt

    # ----- output -----
    def scene(self) -> List[RenderItem]:
        return build_simulation_scene(self.sim, self.camera, self.view)
