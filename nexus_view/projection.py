"""
3D layout and camera projection.

Each unit lives on a 3D grid: layers along x, rows along y and columns along
z, every axis centred on the origin. The camera yaws about the vertical axis,
then pitches about the horizontal axis using the yaw-rotated coordinates, and
finally scales by perspective and zoom.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

from nexus_core.config import ViewConfig

from nexus_view.models.camera import Camera
from nexus_view.models.items import ScreenPoint

Vec3 = Tuple[float, float, float]


class ProjectionEngine:
    """
    Projects (layer, row, col) grid coordinates to screen space.

    Attributes:
        layer_dims: (rows, cols) grid per layer
        camera: Camera read on every projection
        view: Spacing, fov and view-centre constants
    """

    def __init__(self, layer_dims: Sequence[Tuple[int, int]], camera: Camera, view: ViewConfig | None = None):
        self.layer_dims = [(int(r), int(c)) for r, c in layer_dims]
        self.camera = camera
        self.view = view or ViewConfig()

    def layout(self, layer: int, row: int, col: int) -> Vec3:
        """Centred 3D position of a unit before any camera transform."""
        v = self.view
        rows, cols = self.layer_dims[layer]
        x_start = -((len(self.layer_dims) - 1) * v.layer_spacing) / 2.0
        y_start = -((rows - 1) * v.row_spacing) / 2.0
        z_start = -((cols - 1) * v.col_spacing) / 2.0
        return (
            x_start + layer * v.layer_spacing,
            y_start + row * v.row_spacing,
            z_start + col * v.col_spacing,
        )

    def rotate(self, point: Vec3) -> Vec3:
        """Apply yaw, then pitch on the yaw-rotated coordinates."""
        x, y, z = point
        yaw = math.radians(self.camera.yaw)
        pitch = math.radians(self.camera.pitch)

        x_rot = x * math.cos(yaw) - z * math.sin(yaw)
        z_yaw = x * math.sin(yaw) + z * math.cos(yaw)

        y_rot = y * math.cos(pitch) - z_yaw * math.sin(pitch)
        z_rot = y * math.sin(pitch) + z_yaw * math.cos(pitch)
        return x_rot, y_rot, z_rot

    def scale_for_depth(self, depth: float) -> float:
        """Perspective (or unit) scale for a rotated depth, times zoom."""
        if self.camera.orthographic:
            base = 1.0
        else:
            fov = self.view.fov
            # larger depth is nearer the eye; the floor only applies to culled points
            base = fov / max(fov - depth, self.view.near_plane)
        return base * self.camera.zoom

    def in_front(self, point: ScreenPoint) -> bool:
        """False for points at or behind the near plane, which are not drawn."""
        if self.camera.orthographic:
            return True
        return self.view.fov - point.depth > self.view.near_plane

    def project_point(self, point: Vec3) -> ScreenPoint:
        x_rot, y_rot, z_rot = self.rotate(point)
        scale = self.scale_for_depth(z_rot)
        cx, cy = self.view.view_center
        return ScreenPoint(
            x=cx + x_rot * scale + self.camera.pan_x,
            y=cy + y_rot * scale + self.camera.pan_y,
            scale=scale,
            depth=z_rot,
        )

    def project(self, layer: int, row: int, col: int) -> ScreenPoint:
        """Screen position, size scale and depth of unit (row, col) in `layer`."""
        return self.project_point(self.layout(layer, row, col))
