from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from nexus_core.config import ViewConfig


class ProjectionMode(str, Enum):
    PERSPECTIVE = "PERSPECTIVE"
    ORTHOGRAPHIC = "ORTHOGRAPHIC"


class ViewPreset(str, Enum):
    """Axis-aligned orthographic views."""

    FRONT = "FRONT"
    SIDE = "SIDE"
    TOP = "TOP"


# (yaw, pitch) in degrees
PRESET_ANGLES: Dict[ViewPreset, Tuple[float, float]] = {
    ViewPreset.FRONT: (0.0, 0.0),
    ViewPreset.SIDE: (90.0, 0.0),
    ViewPreset.TOP: (0.0, 90.0),
}


@dataclass
class Camera:
    """
    Orbit camera state. Angles are in degrees.

    `preset` is set while an axis-aligned view preset is locked; orbiting
    clears it.
    """

    yaw: float = 25.0
    pitch: float = 0.0
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    mode: ProjectionMode = ProjectionMode.PERSPECTIVE
    preset: Optional[ViewPreset] = None

    @classmethod
    def from_config(cls, view: ViewConfig | None = None) -> "Camera":
        view = view or ViewConfig()
        return cls(yaw=view.default_yaw, pitch=view.default_pitch, zoom=view.default_zoom)

    @property
    def orthographic(self) -> bool:
        return self.mode == ProjectionMode.ORTHOGRAPHIC

    def copy(self) -> "Camera":
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "yaw": self.yaw,
            "pitch": self.pitch,
            "zoom": self.zoom,
            "pan": [self.pan_x, self.pan_y],
            "mode": self.mode.value,
            "preset": self.preset.value if self.preset else None,
        }
