"""
Neural Architect view package.

This package turns a running simulation into something drawable:
- Camera and render-item models
- Projection engine (3D grid layout, yaw/pitch orbit, perspective)
- Scene builder producing depth-sorted render lists
- Interaction controller for camera, unit and architecture edits
"""

from .models import Camera, ProjectionMode, ViewPreset, ScreenPoint, RenderKind
from .projection import ProjectionEngine
from .scene_builder import build_scene, build_simulation_scene
from .controller import InteractionController
