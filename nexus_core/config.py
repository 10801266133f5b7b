"""
Configuration objects for the simulator and its view.

Exposes tunable constants for training, scheduling, projection and the
interaction controls, enabling experiments without editing core logic.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class SimulatorConfig:
    """
    Configuration for `Simulation` and `Network` behaviour.

    Defaults reproduce the classroom sandbox: a small learning rate, a 200 ms
    animation tick and a ten-step turbo batch.
    """

    # Training
    learning_rate: float = 0.1
    update_clip: float = 1.0  # bound on each individual weight/bias step
    bias_init_low: float = 0.01
    bias_init_high: float = 0.2
    seed: Optional[int] = None

    # Scheduling
    step_delay_ms: float = 200.0
    turbo_batch: int = 10
    frame_interval: float = 1.0 / 60.0  # seconds between rendering frames

    # Convergence and history
    convergence_threshold: float = 5e-5
    history_capacity: int = 200


@dataclass
class ViewConfig:
    """
    Configuration for projection, camera defaults and interaction limits.
    """

    # 3D layout spacing
    layer_spacing: float = 250.0
    row_spacing: float = 80.0
    col_spacing: float = 80.0

    # Perspective
    fov: float = 1000.0
    near_plane: float = 1.0  # points with fov - depth at or below this are culled
    view_center: Tuple[float, float] = (400.0, 300.0)

    # Camera defaults
    default_yaw: float = 25.0
    default_pitch: float = 0.0
    default_zoom: float = 1.0

    # Interaction sensitivity and limits
    orbit_sensitivity: float = 0.5  # degrees per pixel
    zoom_sensitivity: float = 0.001  # zoom per wheel unit
    min_zoom: float = 0.05
    max_zoom: float = 5.0
    pitch_limit: float = 90.0
    min_extent: int = 1
    max_extent: int = 8
    min_layers: int = 2
    max_layers: int = 10
    input_range: Tuple[float, float] = (0.0, 1.0)
    bias_range: Tuple[float, float] = (-1.0, 1.0)

    # Controls placed around each layer column, in unscaled pixels
    control_offset: float = 60.0
    control_depth_bias: float = 10.0

    # Mini-plot sampling for activation controls
    curve_range: Tuple[float, float] = (-4.0, 4.0)
    curve_samples: int = 33
