"""
Core enumerations for the Neural Architect simulator.

This module defines the closed sets of values used throughout the simulator:
activation functions, animation phases, scheduler actions and speed modes.
"""

from enum import Enum, auto


class Activation(Enum):
    """
    Activation functions available to non-input layers.

    The order of members is the order in which the activation control cycles:
    SIGMOID -> TANH -> RELU -> LEAKY_RELU -> ELU -> SIGMOID.
    """

    SIGMOID = auto()
    """Logistic curve squashing into (0, 1)."""

    TANH = auto()
    """Hyperbolic tangent squashing into (-1, 1)."""

    RELU = auto()
    """Rectified linear unit with a soft 0.05 gradient floor."""

    LEAKY_RELU = auto()
    """Rectified linear unit with a 0.01 negative slope."""

    ELU = auto()
    """Exponential linear unit."""


class Phase(Enum):
    """
    Phases of the training animation.

    - NONE: idle, nothing highlighted
    - FORWARD: the active-layer pointer sweeps input -> output
    - BACKWARD: the pointer sweeps output -> input, then a training step runs
    - UPDATING: one tick showing the freshly applied weight updates
    """

    NONE = auto()
    FORWARD = auto()
    BACKWARD = auto()
    UPDATING = auto()


class Action(Enum):
    """Side effect requested by a scheduler tick."""

    NONE = auto()
    """Only the pointer moved."""

    FORWARD_PASS = auto()
    """Recompute unit values before the forward sweep starts."""

    TRAIN_STEP = auto()
    """Run one forward+backward+update step, then settle the state."""


class SpeedMode(Enum):
    """How the simulation is clocked while playing."""

    STEPPED = auto()
    """One phase transition per timer fire."""

    TURBO = auto()
    """A fixed batch of training steps per rendering frame, no phase animation."""
