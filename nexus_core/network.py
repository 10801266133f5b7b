"""
Feedforward network model.

This module implements the fully-connected network that the sandbox trains and
visualizes. The network owns its numeric buffers exclusively:

- Weights: one (prev_size, size) matrix per layer transition
- Biases: one vector per non-input layer
- Values / pre-activations: per-unit caches recomputed on every forward pass
- Weight deltas: the last applied update per edge, kept for visualization

Readers that must not alias these buffers (the scene builder, the HTTP
backend) receive a `NetworkSnapshot` of read-only copies instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .activations import ACTIVATIONS
from .config import SimulatorConfig
from .enums import Activation
from .errors import ConfigError, DimensionError
from .metrics import squared_error_loss

logger = logging.getLogger(__name__)


def _frozen(arr: np.ndarray) -> np.ndarray:
    out = np.array(arr, dtype=float, copy=True)
    out.setflags(write=False)
    return out


def _unit_derivative(y):
    return np.ones_like(np.asarray(y, dtype=float))


def validate_architecture(layer_sizes: Sequence[int], activations: Sequence[Activation]) -> None:
    """
    Check a layer-size list and its activation assignment.

    Raises:
        ConfigError: If there are fewer than 2 layers, a size below 1, or the
            number of activations differs from the number of non-input layers
    """
    if len(layer_sizes) < 2:
        raise ConfigError(f"A network needs at least 2 layers, got {len(layer_sizes)}")
    for i, size in enumerate(layer_sizes):
        if int(size) < 1:
            raise ConfigError(f"Layer {i} has size {size}; sizes must be >= 1")
    if len(activations) != len(layer_sizes) - 1:
        raise ConfigError(
            f"Expected {len(layer_sizes) - 1} activations (one per non-input layer), got {len(activations)}"
        )
    for act in activations:
        if not isinstance(act, Activation):
            raise ConfigError(f"Not an activation: {act!r}")


@dataclass(frozen=True)
class NetworkSnapshot:
    """
    Read-only copy of a network's state at one instant.

    Attributes:
        layer_sizes: Units per layer, input first
        activations: Activation per non-input layer
        values: Per-layer unit outputs
        pre_activations: Per-layer weighted sums (inputs for layer 0)
        weights: Per-transition (prev_size, size) matrices
        biases: Per-transition bias vectors
        deltas: Per-transition last applied weight updates
    """

    layer_sizes: Tuple[int, ...]
    activations: Tuple[Activation, ...]
    values: Tuple[np.ndarray, ...]
    pre_activations: Tuple[np.ndarray, ...]
    weights: Tuple[np.ndarray, ...]
    biases: Tuple[np.ndarray, ...]
    deltas: Tuple[np.ndarray, ...]

    @property
    def output(self) -> np.ndarray:
        return self.values[-1]

    def activation_for(self, layer_index: int) -> Activation:
        """Activation of non-input layer `layer_index` (1-based)."""
        return self.activations[layer_index - 1]


class Network:
    """
    A small fully-connected feedforward network trained one sample at a time.

    Attributes:
        layer_sizes: Units per layer (layer 0 is the input)
        activations: Activation of each non-input layer
        weights: weights[i] has shape (layer_sizes[i], layer_sizes[i + 1])
        biases: biases[i] has shape (layer_sizes[i + 1],)
        weight_deltas: Last applied update, same shapes as `weights`
        values: Cached unit outputs from the last forward pass
        pre_activations: Cached weighted sums from the last forward pass
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        activations: Sequence[Activation],
        config: SimulatorConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        """
        Build a network with freshly randomized parameters.

        Weights are drawn uniformly from [-s, s] with s = 1/sqrt(fan_in); biases
        from [bias_init_low, bias_init_high).

        Args:
            layer_sizes: Units per layer, input first
            activations: One activation per non-input layer
            config: Training constants (defaults to `SimulatorConfig()`)
            rng: Random generator; defaults to one seeded from `config.seed`

        Raises:
            ConfigError: If the architecture is invalid
        """
        validate_architecture(layer_sizes, activations)
        self.config = config or SimulatorConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.layer_sizes: Tuple[int, ...] = tuple(int(s) for s in layer_sizes)
        self.activations: List[Activation] = list(activations)

        self.weights: List[np.ndarray] = []
        self.biases: List[np.ndarray] = []
        self.weight_deltas: List[np.ndarray] = []
        self.values: List[np.ndarray] = [np.zeros(s) for s in self.layer_sizes]
        self.pre_activations: List[np.ndarray] = [np.zeros(s) for s in self.layer_sizes]

        for prev_size, size in zip(self.layer_sizes, self.layer_sizes[1:]):
            scale = 1.0 / np.sqrt(prev_size)
            self.weights.append(self.rng.uniform(-scale, scale, size=(prev_size, size)))
            self.weight_deltas.append(np.zeros((prev_size, size)))
            self.biases.append(
                self.rng.uniform(self.config.bias_init_low, self.config.bias_init_high, size=size)
            )
        logger.debug("Initialized network %s", "-".join(str(s) for s in self.layer_sizes))

    # ----- helpers -----
    @property
    def num_layers(self) -> int:
        return len(self.layer_sizes)

    @property
    def output(self) -> np.ndarray:
        """Copy of the output layer values from the last forward pass."""
        return self.values[-1].copy()

    def _func(self, layer_index: int):
        return ACTIVATIONS[self.activations[layer_index - 1]].func

    def _derivative(self, layer_index: int):
        # The input layer has no activation; its derivative is never consumed.
        if layer_index == 0:
            return _unit_derivative
        return ACTIVATIONS[self.activations[layer_index - 1]].deriv

    def _as_vector(self, data: Sequence[float], expected: int, what: str) -> np.ndarray:
        vec = np.asarray(data, dtype=float).reshape(-1)
        if vec.shape[0] != expected:
            raise DimensionError(f"{what} has length {vec.shape[0]}, expected {expected}")
        return vec

    # ----- configuration -----
    def set_activations(self, activations: Sequence[Activation]) -> None:
        """
        Replace the per-layer activation assignment. Weights are untouched.

        Raises:
            ConfigError: If the assignment does not fit the layer count
        """
        validate_architecture(self.layer_sizes, activations)
        self.activations = list(activations)

    def set_layer_bias(self, layer_index: int, value: float) -> None:
        """
        Broadcast `value` to every bias of non-input layer `layer_index`.

        This is a manual override that bypasses gradient descent. Indexes that
        do not name a non-input layer are ignored.
        """
        idx = layer_index - 1
        if 0 <= idx < len(self.biases):
            self.biases[idx][:] = float(value)

    # ----- inference -----
    def forward(self, inputs: Sequence[float]) -> np.ndarray:
        """
        Propagate `inputs` to the output layer and refresh the caches.

        Non-finite weighted sums are replaced by 0 before activation.

        Args:
            inputs: One value per input unit

        Returns:
            Copy of the output layer values

        Raises:
            DimensionError: If len(inputs) != layer_sizes[0]
        """
        x = self._as_vector(inputs, self.layer_sizes[0], "Input")
        self.values[0] = x.copy()
        self.pre_activations[0] = x.copy()
        for i, (w, b) in enumerate(zip(self.weights, self.biases)):
            layer = i + 1
            with np.errstate(over="ignore", invalid="ignore"):
                pre = self.values[i] @ w + b
            pre = np.where(np.isfinite(pre), pre, 0.0)
            self.pre_activations[layer] = pre
            self.values[layer] = np.asarray(self._func(layer)(pre), dtype=float)
        return self.output

    def loss(self, targets: Sequence[float]) -> float:
        """Half squared error between the cached outputs and `targets`."""
        t = self._as_vector(targets, self.layer_sizes[-1], "Target")
        return squared_error_loss(self.values[-1], t)

    # ----- training -----
    def train(self, inputs: Sequence[float], targets: Sequence[float], learning_rate: float) -> float:
        """
        Run one forward + backward + update step on a single sample.

        Each individual weight and bias step is ``lr * gradient`` clipped to
        [-update_clip, update_clip]. Non-finite gradients contribute nothing.
        A layer's error signal is computed after the weights above it have
        been updated.

        Args:
            inputs: One value per input unit
            targets: One value per output unit
            learning_rate: Step size

        Returns:
            Loss of the forward pass that preceded the update

        Raises:
            DimensionError: If inputs or targets have the wrong length
        """
        t = self._as_vector(targets, self.layer_sizes[-1], "Target")
        outputs = self.forward(inputs)
        loss = squared_error_loss(outputs, t)

        lr = float(learning_rate)
        clip = float(self.config.update_clip)
        last = self.num_layers - 1
        with np.errstate(over="ignore", invalid="ignore"):
            errors = (t - outputs) * self._derivative(last)(outputs)

        for i in range(len(self.weights) - 1, -1, -1):
            prev_values = self.values[i]
            with np.errstate(over="ignore", invalid="ignore"):
                grad = np.outer(prev_values, errors)
                step = np.clip(lr * grad, -clip, clip)
                bias_step = np.clip(lr * errors, -clip, clip)
            step = np.where(np.isfinite(grad), step, 0.0)
            bias_step = np.where(np.isfinite(errors), bias_step, 0.0)

            self.weights[i] += step
            self.weight_deltas[i] = step
            self.biases[i] += bias_step

            if i > 0:
                with np.errstate(over="ignore", invalid="ignore"):
                    back = self.weights[i] @ errors
                back = np.where(np.isfinite(back), back, 0.0)
                errors = back * self._derivative(i)(prev_values)
        return loss

    # ----- views -----
    def snapshot(self) -> NetworkSnapshot:
        """Return read-only copies of every buffer."""
        return NetworkSnapshot(
            layer_sizes=self.layer_sizes,
            activations=tuple(self.activations),
            values=tuple(_frozen(v) for v in self.values),
            pre_activations=tuple(_frozen(p) for p in self.pre_activations),
            weights=tuple(_frozen(w) for w in self.weights),
            biases=tuple(_frozen(b) for b in self.biases),
            deltas=tuple(_frozen(d) for d in self.weight_deltas),
        )
