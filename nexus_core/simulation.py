"""
Simulation facade tying the network, the scheduler and the stats together.

A `Simulation` owns everything the sandbox mutates while it runs: the layer
grid, the activation assignment, the training sample, the learning rate and
speed, the `Network`, the scheduler state and the loss history. Every mutation
happens synchronously on the caller's thread; timers and frame callbacks
(see `nexus_core.runner`) only decide *when* `tick` or `turbo_frame` runs.

A generation counter is bumped whenever pending work must be abandoned
(pause, reset, architecture edits, convergence). Drivers capture it before
sleeping and drop their tick if it changed.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .config import SimulatorConfig
from .enums import Action, Activation, SpeedMode
from .errors import ConfigError, DimensionError
from .metrics import LossHistory, stats_snapshot
from .network import Network, NetworkSnapshot
from .scheduler import IDLE, SchedulerState, settle, tick
from .tutor import GameMode, TutorContext

logger = logging.getLogger(__name__)

LayerDim = Tuple[int, int]

DEFAULT_LAYER_DIMS: Tuple[LayerDim, ...] = ((2, 1), (2, 2), (3, 1), (1, 1))
DEFAULT_ACTIVATIONS: Tuple[Activation, ...] = (
    Activation.LEAKY_RELU,
    Activation.LEAKY_RELU,
    Activation.SIGMOID,
)
DEFAULT_INPUTS: Tuple[float, ...] = (0.0, 1.0)
DEFAULT_TARGETS: Tuple[float, ...] = (1.0,)
HIDDEN_DEFAULT = Activation.LEAKY_RELU

ContextCallback = Callable[[TutorContext], None]


def fit_activations(activations: Sequence[Activation], num_layers: int) -> List[Activation]:
    """
    Stretch or shrink an activation assignment to `num_layers` layers.

    The output activation is kept; hidden slots are kept front to back and
    missing ones default to LeakyReLU.
    """
    acts = list(activations)
    needed = num_layers - 1
    if len(acts) == needed:
        return acts
    output = acts[-1] if acts else Activation.SIGMOID
    hidden = acts[:-1][: needed - 1]
    hidden += [HIDDEN_DEFAULT] * (needed - 1 - len(hidden))
    return hidden + [output]


class Simulation:
    """
    Interactive training session for one network.

    Attributes:
        layer_dims: (rows, cols) grid per layer, input first
        activations: Activation per non-input layer
        inputs: Training input, one value per input unit
        targets: Training target, one value per output unit
        learning_rate: Step size used by `tick` and `turbo_frame`
        step_delay_ms: Delay between stepped ticks; below 1 means turbo
        playing: Whether a driver should keep scheduling work
        generation: Bumped whenever pending driver work must be dropped
        state: Scheduler state (phase, active layer, epoch, optimized)
        history: Ring buffer of (epoch, loss)
        loss: Loss of the cached outputs
    """

    def __init__(
        self,
        layer_dims: Sequence[LayerDim] | None = None,
        activations: Sequence[Activation] | None = None,
        inputs: Sequence[float] | None = None,
        targets: Sequence[float] | None = None,
        config: SimulatorConfig | None = None,
        on_context: ContextCallback | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or SimulatorConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.layer_dims: List[LayerDim] = [
            (int(r), int(c)) for r, c in (layer_dims if layer_dims is not None else DEFAULT_LAYER_DIMS)
        ]
        self.activations: List[Activation] = fit_activations(
            activations if activations is not None else DEFAULT_ACTIVATIONS, len(self.layer_dims)
        )
        self.inputs: List[float] = [float(v) for v in (inputs if inputs is not None else DEFAULT_INPUTS)]
        self.targets: List[float] = [float(v) for v in (targets if targets is not None else DEFAULT_TARGETS)]
        self.learning_rate: float = float(self.config.learning_rate)
        self.step_delay_ms: float = float(self.config.step_delay_ms)
        self.playing = False
        self.generation = 0
        self.state: SchedulerState = IDLE
        self.history = LossHistory(self.config.history_capacity)
        self.loss = 0.0
        self.on_context = on_context
        self._last_stats: Optional[dict] = None
        self.network: Network
        self._rebuild()

    # ----- properties -----
    @property
    def layer_sizes(self) -> List[int]:
        return [rows * cols for rows, cols in self.layer_dims]

    @property
    def num_layers(self) -> int:
        return len(self.layer_dims)

    @property
    def speed_mode(self) -> SpeedMode:
        return SpeedMode.TURBO if self.step_delay_ms < 1 else SpeedMode.STEPPED

    @property
    def epoch(self) -> int:
        return self.state.epoch

    @property
    def optimized(self) -> bool:
        return self.state.optimized

    # ----- lifecycle -----
    def _rebuild(self) -> None:
        for i, (rows, cols) in enumerate(self.layer_dims):
            if rows < 1 or cols < 1:
                raise ConfigError(f"Layer {i} grid {rows}x{cols} must be at least 1x1")
        sizes = self.layer_sizes
        self.network = Network(sizes, self.activations, self.config, self.rng)
        if len(self.inputs) != sizes[0]:
            self.inputs = [0.0] * sizes[0]
        if len(self.targets) != sizes[-1]:
            self.targets = [0.0] * sizes[-1]
        logger.info("Built network %s", "-".join(f"{r}x{c}" for r, c in self.layer_dims))
        self.reset()
        self._recompute()

    def reset(self) -> None:
        """Stop playing and clear epoch, history and phase. Weights are kept."""
        self.playing = False
        self.generation += 1
        self.state = IDLE
        self.history.clear()
        self._notify()

    def randomize(self) -> None:
        """Re-initialize every weight and bias for the current architecture."""
        self._rebuild()

    def set_architecture(self, layer_dims: Sequence[LayerDim], activations: Sequence[Activation] | None = None) -> None:
        """
        Replace the layer grid and rebuild the network from scratch.

        Raises:
            ConfigError: If the grid or activations are invalid
        """
        dims = [(int(r), int(c)) for r, c in layer_dims]
        if len(dims) < 2:
            raise ConfigError(f"A network needs at least 2 layers, got {len(dims)}")
        acts = fit_activations(activations if activations is not None else self.activations, len(dims))
        self.layer_dims = dims
        self.activations = acts
        self._rebuild()

    # ----- play control -----
    def play(self) -> None:
        if not self.playing:
            self.playing = True
            self.generation += 1
            self._notify()

    def pause(self) -> None:
        if self.playing:
            self.playing = False
            self.generation += 1
            self._notify()

    def toggle_play(self) -> bool:
        """Flip play/pause and return the new `playing` flag."""
        if self.playing:
            self.pause()
        else:
            self.play()
        return self.playing

    def set_speed(self, delay_ms: float) -> None:
        """Set the stepped delay in milliseconds; values below 1 select turbo."""
        self.step_delay_ms = max(0.0, float(delay_ms))

    def set_learning_rate(self, learning_rate: float) -> None:
        self.learning_rate = float(learning_rate)
        self._notify()

    # ----- sample edits -----
    def set_inputs(self, inputs: Sequence[float]) -> None:
        vals = [float(v) for v in inputs]
        if len(vals) != self.layer_sizes[0]:
            raise DimensionError(f"Input has length {len(vals)}, expected {self.layer_sizes[0]}")
        self.inputs = vals
        self._sample_changed()

    def set_targets(self, targets: Sequence[float]) -> None:
        vals = [float(v) for v in targets]
        if len(vals) != self.layer_sizes[-1]:
            raise DimensionError(f"Target has length {len(vals)}, expected {self.layer_sizes[-1]}")
        self.targets = vals
        self._sample_changed()

    def set_input(self, index: int, value: float) -> None:
        self.inputs[index] = float(value)
        self._sample_changed()

    def set_target(self, index: int, value: float) -> None:
        self.targets[index] = float(value)
        self._sample_changed()

    def set_layer_bias(self, layer_index: int, value: float) -> None:
        """Broadcast a bias over one layer, then refresh the cached values."""
        self.network.set_layer_bias(layer_index, value)
        self._sample_changed()

    def set_activation(self, layer_index: int, activation: Activation) -> None:
        """Swap the activation of non-input layer `layer_index`, keeping weights."""
        if not 1 <= layer_index < self.num_layers:
            raise ConfigError(f"Layer {layer_index} has no activation; expected 1..{self.num_layers - 1}")
        acts = list(self.activations)
        acts[layer_index - 1] = activation
        self.network.set_activations(acts)
        self.activations = acts
        self._sample_changed()

    def _sample_changed(self) -> None:
        if self.state.optimized:
            self.state = replace(self.state, optimized=False)
        self._recompute()

    def _recompute(self) -> float:
        self.network.forward(self.inputs)
        return self._refresh_loss()

    def _refresh_loss(self) -> float:
        self.loss = self.network.loss(self.targets)
        self._notify()
        return self.loss

    # ----- stepping -----
    def tick(self) -> Action:
        """
        Perform one stepped phase transition.

        Returns:
            Action: The side effect that was performed
        """
        t = tick(self.state, self.num_layers)
        state = t.state
        if t.action == Action.FORWARD_PASS:
            self.network.forward(self.inputs)
            self._refresh_loss()
        elif t.action == Action.TRAIN_STEP:
            self.network.train(self.inputs, self.targets, self.learning_rate)
            loss = self._refresh_loss()
            state = settle(state, loss, self.config.convergence_threshold)
            self.history.append(state.epoch, loss)
            if state.optimized:
                self._converged(state)
        self.state = state
        self._notify()
        return t.action

    def turbo_frame(self, steps: int | None = None) -> float:
        """
        Run one turbo frame: a batch of training steps, one convergence check.

        Args:
            steps: Batch size; defaults to `config.turbo_batch`

        Returns:
            float: Loss after the batch
        """
        steps = int(self.config.turbo_batch if steps is None else steps)
        for _ in range(steps):
            self.network.train(self.inputs, self.targets, self.learning_rate)
        loss = self._refresh_loss()
        state = settle(self.state, loss, self.config.convergence_threshold, steps=steps, animate=False)
        self.history.append(state.epoch, loss)
        if state.optimized:
            self._converged(state)
        self.state = state
        self._notify()
        return loss

    def _converged(self, state: SchedulerState) -> None:
        logger.info("Converged at epoch %d (loss %.6f)", state.epoch, self.loss)
        self.playing = False
        self.generation += 1

    # ----- views -----
    def stats(self) -> dict:
        return stats_snapshot(self.layer_dims, self.state.epoch, self.loss, self.learning_rate, self.state.optimized)

    def context(self) -> TutorContext:
        return TutorContext(GameMode.ARCHITECT, self.stats())

    def render_snapshot(self) -> NetworkSnapshot:
        return self.network.snapshot()

    def _notify(self) -> None:
        if self.on_context is None:
            return
        stats = self.stats()
        if stats != self._last_stats:
            self._last_stats = stats
            self.on_context(TutorContext(GameMode.ARCHITECT, stats))
