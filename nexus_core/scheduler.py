"""
Animation scheduler for the training visualization.

The scheduler is an explicit, immutable state value advanced by pure
functions, so a timer, a frame callback or a test can drive it synchronously.

Stepped cycle (one call to `tick` per timer fire):
1. NONE/FORWARD: the active-layer pointer moves input -> output. Leaving the
   idle pointer (-1) first requests a forward pass.
2. At the last layer the phase switches to BACKWARD at that same layer.
3. BACKWARD: the pointer moves output -> input. When it would drop below 0 the
   tick requests a training step; the caller runs it and calls `settle`.
4. `settle` either halts (loss below the convergence threshold, "optimized")
   or moves to UPDATING.
5. UPDATING lasts one tick, then FORWARD restarts at layer 0.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .enums import Action, Phase


@dataclass(frozen=True)
class SchedulerState:
    """
    Attributes:
        phase: Current animation phase
        active_layer: Highlighted layer, -1 when none
        epoch: Completed training steps
        optimized: Set once the loss fell below the convergence threshold
    """

    phase: Phase = Phase.NONE
    active_layer: int = -1
    epoch: int = 0
    optimized: bool = False


@dataclass(frozen=True)
class Tick:
    state: SchedulerState
    action: Action = Action.NONE


IDLE = SchedulerState()


def tick(state: SchedulerState, num_layers: int) -> Tick:
    """
    Advance the stepped animation by one transition.

    Args:
        state: Current scheduler state
        num_layers: Number of layers in the network

    Returns:
        Tick: The next state and the side effect the caller must perform.
        For `Action.TRAIN_STEP` the returned state is unchanged; pass the
        resulting loss to `settle`.
    """
    if state.phase in (Phase.NONE, Phase.FORWARD):
        action = Action.FORWARD_PASS if state.active_layer == -1 else Action.NONE
        nxt = state.active_layer + 1
        if nxt < num_layers:
            return Tick(replace(state, phase=Phase.FORWARD, active_layer=nxt), action)
        return Tick(replace(state, phase=Phase.BACKWARD, active_layer=num_layers - 1), action)

    if state.phase == Phase.BACKWARD:
        prev = state.active_layer - 1
        if prev >= 0:
            return Tick(replace(state, active_layer=prev))
        return Tick(state, Action.TRAIN_STEP)

    # UPDATING
    return Tick(replace(state, phase=Phase.FORWARD, active_layer=0))


def settle(state: SchedulerState, loss: float, threshold: float, steps: int = 1, animate: bool = True) -> SchedulerState:
    """
    Fold the outcome of `steps` training steps into the state.

    Args:
        state: State that requested the training
        loss: Loss after the steps
        threshold: Convergence threshold
        steps: Training steps performed (turbo mode runs a batch)
        animate: Stepped mode moves to UPDATING; turbo stays idle

    Returns:
        SchedulerState: Halted and optimized if ``loss < threshold``
    """
    epoch = state.epoch + int(steps)
    if loss < threshold:
        return SchedulerState(phase=Phase.NONE, active_layer=-1, epoch=epoch, optimized=True)
    phase = Phase.UPDATING if animate else Phase.NONE
    return replace(state, phase=phase, active_layer=-1, epoch=epoch)


def is_layer_active(state: SchedulerState, layer_index: int) -> bool:
    """True when `layer_index` is highlighted by the forward or backward sweep."""
    return state.phase in (Phase.FORWARD, Phase.BACKWARD) and state.active_layer == layer_index


def is_link_active(state: SchedulerState, from_layer: int) -> bool:
    """
    True when links leaving `from_layer` are highlighted.

    Forward highlights the links leaving the active layer; backward highlights
    the links entering it.
    """
    if state.phase == Phase.FORWARD:
        return state.active_layer == from_layer
    if state.phase == Phase.BACKWARD:
        return state.active_layer == from_layer + 1
    return False
