"""
Activation registry.

Every activation is a pair of vectorized functions: `func` of the raw
pre-activation and `deriv` of the *forward output*. Backpropagation only ever
has the cached outputs at hand, so derivatives are written in terms of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np

from .enums import Activation

ArrayFn = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class ActivationDef:
    """
    Definition of one activation function.

    Attributes:
        name: Short display name
        func: f(x) of the raw pre-activation
        deriv: f'(y) expressed in terms of the output y = f(x)
        color: Display colour used by the activation control
    """

    name: str
    func: ArrayFn
    deriv: ArrayFn
    color: str


def _sigmoid(x):
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-np.asarray(x, dtype=float)))


def _sigmoid_deriv(y):
    y = np.asarray(y, dtype=float)
    return y * (1.0 - y)


def _tanh(x):
    return np.tanh(np.asarray(x, dtype=float))


def _tanh_deriv(y):
    y = np.asarray(y, dtype=float)
    return 1.0 - y * y


def _relu(x):
    return np.maximum(0.0, np.asarray(x, dtype=float))


def _relu_deriv(y):
    # 0.05 on the inactive side
    return np.where(np.asarray(y, dtype=float) > 0, 1.0, 0.05)


def _leaky_relu(x):
    x = np.asarray(x, dtype=float)
    return np.maximum(0.01 * x, x)


def _leaky_relu_deriv(y):
    return np.where(np.asarray(y, dtype=float) > 0, 1.0, 0.01)


def _elu(x):
    x = np.asarray(x, dtype=float)
    return np.where(x >= 0, x, np.expm1(np.minimum(x, 0.0)))


def _elu_deriv(y):
    y = np.asarray(y, dtype=float)
    return np.where(y > 0, 1.0, y + 1.0)


ACTIVATIONS: Dict[Activation, ActivationDef] = {
    Activation.SIGMOID: ActivationDef("Sigmoid", _sigmoid, _sigmoid_deriv, "#00f3ff"),
    Activation.TANH: ActivationDef("Tanh", _tanh, _tanh_deriv, "#d946ef"),
    Activation.RELU: ActivationDef("ReLU", _relu, _relu_deriv, "#22c55e"),
    Activation.LEAKY_RELU: ActivationDef("L-ReLU", _leaky_relu, _leaky_relu_deriv, "#eab308"),
    Activation.ELU: ActivationDef("ELU", _elu, _elu_deriv, "#f97316"),
}

ACTIVATION_ORDER: List[Activation] = list(Activation)


def get_activation(activation: Activation) -> ActivationDef:
    """Return the definition record for `activation`."""
    return ACTIVATIONS[activation]


def parse_activation(name: str | Activation) -> Activation:
    """
    Resolve an activation from its enum member, member name or display name.

    Accepts e.g. ``"LEAKY_RELU"``, ``"leaky_relu"`` or ``"L-ReLU"``.

    Raises:
        KeyError: If no activation matches
    """
    if isinstance(name, Activation):
        return name
    key = str(name).strip()
    try:
        return Activation[key.upper().replace("-", "_")]
    except KeyError:
        pass
    for act, d in ACTIVATIONS.items():
        if d.name.lower() == key.lower():
            return act
    raise KeyError(f"Unknown activation: {name}")


def next_activation(activation: Activation) -> Activation:
    """Return the activation after `activation` in enumeration order, wrapping around."""
    idx = ACTIVATION_ORDER.index(activation)
    return ACTIVATION_ORDER[(idx + 1) % len(ACTIVATION_ORDER)]


def sample_curve(activation: Activation, lo: float = -4.0, hi: float = 4.0, n: int = 33) -> Tuple[Tuple[float, float], ...]:
    """Sample f over [lo, hi] at `n` evenly spaced points for mini-plots."""
    xs = np.linspace(lo, hi, max(2, int(n)))
    ys = ACTIVATIONS[activation].func(xs)
    return tuple((float(x), float(y)) for x, y in zip(xs, ys))
