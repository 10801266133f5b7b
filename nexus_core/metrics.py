"""
Metrics utilities for the simulator.

This module provides:
- The half squared-error loss used for training and convergence checks
- A bounded loss history (oldest entries dropped first)
- Helpers that build the displayable stats snapshot consumed by the host shell

The stats snapshot has the keys:
- structure: architecture descriptor such as "2x1-2x2-3x1-1x1"
- epochs: number of completed training steps
- loss: current loss formatted with 5 decimals
- lr: learning rate
- optimized: True once the loss dropped below the convergence threshold
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Iterable, Iterator, List, Sequence, Tuple

import numpy as np


def squared_error_loss(outputs: Sequence[float], targets: Sequence[float]) -> float:
    """
    Return 0.5 * sum((target - output)^2).

    Args:
        outputs: Network outputs
        targets: Desired outputs, same length

    Returns:
        float: The loss
    """
    o = np.asarray(outputs, dtype=float)
    t = np.asarray(targets, dtype=float)
    return float(0.5 * np.sum((t - o) ** 2))


class LossHistory:
    """
    Ring buffer of (epoch, loss) points for the loss chart.

    Once `capacity` points are stored, appending drops the oldest one.
    """

    def __init__(self, capacity: int = 200):
        self.capacity = int(capacity)
        self._points: Deque[Tuple[int, float]] = deque(maxlen=self.capacity)

    def append(self, epoch: int, loss: float) -> None:
        self._points.append((int(epoch), float(loss)))

    def clear(self) -> None:
        self._points.clear()

    def latest(self) -> Tuple[int, float] | None:
        return self._points[-1] if self._points else None

    def epochs(self) -> List[int]:
        return [e for e, _ in self._points]

    def losses(self) -> List[float]:
        return [l for _, l in self._points]

    def as_dicts(self) -> List[Dict[str, float]]:
        return [{"epoch": e, "loss": l} for e, l in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(list(self._points))


def architecture_descriptor(layer_dims: Iterable[Tuple[int, int]]) -> str:
    """Return the "RxC-RxC-..." descriptor of a list of (rows, cols) layer grids."""
    return "-".join(f"{rows}x{cols}" for rows, cols in layer_dims)


def stats_snapshot(
    layer_dims: Iterable[Tuple[int, int]],
    epochs: int,
    loss: float,
    learning_rate: float,
    optimized: bool,
) -> Dict[str, Any]:
    """Build the displayable stats dict passed to the host shell and tutor."""
    return {
        "structure": architecture_descriptor(layer_dims),
        "epochs": int(epochs),
        "loss": f"{float(loss):.5f}",
        "lr": float(learning_rate),
        "optimized": bool(optimized),
    }
