"""
YAML architecture compiler.

This module compiles a small YAML description of a sandbox session into an
`ArchitectureSpec` and, from that, a ready-to-run `Simulation`.

YAML schema (minimal):

layers:
  - {rows: 2, cols: 1}                  # input layer, activation ignored
  - {rows: 2, cols: 2, activation: LEAKY_RELU}
  - 3x1                                 # shorthand, default activation
  - {rows: 1, cols: 1, activation: SIGMOID}
inputs: [0, 1]
targets: [1]
learning_rate: 0.1
step_delay_ms: 200
seed: 0

Notes:
- Hidden layers default to LEAKY_RELU and the output layer to SIGMOID.
- Activation names accept enum names (any case) or display names ("L-ReLU").
- `inputs`/`targets` default to zeros of the right length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .activations import parse_activation
from .config import SimulatorConfig
from .enums import Activation
from .errors import ConfigError
from .simulation import ContextCallback, Simulation

logger = logging.getLogger(__name__)

_CONFIG_KEYS = (
    "learning_rate",
    "step_delay_ms",
    "turbo_batch",
    "convergence_threshold",
    "history_capacity",
    "seed",
)


@dataclass
class ArchitectureSpec:
    layer_dims: List[Tuple[int, int]]
    activations: List[Activation]
    inputs: List[float]
    targets: List[float]
    config: SimulatorConfig = field(default_factory=SimulatorConfig)

    @property
    def layer_sizes(self) -> List[int]:
        return [r * c for r, c in self.layer_dims]


def _parse_layer(entry: Any, index: int) -> Tuple[int, int, Optional[str]]:
    if isinstance(entry, str):
        parts = entry.lower().split("x")
        if len(parts) != 2:
            raise ConfigError(f"Layer {index}: expected 'RxC', got {entry!r}")
        try:
            return int(parts[0]), int(parts[1]), None
        except ValueError as exc:
            raise ConfigError(f"Layer {index}: expected 'RxC', got {entry!r}") from exc
    if isinstance(entry, int):
        return int(entry), 1, None
    if isinstance(entry, dict):
        try:
            rows = int(entry.get("rows", 1))
            cols = int(entry.get("cols", 1))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Layer {index}: rows/cols must be integers") from exc
        return rows, cols, entry.get("activation")
    raise ConfigError(f"Layer {index}: unsupported entry {entry!r}")


def _vector(spec: Dict[str, Any], key: str, size: int) -> List[float]:
    raw = spec.get(key)
    if raw is None:
        return [0.0] * size
    try:
        vals = [float(v) for v in raw]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be a list of numbers, got {raw!r}") from exc
    if len(vals) != size:
        raise ConfigError(f"'{key}' has length {len(vals)}, expected {size}")
    return vals


def compile_from_dict(spec: Dict[str, Any]) -> ArchitectureSpec:
    """
    Compile a YAML-parsed dictionary into an `ArchitectureSpec`.

    Args:
        spec: Parsed YAML dictionary

    Returns:
        ArchitectureSpec: Validated architecture, sample and config

    Raises:
        ConfigError: If the description is malformed
    """
    if not isinstance(spec, dict):
        raise ConfigError("Architecture description must be a mapping")
    layers = spec.get("layers") or []
    if not isinstance(layers, list):
        raise ConfigError(f"'layers' must be a list, got {layers!r}")
    if len(layers) < 2:
        raise ConfigError(f"A network needs at least 2 layers, got {len(layers)}")

    dims: List[Tuple[int, int]] = []
    acts: List[Activation] = []
    last = len(layers) - 1
    for i, entry in enumerate(layers):
        rows, cols, act_name = _parse_layer(entry, i)
        if rows < 1 or cols < 1:
            raise ConfigError(f"Layer {i} grid {rows}x{cols} must be at least 1x1")
        dims.append((rows, cols))
        if i == 0:
            if act_name is not None:
                logger.warning("Ignoring activation %r on the input layer", act_name)
            continue
        if act_name is None:
            acts.append(Activation.SIGMOID if i == last else Activation.LEAKY_RELU)
        else:
            try:
                acts.append(parse_activation(act_name))
            except KeyError as exc:
                raise ConfigError(f"Layer {i}: unknown activation {act_name!r}") from exc

    overrides = {k: spec[k] for k in _CONFIG_KEYS if k in spec}
    try:
        config = replace(SimulatorConfig(), **overrides)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc

    sizes = [r * c for r, c in dims]
    return ArchitectureSpec(
        layer_dims=dims,
        activations=acts,
        inputs=_vector(spec, "inputs", sizes[0]),
        targets=_vector(spec, "targets", sizes[-1]),
        config=config,
    )


def compile_from_yaml(yaml_text: str) -> ArchitectureSpec:
    """Compile from YAML text into an `ArchitectureSpec`."""
    data = yaml.safe_load(yaml_text) or {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML must be a mapping")
    return compile_from_dict(data)


def compile_from_file(path: str) -> ArchitectureSpec:
    """Compile from a YAML file path into an `ArchitectureSpec`."""
    with open(path, "r", encoding="utf-8") as f:
        txt = f.read()
    return compile_from_yaml(txt)


def build_simulation(spec: ArchitectureSpec, on_context: ContextCallback | None = None) -> Simulation:
    """Instantiate a `Simulation` from a compiled spec."""
    return Simulation(
        layer_dims=spec.layer_dims,
        activations=spec.activations,
        inputs=spec.inputs,
        targets=spec.targets,
        config=spec.config,
        on_context=on_context,
    )
