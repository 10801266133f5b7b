from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from nexus_core.enums import Activation


class RenderKind(str, Enum):
    NODE = "NODE"
    LINK = "LINK"
    LAYER_CONTROL = "LAYER_CONTROL"
    ACTIVATION_CONTROL = "ACTIVATION_CONTROL"


class Highlight(str, Enum):
    NONE = "NONE"
    FORWARD = "FORWARD"
    BACKWARD = "BACKWARD"
    UPDATE = "UPDATE"


class EditKind(str, Enum):
    """Which per-unit control a node exposes."""

    NONE = "NONE"
    INPUT = "INPUT"
    TARGET = "TARGET"
    BIAS = "BIAS"


@dataclass(frozen=True)
class ScreenPoint:
    x: float
    y: float
    scale: float
    depth: float

    def shifted(self, dy: float = 0.0, ddepth: float = 0.0) -> "ScreenPoint":
        return ScreenPoint(self.x, self.y + dy, self.scale, self.depth + ddepth)


@dataclass(frozen=True)
class NodeItem:
    key: str
    layer: int
    index: int
    row: int
    col: int
    value: float
    bias: Optional[float]
    is_input: bool
    is_output: bool
    edit: EditKind
    edit_value: Optional[float]
    highlight: Highlight
    pos: ScreenPoint
    depth: float
    kind: RenderKind = field(default=RenderKind.NODE, init=False)


@dataclass(frozen=True)
class LinkItem:
    key: str
    layer: int
    from_index: int
    to_index: int
    weight: float
    sign: int
    magnitude: float
    delta: float
    highlight: Highlight
    pos: ScreenPoint
    to_pos: ScreenPoint
    depth: float
    kind: RenderKind = field(default=RenderKind.LINK, init=False)


@dataclass(frozen=True)
class LayerControlItem:
    key: str
    layer: int
    rows: int
    cols: int
    can_grow_rows: bool
    can_shrink_rows: bool
    can_grow_cols: bool
    can_shrink_cols: bool
    pos: ScreenPoint
    depth: float
    kind: RenderKind = field(default=RenderKind.LAYER_CONTROL, init=False)


@dataclass(frozen=True)
class ActivationControlItem:
    key: str
    layer: int
    activation: Activation
    name: str
    color: str
    curve: Tuple[Tuple[float, float], ...]
    marker_x: float
    marker_y: float
    pos: ScreenPoint
    depth: float
    kind: RenderKind = field(default=RenderKind.ACTIVATION_CONTROL, init=False)


RenderItem = Union[NodeItem, LinkItem, LayerControlItem, ActivationControlItem]


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def item_to_dict(item: RenderItem) -> Dict[str, Any]:
    """JSON-friendly dict of a render item (enums become their names)."""
    return _plain(asdict(item))
