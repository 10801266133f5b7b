from .camera import Camera, ProjectionMode, ViewPreset, PRESET_ANGLES
from .items import (
    ScreenPoint,
    RenderKind,
    Highlight,
    EditKind,
    NodeItem,
    LinkItem,
    LayerControlItem,
    ActivationControlItem,
    RenderItem,
    item_to_dict,
)
