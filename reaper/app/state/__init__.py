from .edit_state import EditKind, EditRequest, EditStatus
from .viewport_state import InteractionMode, ViewportTransform

__all__ = [
    "EditKind",
    "EditRequest",
    "EditStatus",
    "InteractionMode",
    "ViewportTransform",
]
