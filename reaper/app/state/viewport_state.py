from __future__ import annotations

from enum import Enum

from PySide6.QtCore import QObject, Signal

ZOOM_MIN = 1.0
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1


class InteractionMode(Enum):
    CROP = "crop"
    PAN = "pan"


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


class ViewportTransform(QObject):
    """Preview zoom and pan for the crop canvas.

    Design:
    - zoom is kept in [ZOOM_MIN, ZOOM_MAX] and rounded to 2 decimals.
    - pan is in display pixels and is only meaningful while zoomed in; whenever
      zoom is at ZOOM_MIN pan is (0, 0). Both fields are updated before any
      signal is emitted, so listeners never observe a state breaking that rule.
    """

    zoomChanged = Signal(float)
    panChanged = Signal(float, float)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._zoom = ZOOM_MIN
        self._pan_x = 0.0
        self._pan_y = 0.0

    @property
    def zoom(self) -> float:
        return float(self._zoom)

    @property
    def pan(self) -> tuple[float, float]:
        return (self._pan_x, self._pan_y)

    @property
    def is_zoomed(self) -> bool:
        return self._zoom > ZOOM_MIN

    def zoom_in(self) -> float:
        return self._apply_zoom(self._zoom + ZOOM_STEP)

    def zoom_out(self) -> float:
        return self._apply_zoom(self._zoom - ZOOM_STEP)

    def set_pan(self, x: float, y: float) -> bool:
        """Set the pan offset. Ignored (returns False) unless zoomed in."""
        if not self.is_zoomed:
            return False
        self._update(self._zoom, float(x), float(y))
        return True

    def reset(self) -> None:
        self._update(ZOOM_MIN, 0.0, 0.0)

    def _apply_zoom(self, value: float) -> float:
        z = round(_clamp(value, ZOOM_MIN, ZOOM_MAX), 2)
        if z <= ZOOM_MIN:
            self._update(ZOOM_MIN, 0.0, 0.0)
        else:
            self._update(z, self._pan_x, self._pan_y)
        return self._zoom

    def _update(self, zoom: float, pan_x: float, pan_y: float) -> None:
        zoom_changed = zoom != self._zoom
        pan_changed = pan_x != self._pan_x or pan_y != self._pan_y
        self._zoom = zoom
        self._pan_x = pan_x
        self._pan_y = pan_y
        if pan_changed:
            self.panChanged.emit(pan_x, pan_y)
        if zoom_changed:
            self.zoomChanged.emit(zoom)
