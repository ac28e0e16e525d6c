from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from reaper.logger import get_logger

from .geometry import Point, Rect, Size

_logger = get_logger("crop_selection")

CROP_DEBOUNCE_MS = 100


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _anchor_flags(anchor: str) -> tuple[bool, bool, bool, bool]:
    """Return (moves_left, moves_right, moves_top, moves_bottom) for a handle."""
    a = (anchor or "").lower()
    known = {
        "tl": (True, False, True, False),
        "t": (False, False, True, False),
        "tr": (False, True, True, False),
        "r": (False, True, False, False),
        "br": (False, True, False, True),
        "b": (False, False, False, True),
        "bl": (True, False, False, True),
        "l": (True, False, False, False),
    }
    if a in known:
        return known[a]
    return ("l" in a, "r" in a, "t" in a, "b" in a)


def move_region(start: Rect, delta: Point, bounds: Size) -> Rect:
    """Translate `start` by `delta`, preserving size and staying inside `bounds`."""
    r = start.normalized()
    w = min(r.width, bounds.width)
    h = min(r.height, bounds.height)
    x = _clamp(r.x + delta.x, 0.0, max(0.0, bounds.width - w))
    y = _clamp(r.y + delta.y, 0.0, max(0.0, bounds.height - h))
    return Rect(x, y, w, h)


def resize_region(start: Rect, anchor: str, pointer: Point, bounds: Size) -> Rect:
    """Drag one handle of `start` to `pointer`; the opposite sides stay fixed.

    Dragging past the opposite edge flips the rect instead of producing a
    negative size. The result is clipped to `bounds`.
    """
    r = start.normalized()
    x1, y1, x2, y2 = r.x, r.y, r.x2, r.y2
    px = _clamp(pointer.x, 0.0, bounds.width)
    py = _clamp(pointer.y, 0.0, bounds.height)

    moves_left, moves_right, moves_top, moves_bottom = _anchor_flags(anchor)
    if moves_left:
        x1 = px
    elif moves_right:
        x2 = px
    if moves_top:
        y1 = py
    elif moves_bottom:
        y2 = py

    return Rect(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))


class CropSelectionEngine(QObject):
    """Pending/committed crop region with a trailing-edge debounce.

    Every accepted update shows up immediately as `pending` and restarts the
    debounce timer; when the timer fires, `pending` becomes `committed`.
    Regions are in rendered-image coordinates (unscaled display basis).
    """

    pendingChanged = Signal(object)  # Rect | None
    committedChanged = Signal(object)  # Rect | None

    def __init__(self, parent: QObject | None = None, *, debounce_ms: int = CROP_DEBOUNCE_MS) -> None:
        super().__init__(parent)
        self._pending: Rect | None = None
        self._committed: Rect | None = None
        self._enabled = True
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(debounce_ms)))
        self._timer.timeout.connect(self._commit)

    @property
    def pending(self) -> Rect | None:
        return self._pending

    @property
    def committed(self) -> Rect | None:
        return self._committed

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def debounce_active(self) -> bool:
        return self._timer.isActive()

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def update(self, region: Rect) -> bool:
        if not self._enabled:
            return False
        r = region.normalized()
        self._pending = r
        self.pendingChanged.emit(r)
        self._timer.start()
        return True

    def clear(self) -> None:
        self._timer.stop()
        had_pending = self._pending is not None
        had_committed = self._committed is not None
        self._pending = None
        self._committed = None
        if had_pending:
            self.pendingChanged.emit(None)
        if had_committed:
            self.committedChanged.emit(None)

    @Slot()
    def _commit(self) -> None:
        if self._pending == self._committed:
            return
        self._committed = self._pending
        _logger.debug("crop committed: %s", self._committed)
        self.committedChanged.emit(self._committed)
