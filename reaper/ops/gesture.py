"""Pan gestures over the crop canvas.

Mouse and touch input both reduce to start/move/end calls with a position in
widget coordinates. Moves are coalesced so the viewport sees at most one pan
commit per display frame, no matter how fast input events arrive.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QCoreApplication, QEvent, QObject, Qt, QTimer, Signal, Slot

from reaper.app.state.viewport_state import InteractionMode, ViewportTransform
from reaper.logger import get_logger

from .geometry import Point

_logger = get_logger("gesture")

# ~60 Hz display refresh
FRAME_INTERVAL_MS = 16


class PendingRedraw(QObject):
    """Single-slot redraw job: a scheduled flag plus one scratch value.

    `post()` overwrites the scratch value and schedules a frame only if none is
    scheduled yet. When the frame fires, the newest value is handed to
    `commit` exactly once.
    """

    def __init__(
        self,
        commit: Callable[[Any], None],
        interval_ms: int = FRAME_INTERVAL_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._commit = commit
        self._scheduled = False
        self._has_value = False
        self._scratch: Any = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(interval_ms)))
        self._timer.timeout.connect(self._on_frame)

    @property
    def scheduled(self) -> bool:
        return self._scheduled

    @property
    def scratch(self) -> Any:
        return self._scratch

    def post(self, value: Any) -> bool:
        """Store `value`; return True if this call scheduled a new frame."""
        self._scratch = value
        self._has_value = True
        if self._scheduled:
            return False
        self._scheduled = True
        self._timer.start()
        return True

    def flush(self) -> None:
        """Commit the scratch value now (if any) and cancel the scheduled frame."""
        self._timer.stop()
        self._scheduled = False
        if not self._has_value:
            return
        value = self._scratch
        self._has_value = False
        self._scratch = None
        self._commit(value)

    def discard(self) -> None:
        self._timer.stop()
        self._scheduled = False
        self._has_value = False
        self._scratch = None

    @Slot()
    def _on_frame(self) -> None:
        self.flush()


class PointerReleaseWatcher(QObject):
    """Application-wide pointer/touch release listener.

    Installed as an event filter on the application only between `acquire()`
    and `release()`. A left-button or touch release anywhere (outside the
    canvas too) emits `released`. Being a child QObject, Qt also drops the
    filter if the owner is destroyed without calling `release()`.
    """

    released = Signal()

    _RELEASE_EVENTS = (
        QEvent.Type.MouseButtonRelease,
        QEvent.Type.TouchEnd,
        QEvent.Type.TouchCancel,
    )

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._app: QCoreApplication | None = None

    @property
    def active(self) -> bool:
        return self._app is not None

    def acquire(self) -> None:
        if self._app is not None:
            return
        app = QCoreApplication.instance()
        if app is None:
            _logger.debug("no application instance; release watcher inactive")
            return
        app.installEventFilter(self)
        self._app = app

    def release(self) -> None:
        app = self._app
        if app is None:
            return
        self._app = None
        app.removeEventFilter(self)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802
        if self._app is None or event.type() not in self._RELEASE_EVENTS:
            return False
        # Pan drags use the left button only
        if event.type() == QEvent.Type.MouseButtonRelease and event.button() != Qt.MouseButton.LeftButton:
            return False
        self.released.emit()
        return False


@dataclass(frozen=True, slots=True)
class GestureSession:
    anchor_pan: Point
    anchor_pointer: Point


class GestureController(QObject):
    """Turns pointer drags into viewport pan updates while in pan mode."""

    sessionChanged = Signal(bool)

    def __init__(
        self,
        viewport: ViewportTransform,
        parent: QObject | None = None,
        *,
        frame_interval_ms: int = FRAME_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._viewport = viewport
        self._mode = InteractionMode.CROP
        self._session: GestureSession | None = None
        self._redraw = PendingRedraw(self._commit_pan, frame_interval_ms, self)
        self._release_watcher = PointerReleaseWatcher(self)
        self._release_watcher.released.connect(self.end)

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def session(self) -> GestureSession | None:
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def frame_pending(self) -> bool:
        return self._redraw.scheduled

    @property
    def release_watcher(self) -> PointerReleaseWatcher:
        return self._release_watcher

    def set_mode(self, mode: InteractionMode) -> None:
        self._mode = mode
        if mode is not InteractionMode.PAN and self._session is not None:
            _logger.debug("mode -> %s: force-ending pan session", mode.value)
            self.end()

    def start(self, pos: Point) -> bool:
        if self._mode is not InteractionMode.PAN or not self._viewport.is_zoomed:
            return False
        if self._session is not None:
            self.end()
        px, py = self._viewport.pan
        self._session = GestureSession(anchor_pan=Point(px, py), anchor_pointer=pos)
        self._release_watcher.acquire()
        _logger.debug("pan session start: pan=(%.1f,%.1f) pointer=(%.1f,%.1f)", px, py, pos.x, pos.y)
        self.sessionChanged.emit(True)
        return True

    def move(self, pos: Point) -> bool:
        session = self._session
        if session is None:
            return False
        candidate = session.anchor_pan + (pos - session.anchor_pointer)
        self._redraw.post(candidate)
        return True

    @Slot()
    def end(self) -> None:
        if self._session is None:
            return
        # Commit synchronously so no frame boundary leaves a stale pan behind.
        self._redraw.flush()
        self._close_session()
        _logger.debug("pan session end: pan=%s", self._viewport.pan)

    def shutdown(self) -> None:
        """Drop any session without committing; used when the owning view goes away."""
        self._redraw.discard()
        if self._session is not None:
            self._close_session()

    def _close_session(self) -> None:
        self._session = None
        self._release_watcher.release()
        self.sessionChanged.emit(False)

    def _commit_pan(self, pan: Point) -> None:
        self._viewport.set_pan(pan.x, pan.y)
