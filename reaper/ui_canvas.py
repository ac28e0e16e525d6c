"""Image preview widgets.

`ImagePreview` paints an image contain-fitted into the widget. `CropCanvas`
adds the crop tool on top: preview zoom/pan from the viewport, the crop
selection overlay with resize handles, and mouse/touch routing to the crop
editor.
"""

from __future__ import annotations

from PySide6.QtCore import QEvent, QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QPainterPath, QPen, QPixmap
from PySide6.QtWidgets import QSizePolicy, QWidget

from .app.state.viewport_state import InteractionMode
from .logger import get_logger
from .ops.crop_editor import CropEditor
from .ops.crop_mapping import contain_fit
from .ops.crop_selection import move_region, resize_region
from .ops.geometry import Point, Rect, Size

_logger = get_logger("ui_canvas")

ACCENT = QColor(239, 68, 68)
SHADE = QColor(0, 0, 0, 140)
GRID_LINES = 3

_TOUCH_EVENTS = (QEvent.Type.TouchBegin, QEvent.Type.TouchUpdate, QEvent.Type.TouchEnd, QEvent.Type.TouchCancel)


class ImagePreview(QWidget):
    MARGIN = 8

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._pixmap = QPixmap()
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(200, 150)

    def set_image(self, image: QImage | None) -> None:
        self._pixmap = QPixmap.fromImage(image) if image is not None and not image.isNull() else QPixmap()
        self.update()

    def has_image(self) -> bool:
        return not self._pixmap.isNull()

    def image_size(self) -> Size:
        return Size(self._pixmap.width(), self._pixmap.height())

    def fit_rect(self) -> QRectF:
        """Widget-space rect of the unscaled, contain-fitted image."""
        if self._pixmap.isNull():
            return QRectF()
        m = self.MARGIN
        area = Size(max(1, self.width() - 2 * m), max(1, self.height() - 2 * m))
        r = contain_fit(self.image_size(), area)
        return QRectF(r.x + m, r.y + m, r.width, r.height)

    def rendered_size(self) -> Size:
        fr = self.fit_rect()
        return Size(fr.width(), fr.height())

    def paintEvent(self, event) -> None:  # type: ignore
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            self._paint_image(painter)
        finally:
            painter.end()

    def _paint_image(self, painter: QPainter) -> None:
        if not self._pixmap.isNull():
            painter.drawPixmap(self.fit_rect(), self._pixmap, QRectF(self._pixmap.rect()))


class CropCanvas(ImagePreview):
    HANDLE_SIZE = 10
    HANDLES = ("tl", "t", "tr", "r", "br", "b", "bl", "l")

    def __init__(self, editor: CropEditor, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._editor = editor
        # Active crop drag: (anchor or "move" or "new", region at press, pointer at press)
        self._drag: tuple[str, Rect, Point] | None = None
        self.setMouseTracking(True)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)

        editor.viewport.zoomChanged.connect(self._on_view_changed)
        editor.viewport.panChanged.connect(self._on_view_changed)
        editor.selection.pendingChanged.connect(self._on_view_changed)
        editor.modeChanged.connect(self._on_view_changed)
        editor.gesture.sessionChanged.connect(self._on_view_changed)
        self._update_cursor()

    # ---- geometry helpers ----
    def _to_local(self, pos: QPointF) -> Point:
        fr = self.fit_rect()
        return Point(float(pos.x() - fr.x()), float(pos.y() - fr.y()))

    def _visible_region(self) -> Rect | None:
        sel = self._editor.selection
        return sel.pending if sel.pending is not None else sel.committed

    def _region_to_widget(self, region: Rect) -> QRectF:
        fr = self.fit_rect()
        return QRectF(fr.x() + region.x, fr.y() + region.y, region.width, region.height)

    def _handle_points(self, region: Rect) -> dict[str, Point]:
        cx = region.x + region.width / 2.0
        cy = region.y + region.height / 2.0
        return {
            "tl": Point(region.x, region.y),
            "t": Point(cx, region.y),
            "tr": Point(region.x2, region.y),
            "r": Point(region.x2, cy),
            "br": Point(region.x2, region.y2),
            "b": Point(cx, region.y2),
            "bl": Point(region.x, region.y2),
            "l": Point(region.x, cy),
        }

    def hit_test(self, local: Point) -> str | None:
        """Return the handle name under `local`, "move" inside the region, or None."""
        region = self._visible_region()
        if region is None or region.is_empty:
            return None
        hs = self.HANDLE_SIZE / 2.0
        for name, p in self._handle_points(region).items():
            if abs(local.x - p.x) <= hs and abs(local.y - p.y) <= hs:
                return name
        if region.contains(local):
            return "move"
        return None

    # ---- painting ----
    def _paint_image(self, painter: QPainter) -> None:
        if self._pixmap.isNull():
            return
        fr = self.fit_rect()
        vp = self._editor.viewport
        pan_x, pan_y = vp.pan
        center = fr.center()
        painter.save()
        painter.setClipRect(QRectF(self.rect()))
        # scale about the image center, then shift by the pan offset
        painter.translate(center.x() + pan_x, center.y() + pan_y)
        painter.scale(vp.zoom, vp.zoom)
        painter.translate(-center.x(), -center.y())
        painter.drawPixmap(fr, self._pixmap, QRectF(self._pixmap.rect()))
        painter.restore()
        self._paint_selection(painter, fr)

    def _paint_selection(self, painter: QPainter, fr: QRectF) -> None:
        region = self._visible_region()
        if region is None or region.is_empty:
            return
        sel = self._region_to_widget(region)

        shade = QPainterPath()
        shade.addRect(fr)
        inner = QPainterPath()
        inner.addRect(sel)
        painter.fillPath(shade.subtracted(inner), SHADE)

        painter.setPen(QPen(QColor(255, 255, 255, 110), 1, Qt.PenStyle.DashLine))
        for i in range(1, GRID_LINES):
            x = sel.left() + sel.width() * i / GRID_LINES
            y = sel.top() + sel.height() * i / GRID_LINES
            painter.drawLine(QPointF(x, sel.top()), QPointF(x, sel.bottom()))
            painter.drawLine(QPointF(sel.left(), y), QPointF(sel.right(), y))

        painter.setPen(QPen(ACCENT, 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(sel)

        if self._editor.mode is not InteractionMode.CROP:
            return
        hs = self.HANDLE_SIZE
        painter.setPen(QPen(QColor(0, 0, 0), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        for p in self._handle_points(region).values():
            painter.drawRect(QRectF(fr.x() + p.x - hs / 2.0, fr.y() + p.y - hs / 2.0, hs, hs))

    # ---- input ----
    def _on_view_changed(self, *_args) -> None:
        self._update_cursor()
        self.update()

    def _update_cursor(self) -> None:
        if self._editor.mode is InteractionMode.PAN:
            if not self._editor.viewport.is_zoomed:
                self.setCursor(Qt.CursorShape.ArrowCursor)
            elif self._editor.gesture.active:
                self.setCursor(Qt.CursorShape.ClosedHandCursor)
            else:
                self.setCursor(Qt.CursorShape.OpenHandCursor)
        else:
            self.setCursor(Qt.CursorShape.CrossCursor)

    def press_at(self, pos: QPointF) -> None:
        if not self.has_image():
            return
        if self._editor.mode is InteractionMode.PAN:
            self._editor.gesture.start(Point(float(pos.x()), float(pos.y())))
            return
        if not self._editor.selection.enabled:
            return
        local = self._to_local(pos)
        bounds = self.rendered_size()
        hit = self.hit_test(local)
        region = self._visible_region()
        if hit is not None and region is not None:
            self._drag = (hit, region, local)
        elif 0 <= local.x <= bounds.width and 0 <= local.y <= bounds.height:
            self._drag = ("new", Rect(local.x, local.y, 0.0, 0.0), local)

    def move_to(self, pos: QPointF) -> None:
        if self._editor.mode is InteractionMode.PAN:
            self._editor.gesture.move(Point(float(pos.x()), float(pos.y())))
            return
        if self._drag is None:
            return
        anchor, start, origin = self._drag
        local = self._to_local(pos)
        bounds = self.rendered_size()
        if anchor == "move":
            region = move_region(start, local - origin, bounds)
        else:
            region = resize_region(start, "br" if anchor == "new" else anchor, local, bounds)
        self._editor.selection.update(region)

    def release_at(self, pos: QPointF) -> None:
        if self._editor.mode is InteractionMode.PAN:
            self._editor.gesture.end()
            return
        self._drag = None

    def mousePressEvent(self, event) -> None:  # type: ignore
        if event.button() == Qt.MouseButton.LeftButton:
            self.press_at(event.position())
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore
        if event.buttons() & Qt.MouseButton.LeftButton:
            self.move_to(event.position())
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore
        if event.button() == Qt.MouseButton.LeftButton:
            self.release_at(event.position())
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def event(self, event) -> bool:  # type: ignore
        # In pan mode touch drives the same gesture protocol as the mouse; in
        # crop mode Qt synthesizes mouse events from unhandled touches.
        if event.type() in _TOUCH_EVENTS and self._editor.mode is InteractionMode.PAN:
            points = event.points()
            if event.type() == QEvent.Type.TouchBegin and points:
                self.press_at(points[0].position())
            elif event.type() == QEvent.Type.TouchUpdate and points:
                self.move_to(points[0].position())
            else:
                self._editor.gesture.end()
            event.accept()
            return True
        return super().event(event)

    def wheelEvent(self, event) -> None:  # type: ignore
        if not (event.modifiers() & Qt.KeyboardModifier.ControlModifier) or not self.isEnabled():
            super().wheelEvent(event)
            return
        angle = event.angleDelta().y()
        if angle > 0:
            self._editor.zoom_in()
        elif angle < 0:
            self._editor.zoom_out()
        event.accept()

    def hideEvent(self, event) -> None:  # type: ignore
        # A hidden canvas never sees the release; end any gesture now.
        self._editor.gesture.end()
        self._drag = None
        super().hideEvent(event)
