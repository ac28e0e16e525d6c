"""Crop tool controller.

Wires the viewport, pan gestures, crop selection and the edit dispatcher for
one crop view, and owns the interaction mode and the current source image.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor
from functools import partial

from PySide6.QtCore import QObject, Signal, Slot

from reaper.app.state.edit_state import EditKind, EditRequest
from reaper.app.state.viewport_state import InteractionMode, ViewportTransform
from reaper.image_engine.processing import crop_image
from reaper.image_engine.source import EncodedImage, SourceImage
from reaper.logger import get_logger

from .crop_mapping import InvalidSelectionError, map_selection_to_source
from .crop_selection import CROP_DEBOUNCE_MS, CropSelectionEngine
from .dispatcher import EditOperationDispatcher
from .geometry import PixelRect, Size
from .gesture import FRAME_INTERVAL_MS, GestureController

_logger = get_logger("crop_editor")

CropFn = Callable[[EncodedImage, int, int, int, int], EncodedImage]


class CropEditor(QObject):
    modeChanged = Signal(object)  # InteractionMode
    sourceChanged = Signal(object)  # SourceImage | None

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        debounce_ms: int = CROP_DEBOUNCE_MS,
        frame_interval_ms: int = FRAME_INTERVAL_MS,
        executor: Executor | None = None,
        crop_fn: CropFn = crop_image,
    ) -> None:
        super().__init__(parent)
        self.viewport = ViewportTransform(self)
        self.gesture = GestureController(self.viewport, self, frame_interval_ms=frame_interval_ms)
        self.selection = CropSelectionEngine(self, debounce_ms=debounce_ms)
        self.dispatcher = EditOperationDispatcher(self, executor)
        self.crop_fn = crop_fn
        self._mode = InteractionMode.CROP
        self._source: SourceImage | None = None
        self.dispatcher.busyChanged.connect(self._on_busy_changed)

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def source(self) -> SourceImage | None:
        return self._source

    @property
    def busy(self) -> bool:
        return self.dispatcher.busy

    def set_mode(self, mode: InteractionMode) -> None:
        if self.busy or mode is self._mode:
            return
        self._mode = mode
        self.gesture.set_mode(mode)
        self._sync_inputs()
        _logger.debug("mode -> %s", mode.value)
        self.modeChanged.emit(mode)

    def toggle_mode(self) -> None:
        self.set_mode(InteractionMode.CROP if self._mode is InteractionMode.PAN else InteractionMode.PAN)

    def zoom_in(self) -> None:
        if not self.busy:
            self.viewport.zoom_in()

    def zoom_out(self) -> None:
        if not self.busy:
            self.viewport.zoom_out()

    def set_source(self, source: SourceImage | None) -> None:
        """Replace the edited image; every per-image state goes back to its initial value."""
        self.gesture.shutdown()
        self.dispatcher.clear()
        self.selection.clear()
        self.viewport.reset()
        if self._mode is not InteractionMode.CROP:
            self._mode = InteractionMode.CROP
            self.gesture.set_mode(self._mode)
            self.modeChanged.emit(self._mode)
        self._sync_inputs()
        self._source = source
        self.sourceChanged.emit(source)

    def clear(self) -> None:
        self.set_source(None)

    def mapped_selection(self, displayed: Size) -> PixelRect:
        """Committed crop region in source pixels for the given rendered size."""
        src = self._source
        if src is None:
            raise InvalidSelectionError("No image loaded")
        region = self.selection.committed
        if region is None or region.is_empty:
            raise InvalidSelectionError("Select a region to crop first")
        return map_selection_to_source(region, displayed=displayed, natural=Size(src.width, src.height))

    def submit_crop(self, displayed: Size) -> EditRequest | None:
        """Submit the committed selection for cropping.

        Returns None while another request is pending.

        Raises:
            InvalidSelectionError: No image, no selection, or a selection outside
                the image. No request is created.
        """
        if self.busy:
            return None
        px = self.mapped_selection(displayed)
        image = self._source.image
        params = {"x": px.x, "y": px.y, "width": px.width, "height": px.height}
        return self.dispatcher.submit(EditKind.CROP, params, partial(self.crop_fn, image, *px.as_tuple()))

    def shutdown(self) -> None:
        self.gesture.shutdown()
        self.dispatcher.shutdown()

    @Slot(bool)
    def _on_busy_changed(self, busy: bool) -> None:
        if busy:
            self.gesture.end()
        self._sync_inputs()

    def _sync_inputs(self) -> None:
        self.selection.set_enabled(self._mode is InteractionMode.CROP and not self.busy)
