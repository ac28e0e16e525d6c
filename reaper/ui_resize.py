"""Resize view: exact target width/height (aspect ratio not kept)."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor
from functools import partial

from PySide6.QtWidgets import QFormLayout, QSpinBox, QVBoxLayout, QWidget

from .app.state.edit_state import EditKind
from .image_engine.processing import resize_image
from .image_engine.source import EncodedImage, SourceImage
from .logger import get_logger
from .settings_manager import SettingsManager
from .ui_edit_view import EditView

_logger = get_logger("ui_resize")

MAX_DIMENSION = 65535

ResizeFn = Callable[[EncodedImage, int, int], EncodedImage]


class ResizeView(EditView):
    KIND = EditKind.RESIZE
    RESULT_TITLE = "Resized Image"
    SUBMIT_TEXT = "Resize"

    def __init__(
        self,
        settings: SettingsManager | None = None,
        parent: QWidget | None = None,
        *,
        executor: Executor | None = None,
        resize_fn: ResizeFn = resize_image,
    ) -> None:
        super().__init__(settings, parent, executor=executor)
        self.resize_fn = resize_fn

    def _build_controls(self, layout: QVBoxLayout) -> None:
        # 0 shows as blank: the dimension has not been entered yet
        self.width_spin = QSpinBox()
        self.width_spin.setRange(0, MAX_DIMENSION)
        self.width_spin.setSpecialValueText(" ")
        self.width_spin.setSuffix(" px")
        self.height_spin = QSpinBox()
        self.height_spin.setRange(0, MAX_DIMENSION)
        self.height_spin.setSpecialValueText(" ")
        self.height_spin.setSuffix(" px")

        form = QFormLayout()
        form.addRow("Width", self.width_spin)
        form.addRow("Height", self.height_spin)
        layout.addLayout(form)
        self._register_inputs(self.width_spin, self.height_spin)

    def _reset_controls(self) -> None:
        self.width_spin.setValue(0)
        self.height_spin.setValue(0)

    def set_target_size(self, width: int, height: int) -> None:
        self.width_spin.setValue(width)
        self.height_spin.setValue(height)

    def _submit(self) -> None:
        w, h = self.width_spin.value(), self.height_spin.value()
        if w <= 0 or h <= 0:
            self.show_error("Enter a width and height greater than 0")
            return
        _logger.debug("resize requested: %dx%d", w, h)
        self._run({"width": w, "height": h}, partial(self.resize_fn, self._source.image, w, h))

    def set_source(self, source: SourceImage | None) -> None:
        super().set_source(source)
        if source is not None:
            self.width_spin.setToolTip(f"Original width: {source.width} px")
            self.height_spin.setToolTip(f"Original height: {source.height} px")
