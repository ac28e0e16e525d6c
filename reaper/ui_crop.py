"""Crop view: zoomable/pannable preview with a debounced crop selection."""

from __future__ import annotations

from concurrent.futures import Executor

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from .app.state.edit_state import EditKind
from .app.state.viewport_state import InteractionMode
from .image_engine.processing import crop_image
from .image_engine.source import SourceImage
from .logger import get_logger
from .ops.crop_editor import CropEditor, CropFn
from .ops.crop_mapping import InvalidSelectionError
from .ops.crop_selection import CROP_DEBOUNCE_MS
from .ops.dispatcher import EditOperationDispatcher
from .ops.gesture import FRAME_INTERVAL_MS
from .settings_manager import SettingsManager
from .ui_canvas import CropCanvas
from .ui_edit_view import EditView

_logger = get_logger("ui_crop")


class CropView(EditView):
    KIND = EditKind.CROP
    RESULT_TITLE = "Cropped Image"
    SUBMIT_TEXT = "Crop"

    def __init__(
        self,
        settings: SettingsManager | None = None,
        parent: QWidget | None = None,
        *,
        executor: Executor | None = None,
        crop_fn: CropFn = crop_image,
    ) -> None:
        super().__init__(settings, parent, executor=executor)
        self.editor.crop_fn = crop_fn
        self.editor.viewport.zoomChanged.connect(self._on_zoom_changed)
        self.editor.modeChanged.connect(self._on_mode_changed)
        self._on_mode_changed(self.editor.mode)

    @property
    def canvas(self) -> CropCanvas:
        return self.editor_preview  # type: ignore[return-value]

    def _create_dispatcher(self, executor: Executor | None) -> EditOperationDispatcher:
        s = self._settings
        self.editor = CropEditor(
            self,
            debounce_ms=s.get_int("crop_debounce_ms") if s else CROP_DEBOUNCE_MS,
            frame_interval_ms=s.get_int("frame_interval_ms") if s else FRAME_INTERVAL_MS,
            executor=executor,
        )
        return self.editor.dispatcher

    def _create_preview(self) -> CropCanvas:
        return CropCanvas(self.editor)

    def _build_controls(self, layout: QVBoxLayout) -> None:
        self.zoom_out_btn = QPushButton("-")
        self.zoom_out_btn.setToolTip("Zoom out")
        self.zoom_in_btn = QPushButton("+")
        self.zoom_in_btn.setToolTip("Zoom in")
        self.zoom_label = QLabel(self._zoom_text(self.editor.viewport.zoom))
        self.zoom_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.zoom_out_btn.clicked.connect(self.editor.zoom_out)
        self.zoom_in_btn.clicked.connect(self.editor.zoom_in)

        zoom_row = QHBoxLayout()
        zoom_row.addWidget(self.zoom_out_btn)
        zoom_row.addWidget(self.zoom_label)
        zoom_row.addWidget(self.zoom_in_btn)
        layout.addLayout(zoom_row)

        self.mode_btn = QPushButton()
        self.mode_btn.setCheckable(True)
        self.mode_btn.clicked.connect(self.editor.toggle_mode)
        layout.addWidget(self.mode_btn)

        self._register_inputs(self.zoom_out_btn, self.zoom_in_btn, self.mode_btn)

    def set_source(self, source: SourceImage | None) -> None:
        self.editor.set_source(source)
        super().set_source(source)

    def _submit(self) -> None:
        try:
            self.editor.submit_crop(self.canvas.rendered_size())
        except InvalidSelectionError as e:
            _logger.debug("crop rejected: %s", e)
            self.show_error(str(e))

    def shutdown(self) -> None:
        self.editor.shutdown()

    @staticmethod
    def _zoom_text(zoom: float) -> str:
        return f"{zoom:.2f}x"

    @Slot(float)
    def _on_zoom_changed(self, zoom: float) -> None:
        self.zoom_label.setText(self._zoom_text(zoom))

    def _on_mode_changed(self, mode: InteractionMode) -> None:
        panning = mode is InteractionMode.PAN
        self.mode_btn.setChecked(panning)
        self.mode_btn.setText("Switch to Crop Mode" if panning else "Switch to Pan Mode")
        # Crop is only offered while editing the selection
        self.submit_btn.setVisible(not panning)
