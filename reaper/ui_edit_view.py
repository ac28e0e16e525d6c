"""Shared layout and request lifecycle for the crop/resize/convert views."""

from __future__ import annotations

from concurrent.futures import Executor
from pathlib import Path
from typing import Any

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .app.state.edit_state import EditKind, EditRequest, EditStatus
from .file_operations import save_bytes, suggest_download_name
from .image_engine.source import EncodedImage, SourceImage, decode_to_qimage
from .logger import get_logger
from .ops.dispatcher import EditOperationDispatcher
from .settings_manager import SettingsManager
from .ui_canvas import ImagePreview
from .ui_result import MetadataLabel, ResultPanel

_logger = get_logger("ui_edit_view")


class EditView(QWidget):
    """Base edit view.

    Subclasses provide the preview widget, the operation controls, and
    `_submit()`. The base handles pending/result/failed presentation, clear,
    and download.
    """

    notify = Signal(str)
    clearRequested = Signal()

    KIND = EditKind.CROP
    RESULT_TITLE = "Edited Image"
    SUBMIT_TEXT = "Apply"

    def __init__(
        self,
        settings: SettingsManager | None = None,
        parent: QWidget | None = None,
        *,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._source: SourceImage | None = None
        self._inputs: list[QWidget] = []
        self.dispatcher = self._create_dispatcher(executor)
        self.dispatcher.requestChanged.connect(self._on_request_changed)
        self.dispatcher.busyChanged.connect(self._on_busy_changed)

        # ---- left: preview ----
        self.editor_preview = self._create_preview()
        self.result_preview = ImagePreview()
        self.preview_stack = QStackedWidget()
        self.preview_stack.addWidget(self.editor_preview)
        self.preview_stack.addWidget(self.result_preview)
        self.progress = QProgressBar()
        self.progress.setRange(0, 0)
        self.progress.setTextVisible(False)
        self.progress.setVisible(False)

        left = QVBoxLayout()
        left.addWidget(self.preview_stack, 1)
        left.addWidget(self.progress)

        # ---- right: controls / result ----
        self.metadata = MetadataLabel()
        self.submit_btn = QPushButton(self.SUBMIT_TEXT)
        self.submit_btn.clicked.connect(self.submit)
        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self.clearRequested.emit)
        self.error_label = QLabel()
        self.error_label.setObjectName("error")
        self.error_label.setWordWrap(True)
        self.error_label.setVisible(False)

        edit_panel = QWidget()
        controls = QVBoxLayout(edit_panel)
        controls.addWidget(self.metadata)
        self._build_controls(controls)
        controls.addWidget(self.submit_btn)
        controls.addWidget(self.clear_btn)
        controls.addWidget(self.error_label)
        controls.addStretch()

        self.result_panel = ResultPanel(self.RESULT_TITLE)
        self.result_panel.downloadRequested.connect(self.download)
        self.result_panel.clearRequested.connect(self.clearRequested.emit)

        self.side_stack = QStackedWidget()
        self.side_stack.addWidget(edit_panel)
        self.side_stack.addWidget(self.result_panel)
        self.side_stack.setFixedWidth(300)

        root = QHBoxLayout(self)
        root.addLayout(left, 1)
        root.addWidget(self.side_stack)

        self._register_inputs(self.submit_btn, self.clear_btn, self.editor_preview)

    # ---- subclass hooks ----
    def _create_dispatcher(self, executor: Executor | None) -> EditOperationDispatcher:
        return EditOperationDispatcher(self, executor)

    def _create_preview(self) -> ImagePreview:
        return ImagePreview()

    def _build_controls(self, layout: QVBoxLayout) -> None:
        """Add operation-specific widgets to the side panel."""

    def _reset_controls(self) -> None:
        """Restore operation controls to their initial values."""

    def _submit(self) -> None:
        raise NotImplementedError

    # ---- public API ----
    @property
    def source(self) -> SourceImage | None:
        return self._source

    @property
    def in_result_mode(self) -> bool:
        return self.dispatcher.status is EditStatus.SUCCEEDED

    def set_source(self, source: SourceImage | None) -> None:
        self.dispatcher.clear()
        self._source = source
        self._reset_controls()
        self.show_error(None)
        self.editor_preview.set_image(decode_to_qimage(source.image.data) if source is not None else None)
        self.metadata.show_image(source.image if source else None, source.file_name if source else None)
        self._show_edit_mode()

    @Slot()
    def submit(self) -> None:
        if self._source is None or self.dispatcher.busy:
            return
        self.show_error(None)
        self._submit()

    def show_error(self, message: str | None) -> None:
        self.error_label.setText(message or "")
        self.error_label.setVisible(bool(message))

    @Slot()
    def download(self) -> None:
        req = self.dispatcher.request
        if req is None or req.status is not EditStatus.SUCCEEDED:
            return
        artifact: EncodedImage = req.artifact
        name = suggest_download_name(self.KIND, self._source.file_name if self._source else None, req.params, artifact)
        start_dir = self._settings.last_open_dir if self._settings else None
        try:
            path = save_bytes(self, artifact.data, name, start_dir)
        except OSError as e:
            _logger.error("save failed: %s", e, exc_info=True)
            QMessageBox.critical(self, "Save Failed", f"Failed to save image:\n{e}")
            return
        if path:
            self.notify.emit(f"Download complete: {Path(path).name}")

    def shutdown(self) -> None:
        self.dispatcher.shutdown()

    # ---- internals ----
    def _register_inputs(self, *widgets: QWidget) -> None:
        self._inputs.extend(widgets)

    def _run(self, params: dict[str, Any], operation) -> EditRequest | None:
        return self.dispatcher.submit(self.KIND, params, operation)

    def _show_edit_mode(self) -> None:
        self.preview_stack.setCurrentWidget(self.editor_preview)
        self.side_stack.setCurrentIndex(0)
        self.result_preview.set_image(None)

    def _show_result_mode(self, artifact: EncodedImage) -> None:
        self.result_preview.set_image(decode_to_qimage(artifact.data))
        self.result_panel.show_artifact(artifact, self._source.file_name if self._source else None)
        self.preview_stack.setCurrentWidget(self.result_preview)
        self.side_stack.setCurrentWidget(self.result_panel)

    def _on_request_changed(self, req: EditRequest | None) -> None:
        if req is None or req.status is EditStatus.PENDING:
            self._show_edit_mode()
            return
        if req.status is EditStatus.SUCCEEDED:
            self._show_result_mode(req.artifact)
        elif req.status is EditStatus.FAILED:
            # Keep the current preview; the view stays editable for a retry.
            self.show_error(req.error)
            self.notify.emit(f"{self.KIND.value.capitalize()} failed: {req.error}")

    def _on_busy_changed(self, busy: bool) -> None:
        self.progress.setVisible(busy)
        for w in self._inputs:
            w.setEnabled(not busy)
        if busy:
            self.setCursor(Qt.CursorShape.BusyCursor)
        else:
            self.unsetCursor()
