"""Convert view: re-encode the source into another image format."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor
from functools import partial

from PySide6.QtWidgets import QComboBox, QFormLayout, QVBoxLayout, QWidget

from .app.state.edit_state import EditKind
from .image_engine.processing import CONVERT_FORMATS, convert_image
from .image_engine.source import EncodedImage
from .logger import get_logger
from .settings_manager import SettingsManager
from .ui_edit_view import EditView

_logger = get_logger("ui_convert")

ConvertFn = Callable[[EncodedImage, str], EncodedImage]


class ConvertView(EditView):
    KIND = EditKind.CONVERT
    RESULT_TITLE = "Converted Image"
    SUBMIT_TEXT = "Convert"

    def __init__(
        self,
        settings: SettingsManager | None = None,
        parent: QWidget | None = None,
        *,
        executor: Executor | None = None,
        convert_fn: ConvertFn = convert_image,
    ) -> None:
        super().__init__(settings, parent, executor=executor)
        self.convert_fn = convert_fn
        self._reset_controls()

    def _build_controls(self, layout: QVBoxLayout) -> None:
        self.format_combo = QComboBox()
        for name in CONVERT_FORMATS:
            self.format_combo.addItem(name.upper(), name)
        form = QFormLayout()
        form.addRow("Convert to", self.format_combo)
        layout.addLayout(form)
        self._register_inputs(self.format_combo)

    def _default_format(self) -> str:
        fmt = str(self._settings.get("default_convert_format") if self._settings else "png").lower()
        if fmt not in CONVERT_FORMATS:
            _logger.warning("unknown default_convert_format %r, using png", fmt)
            return "png"
        return fmt

    def _reset_controls(self) -> None:
        self.set_target_format(self._default_format())

    @property
    def target_format(self) -> str:
        return self.format_combo.currentData()

    def set_target_format(self, fmt: str) -> None:
        idx = self.format_combo.findData(fmt.lower())
        if idx >= 0:
            self.format_combo.setCurrentIndex(idx)

    def _submit(self) -> None:
        fmt = self.target_format
        _logger.debug("convert requested: %s -> %s", self._source.image.mime_type, fmt)
        self._run({"target_format": fmt}, partial(self.convert_fn, self._source.image, fmt))
