"""Merge PDFs view: collect PDF files, merge them in order, save the result."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor
from functools import partial
from pathlib import Path

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .app.state.edit_state import EditKind, EditRequest, EditStatus
from .file_operations import choose_pdf_files, local_paths_from_mime, save_bytes, suggest_download_name
from .image_engine.pdf_merge import is_pdf_path, merge_pdfs
from .logger import get_logger
from .ops.dispatcher import EditOperationDispatcher
from .settings_manager import SettingsManager

_logger = get_logger("ui_merge")

MergeFn = Callable[[Sequence[str]], bytes]


class MergeView(QWidget):
    notify = Signal(str)

    def __init__(
        self,
        settings: SettingsManager | None = None,
        parent: QWidget | None = None,
        *,
        executor: Executor | None = None,
        merge_fn: MergeFn = merge_pdfs,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self.merge_fn = merge_fn
        self.setAcceptDrops(True)

        self.dispatcher = EditOperationDispatcher(self, executor)
        self.dispatcher.requestChanged.connect(self._on_request_changed)
        self.dispatcher.busyChanged.connect(self._on_busy_changed)

        # ---- empty state: drop zone ----
        drop_zone = QWidget()
        drop_zone.setObjectName("dropZone")
        title = QLabel("Drop your PDFs here")
        title.setObjectName("dropTitle")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        hint = QLabel("Drag & drop PDF files to merge\nor")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.select_btn = QPushButton("Select PDFs")
        self.select_btn.clicked.connect(self.choose_files)
        dz = QVBoxLayout(drop_zone)
        dz.addStretch()
        dz.addWidget(title)
        dz.addWidget(hint)
        dz.addWidget(self.select_btn, 0, Qt.AlignmentFlag.AlignHCenter)
        dz.addStretch()

        # ---- file list ----
        list_page = QWidget()
        self.count_label = QLabel()
        self.count_label.setObjectName("resultTitle")
        self.add_more_btn = QPushButton("Add More")
        self.add_more_btn.clicked.connect(self.choose_files)
        self.file_list = QListWidget()
        self.file_list.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)
        self.remove_btn = QPushButton("Remove Selected")
        self.remove_btn.clicked.connect(self.remove_selected)
        self.merge_btn = QPushButton("Merge PDFs")
        self.merge_btn.clicked.connect(self.merge)
        self.progress = QProgressBar()
        self.progress.setRange(0, 0)
        self.progress.setTextVisible(False)
        self.progress.setVisible(False)

        header = QHBoxLayout()
        header.addWidget(self.count_label, 1)
        header.addWidget(self.add_more_btn)
        buttons = QHBoxLayout()
        buttons.addWidget(self.remove_btn)
        buttons.addStretch()
        buttons.addWidget(self.merge_btn)
        lp = QVBoxLayout(list_page)
        lp.addLayout(header)
        lp.addWidget(self.file_list, 1)
        lp.addWidget(self.progress)
        lp.addLayout(buttons)

        self.stack = QStackedWidget()
        self.stack.addWidget(drop_zone)
        self.stack.addWidget(list_page)
        root = QVBoxLayout(self)
        root.addWidget(self.stack)

        self._inputs: list[QWidget] = [self.select_btn, self.add_more_btn, self.file_list, self.remove_btn, self.merge_btn]
        self._refresh()

    # ---- file list ----
    @property
    def paths(self) -> list[str]:
        return [self.file_list.item(i).data(Qt.ItemDataRole.UserRole) for i in range(self.file_list.count())]

    def add_paths(self, paths: Iterable[str]) -> int:
        """Append the PDF paths among `paths`; returns how many were added."""
        added = 0
        for p in paths:
            if not is_pdf_path(p):
                _logger.debug("ignoring non-PDF: %s", p)
                continue
            item = QListWidgetItem(Path(p).name)
            item.setData(Qt.ItemDataRole.UserRole, str(p))
            item.setToolTip(str(p))
            self.file_list.addItem(item)
            added += 1
        if added:
            self._refresh()
        return added

    @Slot()
    def remove_selected(self) -> None:
        for item in self.file_list.selectedItems():
            self.file_list.takeItem(self.file_list.row(item))
        self._refresh()

    def clear_files(self) -> None:
        self.file_list.clear()
        self._refresh()

    @Slot()
    def choose_files(self) -> None:
        start_dir = self._settings.last_open_dir if self._settings else None
        paths = choose_pdf_files(self, start_dir)
        if paths and self._settings is not None:
            self._settings.set("last_open_dir", paths[0])
        self.add_paths(paths)

    def _refresh(self) -> None:
        n = self.file_list.count()
        self.count_label.setText(f"{n} PDF{'s' if n != 1 else ''} selected")
        self.stack.setCurrentIndex(1 if n else 0)

    # ---- merge ----
    @Slot()
    def merge(self) -> EditRequest | None:
        paths = self.paths
        if not paths:
            QMessageBox.warning(self, "Merge PDFs", "Please add at least one PDF file.")
            return None
        _logger.info("merging %d PDFs", len(paths))
        return self.dispatcher.submit(EditKind.MERGE, {"paths": paths}, partial(self.merge_fn, paths))

    def shutdown(self) -> None:
        self.dispatcher.shutdown()

    def _on_request_changed(self, req: EditRequest | None) -> None:
        if req is None or req.status is EditStatus.PENDING:
            return
        if req.status is EditStatus.FAILED:
            QMessageBox.critical(self, "Merge Failed", f"Error merging PDFs:\n{req.error}")
            self.notify.emit(f"Merge failed: {req.error}")
            self.dispatcher.clear()
            return
        self._save(req.artifact)
        self.dispatcher.clear()

    def _save(self, data: bytes) -> None:
        start_dir = self._settings.last_open_dir if self._settings else None
        try:
            path = save_bytes(self, data, suggest_download_name(EditKind.MERGE, None), start_dir)
        except OSError as e:
            _logger.error("save failed: %s", e, exc_info=True)
            QMessageBox.critical(self, "Save Failed", f"Failed to save merged PDF:\n{e}")
            return
        if path:
            self.clear_files()
            self.notify.emit("PDFs merged and saved successfully")

    def _on_busy_changed(self, busy: bool) -> None:
        self.progress.setVisible(busy)
        for w in self._inputs:
            w.setEnabled(not busy)
        if busy:
            self.setCursor(Qt.CursorShape.BusyCursor)
        else:
            self.unsetCursor()

    # ---- drag & drop ----
    def dragEnterEvent(self, event) -> None:  # type: ignore
        if any(is_pdf_path(p) for p in local_paths_from_mime(event.mimeData())):
            event.acceptProposedAction()
            return
        event.ignore()

    def dropEvent(self, event) -> None:  # type: ignore
        if self.dispatcher.busy:
            event.ignore()
            return
        if self.add_paths(local_paths_from_mime(event.mimeData())):
            event.acceptProposedAction()
        else:
            event.ignore()
