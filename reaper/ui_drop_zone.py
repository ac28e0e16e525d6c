"""Empty-state widget that accepts an image by drag-and-drop or file dialog."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QLabel, QPushButton, QVBoxLayout, QWidget

from .file_operations import local_paths_from_mime


class DropZone(QWidget):
    fileDropped = Signal(str)
    selectRequested = Signal()

    def __init__(self, title: str = "Drop your image here", parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("dropZone")
        self.setAcceptDrops(True)

        self.title_label = QLabel(title)
        self.title_label.setObjectName("dropTitle")
        self.title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        hint = QLabel("Drag & drop an image file\nor")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.select_btn = QPushButton("Select Image")
        self.select_btn.clicked.connect(self.selectRequested.emit)

        layout = QVBoxLayout(self)
        layout.addStretch()
        layout.addWidget(self.title_label)
        layout.addWidget(hint)
        layout.addWidget(self.select_btn, 0, Qt.AlignmentFlag.AlignHCenter)
        layout.addStretch()

    def dragEnterEvent(self, event) -> None:  # type: ignore
        if local_paths_from_mime(event.mimeData()):
            event.acceptProposedAction()
            return
        event.ignore()

    def dropEvent(self, event) -> None:  # type: ignore
        paths = local_paths_from_mime(event.mimeData())
        if not paths:
            event.ignore()
            return
        # Only the first file is edited
        self.fileDropped.emit(paths[0])
        event.acceptProposedAction()
