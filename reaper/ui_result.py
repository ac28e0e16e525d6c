"""Result presentation: file metadata and the download/clear panel."""

from __future__ import annotations

from html import escape

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QLabel, QPushButton, QVBoxLayout, QWidget

from .image_engine.source import EncodedImage, format_file_size


def describe_image(image: EncodedImage | None, file_name: str | None = None) -> list[tuple[str, str]]:
    """(label, value) rows shown next to an image."""
    rows: list[tuple[str, str]] = []
    if file_name:
        rows.append(("Name", file_name))
    if image is None:
        return rows
    rows.append(("Size", format_file_size(image.size)))
    rows.append(("Format", image.format_name))
    if image.width and image.height:
        rows.append(("Dimensions", f"{image.width} × {image.height}"))
    return rows


class MetadataLabel(QLabel):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("metadata")
        self.setTextFormat(Qt.TextFormat.RichText)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setWordWrap(True)

    def show_image(self, image: EncodedImage | None, file_name: str | None = None) -> None:
        rows = describe_image(image, file_name)
        self.setText("<br>".join(f"{escape(k)}: <b>{escape(v)}</b>" for k, v in rows))


class ResultPanel(QWidget):
    """Side panel for result mode: what was produced, download, clear."""

    downloadRequested = Signal()
    clearRequested = Signal()

    def __init__(self, title: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.title_label = QLabel(title)
        self.title_label.setObjectName("resultTitle")
        self.metadata = MetadataLabel()
        self.download_btn = QPushButton("Download")
        self.clear_btn = QPushButton("Clear")
        self.download_btn.clicked.connect(self.downloadRequested.emit)
        self.clear_btn.clicked.connect(self.clearRequested.emit)

        layout = QVBoxLayout(self)
        layout.addWidget(self.title_label)
        layout.addWidget(self.metadata)
        layout.addWidget(self.download_btn)
        layout.addWidget(self.clear_btn)
        layout.addStretch()

    def show_artifact(self, artifact: EncodedImage, file_name: str | None = None) -> None:
        self.metadata.show_image(artifact, file_name)
