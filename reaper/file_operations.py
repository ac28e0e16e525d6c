"""File dialogs and download naming.

Save/open dialogs return None when the user cancels; writes raise OSError to
the caller, which reports it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from PySide6.QtWidgets import QFileDialog, QWidget

from .app.state.edit_state import EditKind
from .image_engine.source import EncodedImage
from .logger import get_logger

_logger = get_logger("file_operations")

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp *.ico *.tif *.tiff *.tga)"
PDF_FILTER = "PDF (*.pdf)"


def suggest_download_name(
    kind: EditKind,
    file_name: str | None,
    params: dict[str, Any] | None = None,
    artifact: EncodedImage | None = None,
) -> str:
    """Default file name offered when saving an edit result."""
    params = params or {}
    stem = Path(file_name).stem if file_name else ""
    ext = artifact.extension if artifact is not None else "png"
    if kind is EditKind.CROP:
        return f"{stem or 'image'}-cropped.{ext}"
    if kind is EditKind.RESIZE:
        return f"{stem or 'image'}-{params.get('width')}x{params.get('height')}.{ext}"
    if kind is EditKind.CONVERT:
        fmt = params.get("target_format") or ext
        return f"{stem or 'converted-image'}.{fmt}"
    return "merged.pdf"


def local_paths_from_mime(mime) -> list[str]:
    """Local file paths carried by a drag-and-drop payload."""
    if mime is None or not mime.hasUrls():
        return []
    return [u.toLocalFile() for u in mime.urls() if u.isLocalFile()]


def write_bytes(path: str, data: bytes) -> str:
    p = Path(path)
    p.write_bytes(data)
    _logger.info("wrote %s (%d bytes)", p, len(data))
    return str(p)


def save_bytes(parent: QWidget | None, data: bytes, suggested_name: str, start_dir: str | None = None) -> str | None:
    """Ask for a destination and write `data` there.

    Returns:
        Written path, or None if the dialog was cancelled.
    """
    ext = Path(suggested_name).suffix.lstrip(".").lower()
    filters = f"{ext.upper()} (*.{ext})" if ext else "All files (*)"
    default = str(Path(start_dir) / suggested_name) if start_dir else suggested_name
    path, _ = QFileDialog.getSaveFileName(parent, "Save As", default, filters)
    if not path:
        _logger.debug("save cancelled for %s", suggested_name)
        return None
    return write_bytes(path, data)


def choose_image_file(parent: QWidget | None, start_dir: str | None = None) -> str | None:
    path, _ = QFileDialog.getOpenFileName(parent, "Select Image", start_dir or "", IMAGE_FILTER)
    return path or None


def choose_pdf_files(parent: QWidget | None, start_dir: str | None = None) -> list[str]:
    paths, _ = QFileDialog.getOpenFileNames(parent, "Select PDFs", start_dir or "", PDF_FILTER)
    return list(paths)
