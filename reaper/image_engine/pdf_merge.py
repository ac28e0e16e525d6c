"""PDF merging via PyMuPDF."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from reaper.logger import get_logger

_logger = get_logger("pdf_merge")

try:
    import fitz  # PyMuPDF
except ImportError:
    fitz = None  # type: ignore
    _logger.warning("PyMuPDF is not available; merge_pdfs will raise ImportError when used")


def _get_fitz_module():
    if fitz is None:
        raise ImportError("PyMuPDF is not available")
    return fitz


def is_pdf_path(path: str | Path) -> bool:
    return Path(path).suffix.lower() == ".pdf"


def merge_pdfs(paths: Sequence[str | Path]) -> bytes:
    """Concatenate the pages of `paths` in order and return the merged document bytes.

    Raises:
        ValueError: If `paths` is empty.
        FileNotFoundError: If an input does not exist.
    """
    mod = _get_fitz_module()
    if not paths:
        raise ValueError("No PDF files to merge")

    merged = mod.open()
    try:
        for p in paths:
            src_path = Path(p)
            if not src_path.is_file():
                raise FileNotFoundError(f"PDF not found: {src_path}")
            with mod.open(str(src_path)) as src:
                _logger.debug("merging %s (%d pages)", src_path.name, src.page_count)
                merged.insert_pdf(src)
        data = merged.tobytes(garbage=3, deflate=True)
    except Exception as e:
        _logger.error("Failed to merge PDFs: %s", e, exc_info=True)
        raise
    finally:
        merged.close()

    _logger.info("merged %d PDFs (%d bytes)", len(paths), len(data))
    return data
