from __future__ import annotations

from pathlib import Path

import pytest

from reaper.image_engine import pdf_merge
from reaper.image_engine.pdf_merge import is_pdf_path, merge_pdfs


def test_is_pdf_path() -> None:
    assert is_pdf_path("a/b/report.PDF")
    assert is_pdf_path(Path("x.pdf"))
    assert not is_pdf_path("x.pdf.txt")
    assert not is_pdf_path("scan.png")


def test_merge_requires_inputs() -> None:
    if pdf_merge.fitz is None:
        pytest.skip("PyMuPDF not available")
    with pytest.raises(ValueError):
        merge_pdfs([])


def _write_pdf(path: Path, pages: int, label: str) -> None:
    fitz = pdf_merge.fitz
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"{label}-{i}")
    doc.save(str(path))
    doc.close()


def test_merge_concatenates_in_order(tmp_path: Path) -> None:
    if pdf_merge.fitz is None:
        pytest.skip("PyMuPDF not available")
    a = tmp_path / "a.pdf"
    b = tmp_path / "b.pdf"
    _write_pdf(a, 2, "A")
    _write_pdf(b, 1, "B")

    data = merge_pdfs([a, b])
    assert data.startswith(b"%PDF")

    with pdf_merge.fitz.open(stream=data, filetype="pdf") as merged:
        assert merged.page_count == 3
        texts = [merged[i].get_text().strip() for i in range(3)]
    assert texts == ["A-0", "A-1", "B-0"]


def test_merge_missing_file(tmp_path: Path) -> None:
    if pdf_merge.fitz is None:
        pytest.skip("PyMuPDF not available")
    a = tmp_path / "a.pdf"
    _write_pdf(a, 1, "A")
    with pytest.raises(FileNotFoundError):
        merge_pdfs([a, tmp_path / "missing.pdf"])
