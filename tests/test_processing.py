from __future__ import annotations

import io

import numpy as np
import pytest
from PySide6.QtGui import QImage

from reaper.image_engine import processing
from reaper.image_engine.processing import convert_image, crop_image, resize_image, validate_crop_bounds
from reaper.image_engine.source import EncodedImage, SourceImage, decode_to_qimage

pytestmark = pytest.mark.skipif(processing.pyvips is None, reason="pyvips not available")


@pytest.fixture
def png(make_png) -> EncodedImage:
    return EncodedImage(make_png(80, 60), "image/png", 80, 60)


def test_validate_crop_bounds() -> None:
    assert validate_crop_bounds(400, 300, (50, 50, 100, 100)) is True
    assert validate_crop_bounds(400, 300, (-1, 0, 10, 10)) is False
    assert validate_crop_bounds(400, 300, (0, 0, 0, 10)) is False
    assert validate_crop_bounds(400, 300, (350, 0, 100, 10)) is False
    assert validate_crop_bounds(400, 300, (0, 250, 10, 100)) is False


def test_crop_keeps_format_and_size(png) -> None:
    out = crop_image(png, 10, 5, 30, 20)
    assert out.mime_type == "image/png"
    assert (out.width, out.height) == (30, 20)
    qimg = decode_to_qimage(out.data)
    assert (qimg.width(), qimg.height()) == (30, 20)


def test_crop_out_of_bounds_raises(png) -> None:
    with pytest.raises(ValueError):
        crop_image(png, 70, 0, 30, 20)


def test_resize_exact_dimensions(png) -> None:
    out = resize_image(png, 33, 71)
    assert (out.width, out.height) == (33, 71)
    assert out.mime_type == "image/png"


def test_resize_rejects_non_positive(png) -> None:
    with pytest.raises(ValueError):
        resize_image(png, 0, 10)


@pytest.mark.parametrize(
    ("fmt", "mime"),
    [
        ("PNG", "image/png"),
        ("jpeg", "image/jpeg"),
        ("gif", "image/gif"),
        ("bmp", "image/bmp"),
        ("webp", "image/webp"),
        ("ico", "image/vnd.microsoft.icon"),
        ("tiff", "image/tiff"),
        ("tga", "image/x-tga"),
    ],
)
def test_convert_changes_mime(png, fmt, mime) -> None:
    out = convert_image(png, fmt)
    assert out.mime_type == mime
    assert (out.width, out.height) == (80, 60)
    assert out.size > 0
    assert decode_to_qimage(out.data).size().toTuple() == (80, 60)


def test_convert_unknown_format(png) -> None:
    with pytest.raises(ValueError, match="Unsupported image format"):
        convert_image(png, "heic2")


def test_undecodable_input_raises() -> None:
    with pytest.raises(Exception):
        crop_image(EncodedImage(b"not an image", "image/png", 10, 10), 0, 0, 5, 5)


def _pillow_bytes(fmt: str, width: int, height: int) -> bytes:
    pil = pytest.importorskip("PIL.Image")
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[..., 0] = 200
    arr[..., 3] = 255
    opts = {"sizes": [(width, height)]} if fmt == "ICO" else {}
    buf = io.BytesIO()
    pil.fromarray(arr).save(buf, format=fmt, **opts)
    return buf.getvalue()


@pytest.mark.parametrize(
    ("fmt", "mime"),
    [("BMP", "image/bmp"), ("ICO", "image/vnd.microsoft.icon"), ("TGA", "image/x-tga")],
)
def test_crop_and_resize_pillow_formats(fmt, mime) -> None:
    image = EncodedImage(_pillow_bytes(fmt, 64, 48), mime, 64, 48)

    cropped = crop_image(image, 4, 2, 20, 10)
    assert cropped.mime_type == mime
    assert (cropped.width, cropped.height) == (20, 10)

    resized = resize_image(image, 32, 24)
    assert resized.mime_type == mime
    assert (resized.width, resized.height) == (32, 24)

    converted = convert_image(image, "png")
    assert (converted.width, converted.height) == (64, 48)
    assert decode_to_qimage(converted.data).pixelColor(0, 0).red() == 200


def test_crop_qt_encoded_bmp_source(tmp_path) -> None:
    qimg = QImage(80, 60, QImage.Format.Format_RGB888)
    qimg.fill(0x336699)
    path = tmp_path / "photo.bmp"
    assert qimg.save(str(path), "BMP")
    source = SourceImage.from_bytes(path.read_bytes(), "photo.bmp")
    assert (source.width, source.height) == (80, 60)

    out = crop_image(source.image, 0, 0, 10, 10)
    assert (out.width, out.height) == (10, 10)
    assert decode_to_qimage(out.data).size().toTuple() == (10, 10)


def test_ico_output_is_capped(make_png) -> None:
    big = EncodedImage(make_png(300, 200), "image/png", 300, 200)
    out = convert_image(big, "ico")
    assert out.mime_type == "image/vnd.microsoft.icon"
    assert max(out.width, out.height) == 256
