"""Encoded images and file ingestion.

Images travel through the app as encoded bytes plus a MIME type. Only the
preview path decodes them (into a QImage for painting).
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PySide6.QtGui import QImage

from reaper.logger import get_logger

from .pillow_codec import PILImage, decode_to_array

_logger = get_logger("source")

try:
    import pyvips  # type: ignore
except ImportError:
    pyvips = None  # type: ignore

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<payload>.*)$", re.DOTALL)

_RGB_CHANNELS = 3
_RGBA_CHANNELS = 4

KB_THRESHOLD = 1024
MB_THRESHOLD = 1024 * 1024
GB_THRESHOLD = 1024 * 1024 * 1024

# Types mimetypes does not know on every platform
_EXTRA_MIME = {
    ".tga": "image/x-tga",
    ".ico": "image/vnd.microsoft.icon",
    ".webp": "image/webp",
}


class IngestionError(OSError):
    """A file could not be read or is not a decodable image."""


def format_file_size(size: int | None) -> str:
    if not isinstance(size, int) or size < 0:
        return ""
    if size < KB_THRESHOLD:
        return f"{size} B"
    if size < MB_THRESHOLD:
        return f"{size / KB_THRESHOLD:.1f} KB"
    if size < GB_THRESHOLD:
        return f"{size / MB_THRESHOLD:.2f} MB"
    return f"{size / GB_THRESHOLD:.2f} GB"


def guess_mime_type(path: str | Path) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in _EXTRA_MIME:
        return _EXTRA_MIME[suffix]
    mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"


@dataclass(frozen=True, slots=True)
class EncodedImage:
    data: bytes
    mime_type: str
    width: int = 0
    height: int = 0

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def format_name(self) -> str:
        """MIME subtype upper-cased: image/png -> PNG."""
        return self.mime_type.split("/", 1)[-1].upper()

    @property
    def extension(self) -> str:
        sub = self.mime_type.split("/", 1)[-1].lower()
        return {"jpeg": "jpeg", "vnd.microsoft.icon": "ico", "x-icon": "ico", "x-tga": "tga"}.get(sub, sub)

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    @classmethod
    def from_data_url(cls, url: str) -> EncodedImage:
        m = _DATA_URL_RE.match(url or "")
        if m is None or not m.group("b64"):
            raise ValueError("not a base64 data URL")
        try:
            data = base64.b64decode(m.group("payload"), validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64 payload: {e}") from e
        return cls(data=data, mime_type=m.group("mime") or "image/png")

    def with_dimensions(self) -> EncodedImage:
        """Return a copy with width/height filled from the decoded image."""
        qimg = decode_to_qimage(self.data)
        if qimg.isNull():
            raise ValueError(f"cannot decode {self.format_name} image")
        return EncodedImage(self.data, self.mime_type, qimg.width(), qimg.height())


@dataclass(frozen=True, slots=True)
class SourceImage:
    image: EncodedImage
    file_name: str
    path: str | None = None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def stem(self) -> str:
        stem = Path(self.file_name).stem
        return stem or "image"

    @classmethod
    def from_bytes(cls, data: bytes, file_name: str, mime_type: str | None = None) -> SourceImage:
        mime = mime_type or guess_mime_type(file_name)
        try:
            image = EncodedImage(bytes(data), mime).with_dimensions()
        except ValueError as e:
            raise IngestionError(f"{file_name}: {e}") from e
        return cls(image=image, file_name=Path(file_name).name)


def load_image(path: str | Path) -> SourceImage:
    """Read and validate an image file.

    Raises:
        IngestionError: If the file is missing, unreadable, or not an image.
    """
    p = Path(path)
    if not p.is_file():
        raise IngestionError(f"File does not exist: {p}")
    try:
        data = p.read_bytes()
    except OSError as e:
        _logger.error("failed to read %s: %s", p, e)
        raise IngestionError(f"Failed to read file '{p}': {e}") from e
    _logger.debug("read %s: %d bytes", p, len(data))
    src = SourceImage.from_bytes(data, p.name)
    _logger.info("loaded %s (%dx%d %s)", p.name, src.width, src.height, src.image.format_name)
    return SourceImage(image=src.image, file_name=src.file_name, path=str(p))


def _array_to_qimage(arr: np.ndarray) -> QImage:
    arr = np.ascontiguousarray(arr)
    height, width = arr.shape[0], arr.shape[1]
    channels = arr.shape[2]
    if channels == _RGBA_CHANNELS:
        fmt = QImage.Format.Format_RGBA8888
    else:
        fmt = QImage.Format.Format_RGB888
    # .copy() detaches the QImage from the numpy buffer lifetime
    return QImage(arr.data, width, height, channels * width, fmt).copy()


def _decode_with_pyvips(data: bytes) -> QImage:
    if pyvips is None:
        return QImage()
    try:
        img = pyvips.Image.new_from_buffer(data, "")
        if img.bands == 1:
            img = img.colourspace("srgb")
        if img.bands not in (_RGB_CHANNELS, _RGBA_CHANNELS):
            img = img.extract_band(0, n=_RGB_CHANNELS)
        if img.format != "uchar":
            img = img.cast("uchar")
        arr = np.ndarray(
            buffer=img.write_to_memory(),
            dtype=np.uint8,
            shape=[img.height, img.width, img.bands],
        )
        return _array_to_qimage(arr)
    except Exception as e:
        _logger.debug("pyvips decode failed: %s", e)
        return QImage()


def _decode_with_pillow(data: bytes) -> QImage:
    if PILImage is None:
        return QImage()
    try:
        return _array_to_qimage(decode_to_array(data))
    except Exception as e:
        _logger.debug("Pillow decode failed: %s", e)
        return QImage()


def decode_to_qimage(data: bytes) -> QImage:
    """Decode encoded bytes for display.

    Qt's image plugins are tried first; formats they lack (TGA, some TIFF
    variants) go through pyvips, then Pillow, into numpy -> QImage. Returns a
    null QImage when none can decode.
    """
    qimg = QImage.fromData(data)
    if not qimg.isNull():
        return qimg
    qimg = _decode_with_pyvips(data)
    if not qimg.isNull():
        return qimg
    return _decode_with_pillow(data)
