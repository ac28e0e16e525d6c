"""Pillow codec for the formats libvips cannot read or write from a buffer.

BMP, ICO and TGA are decoded to and encoded from 8-bit RGB/RGBA numpy arrays;
processing.py converts those to and from pyvips images.
"""

from __future__ import annotations

import io

import numpy as np

from reaper.logger import get_logger

_logger = get_logger("pillow_codec")

try:
    from PIL import Image as PILImage  # type: ignore
except ImportError:
    PILImage = None  # type: ignore
    _logger.warning("Pillow is not available; BMP/ICO/TGA processing will raise ImportError when used")

# mime type -> Pillow format name
PILLOW_FORMATS = {
    "image/bmp": "BMP",
    "image/x-ms-bmp": "BMP",
    "image/vnd.microsoft.icon": "ICO",
    "image/x-icon": "ICO",
    "image/x-tga": "TGA",
    "image/x-targa": "TGA",
    "image/tga": "TGA",
}

ICO_MAX_SIDE = 256


def _get_pil_module():
    if PILImage is None:
        _logger.error("Pillow requested but not available")
        raise ImportError("Pillow is not available")
    return PILImage


def is_pillow_format(mime_type: str) -> bool:
    return mime_type.lower() in PILLOW_FORMATS


def decode_to_array(data: bytes) -> np.ndarray:
    """Decode to a (height, width, 3|4) uint8 array."""
    pil = _get_pil_module()
    with pil.open(io.BytesIO(data)) as im:
        im.load()
        has_alpha = im.mode in ("RGBA", "LA", "PA") or "transparency" in im.info
        im = im.convert("RGBA" if has_alpha else "RGB")
        return np.asarray(im, dtype=np.uint8).copy()


def _ico_size(width: int, height: int) -> tuple[int, int]:
    if max(width, height) <= ICO_MAX_SIDE:
        return width, height
    scale = ICO_MAX_SIDE / max(width, height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def encode_array(arr: np.ndarray, mime_type: str) -> tuple[bytes, int, int]:
    """Encode an RGB/RGBA uint8 array; returns (data, width, height) of the written image.

    ICO frames are capped at 256 px per side, so a larger input comes back
    scaled down.
    """
    pil = _get_pil_module()
    fmt = PILLOW_FORMATS[mime_type.lower()]
    im = pil.fromarray(np.ascontiguousarray(arr))
    opts = {}
    if fmt == "ICO":
        size = _ico_size(im.width, im.height)
        if size != im.size:
            _logger.debug("ICO output capped: %dx%d -> %dx%d", im.width, im.height, *size)
        opts["sizes"] = [size]
    buf = io.BytesIO()
    im.save(buf, format=fmt, **opts)
    data = buf.getvalue()
    with pil.open(io.BytesIO(data)) as written:
        width, height = written.size
    return data, width, height
