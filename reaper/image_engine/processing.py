"""Image processing backend using pyvips.

Pure functions over encoded images, no Qt dependencies. Each call decodes the
input buffer, applies one operation and re-encodes; failures are raised to the
caller (the edit dispatcher turns them into a failed request).
"""

import contextlib
from typing import Any

import numpy as np

from reaper.logger import get_logger

from .pillow_codec import decode_to_array, encode_array, is_pillow_format
from .source import EncodedImage

_logger = get_logger("processing")

try:
    import pyvips  # type: ignore
except ImportError:
    pyvips = None  # type: ignore
    _logger.warning("pyvips is not available; processing functions will raise ImportError when used")

# mime type -> libvips save suffix; the rest of CONVERT_FORMATS goes through Pillow
_SAVE_SUFFIX = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/tiff": ".tif",
}

# target format name -> output mime type
CONVERT_FORMATS: dict[str, str] = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "ico": "image/vnd.microsoft.icon",
    "tiff": "image/tiff",
    "tga": "image/x-tga",
}

# Formats without an alpha channel in their encoder
_NO_ALPHA = {"image/jpeg", "image/bmp", "image/x-ms-bmp"}


def _get_pyvips_module() -> Any:
    """Return the pyvips module or raise ImportError if unavailable."""
    if pyvips is None:
        _logger.error("pyvips requested but not available")
        raise ImportError("pyvips is not available")
    with contextlib.suppress(Exception):
        pyvips.cache_set_max(0)
    return pyvips


def validate_crop_bounds(img_width: int, img_height: int, crop: tuple[int, int, int, int]) -> bool:
    """Validate that crop rectangle is within image bounds.

    Args:
        img_width: Original image width
        img_height: Original image height
        crop: (left, top, width, height) crop rectangle

    Returns:
        True if crop is valid, False otherwise
    """
    left, top, width, height = crop
    if left < 0 or top < 0:
        return False
    if width <= 0 or height <= 0:
        return False
    if left + width > img_width:
        return False
    return not top + height > img_height


def _from_array(arr: np.ndarray) -> Any:
    vips = _get_pyvips_module()
    height, width, bands = arr.shape
    img = vips.Image.new_from_memory(np.ascontiguousarray(arr).tobytes(), width, height, bands, "uchar")
    return img.copy(interpretation="srgb")


def _to_array(img: Any) -> np.ndarray:
    if img.interpretation != "srgb":
        img = img.colourspace("srgb")
    if img.format != "uchar":
        img = img.cast("uchar")
    return np.ndarray(buffer=img.write_to_memory(), dtype=np.uint8, shape=[img.height, img.width, img.bands])


def _load(image: EncodedImage) -> Any:
    vips = _get_pyvips_module()
    try:
        if is_pillow_format(image.mime_type):
            return _from_array(decode_to_array(image.data))
        return vips.Image.new_from_buffer(image.data, "")
    except Exception as e:
        _logger.error("Failed to decode %s input (%d bytes): %s", image.mime_type, image.size, e, exc_info=True)
        raise


def _encode(img: Any, mime_type: str) -> EncodedImage:
    if mime_type not in _SAVE_SUFFIX and not is_pillow_format(mime_type):
        _logger.debug("no encoder for %s; falling back to PNG", mime_type)
        mime_type = "image/png"
    if mime_type in _NO_ALPHA and img.hasalpha():
        img = img.flatten(background=[255, 255, 255])
    if is_pillow_format(mime_type):
        data, width, height = encode_array(_to_array(img), mime_type)
        return EncodedImage(data=data, mime_type=mime_type, width=width, height=height)
    data = img.write_to_buffer(_SAVE_SUFFIX[mime_type])
    return EncodedImage(data=bytes(data), mime_type=mime_type, width=img.width, height=img.height)


def crop_image(image: EncodedImage, x: int, y: int, width: int, height: int) -> EncodedImage:
    """Crop to (x, y, width, height) in source pixels, keeping the input format."""
    img = _load(image)
    crop = (int(x), int(y), int(width), int(height))
    if not validate_crop_bounds(img.width, img.height, crop):
        _logger.error("Crop bounds %s invalid for image size %dx%d", crop, img.width, img.height)
        raise ValueError(f"Crop bounds {crop} invalid for image size {img.width}x{img.height}")
    _logger.debug("crop %dx%d -> %s", img.width, img.height, crop)
    try:
        return _encode(img.crop(*crop), image.mime_type)
    except Exception as e:
        _logger.error("Error during crop/encode: %s", e, exc_info=True)
        raise


def resize_image(image: EncodedImage, width: int, height: int) -> EncodedImage:
    """Resize to exactly width x height (aspect ratio not preserved), Lanczos3."""
    w, h = int(width), int(height)
    if w <= 0 or h <= 0:
        raise ValueError(f"Invalid target size {w}x{h}")
    img = _load(image)
    _logger.debug("resize %dx%d -> %dx%d", img.width, img.height, w, h)
    try:
        resized = img.resize(w / img.width, vscale=h / img.height, kernel="lanczos3")
        # Float scale factors can land one pixel short/long
        if resized.width != w or resized.height != h:
            resized = resized.gravity("centre", w, h, extend="copy")
        return _encode(resized, image.mime_type)
    except Exception as e:
        _logger.error("Error during resize/encode: %s", e, exc_info=True)
        raise


def convert_image(image: EncodedImage, target_format: str) -> EncodedImage:
    """Re-encode into `target_format` (one of CONVERT_FORMATS)."""
    mime_type = CONVERT_FORMATS.get((target_format or "").lower())
    if mime_type is None:
        raise ValueError("Unsupported image format")
    img = _load(image)
    _logger.debug("convert %s -> %s", image.mime_type, mime_type)
    try:
        return _encode(img, mime_type)
    except Exception as e:
        _logger.error("Error during convert to %s: %s", target_format, e, exc_info=True)
        raise
