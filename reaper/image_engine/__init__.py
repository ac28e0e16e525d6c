"""Image engine public API.

Encoded image types, ingestion, and the processing backend.

Keep this module lightweight: it must not import Qt widgets.
"""

from .processing import CONVERT_FORMATS, convert_image, crop_image, resize_image, validate_crop_bounds
from .source import EncodedImage, IngestionError, SourceImage, format_file_size, load_image

__all__ = [
    "CONVERT_FORMATS",
    "EncodedImage",
    "IngestionError",
    "SourceImage",
    "convert_image",
    "crop_image",
    "format_file_size",
    "load_image",
    "resize_image",
    "validate_crop_bounds",
]
