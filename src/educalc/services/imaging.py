"""
Marksheet image preparation

Shrinks photos to fit inside a square bounding box and re-encodes them as JPEG
so the extraction request stays small.
"""

import base64
import io
import logging
from typing import Union
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from ..core.errors import ExtractionServiceError

logger = logging.getLogger(__name__)

JPEG_MIME_TYPE = "image/jpeg"


def compress_image(image_bytes: bytes, max_dimension: int = 1200, quality: int = 85) -> bytes:
    """
    Downscale to fit within max_dimension x max_dimension and encode as JPEG

    Args:
        image_bytes: Any image format Pillow can read
        max_dimension: Longest side after scaling (smaller images are not enlarged)
        quality: JPEG quality 1-95

    Returns:
        JPEG bytes
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = ImageOps.exif_transpose(img)
            original_size = img.size
            img.thumbnail((max_dimension, max_dimension))
            if img.mode != "RGB":
                img = img.convert("RGB")

            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError) as e:
        raise ExtractionServiceError(f"Image could not be read: {e}") from e

    logger.debug(f"Compressed image {original_size} -> {img.size}, {len(out.getvalue())} bytes")
    return out.getvalue()


def encode_image(image_bytes: bytes) -> str:
    """Base64 text for inline request payloads"""
    return base64.b64encode(image_bytes).decode("ascii")


def read_image(path: Union[str, Path]) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ExtractionServiceError(f"Image could not be read: {e}") from e


__all__ = ["JPEG_MIME_TYPE", "compress_image", "encode_image", "read_image"]
