"""
Image transform engine: compress, resize, or both.

Every transform decodes the input with OpenCV and re-encodes it as JPEG,
whatever the input format was. EXIF orientation is not applied, so pixels
keep their stored layout. Resizing stretches to the exact target size.
"""

import io
import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError
from typing import Optional, Tuple

from utils.error_handlers import DecodeError, EncodeError

OUTPUT_FORMAT = "jpeg"
OUTPUT_EXTENSION = "jpeg"
OUTPUT_MIME_TYPE = "image/jpeg"

# sharp's JPEG default, used when only resizing
DEFAULT_JPEG_QUALITY = 80


def _validate_quality(quality: int) -> int:
    if not isinstance(quality, int) or isinstance(quality, bool) or not 1 <= quality <= 100:
        raise ValueError(f"Quality must be an integer between 1 and 100, got {quality!r}")
    return quality


def _validate_size(width: int, height: int) -> Tuple[int, int]:
    if width <= 0 or height <= 0:
        raise ValueError(f"Target size must be positive, got {width}x{height}")
    return int(width), int(height)


def decode(data: bytes) -> np.ndarray:
    """Decode raster bytes into a BGR array"""
    if not data:
        raise DecodeError("Cannot decode empty image data")

    nparr = np.frombuffer(data, np.uint8)
    try:
        image = cv2.imdecode(nparr, cv2.IMREAD_COLOR | cv2.IMREAD_IGNORE_ORIENTATION)
    except cv2.error as e:
        raise DecodeError(
            "Failed to decode image from bytes",
            details={"error": str(e), "size": len(data)}
        ) from e

    if image is None:
        raise DecodeError(
            "Failed to decode image from bytes",
            details={"size": len(data)}
        )
    return image


def encode(image: np.ndarray, quality: Optional[int] = None) -> bytes:
    """Encode a BGR array as JPEG"""
    quality = DEFAULT_JPEG_QUALITY if quality is None else _validate_quality(quality)
    encode_param = [cv2.IMWRITE_JPEG_QUALITY, quality]
    try:
        success, encoded = cv2.imencode('.jpg', image, encode_param)
    except cv2.error as e:
        raise EncodeError(
            f"Failed to encode image as {OUTPUT_FORMAT}",
            details={"error": str(e), "quality": quality}
        ) from e

    if not success:
        raise EncodeError(
            f"Failed to encode image as {OUTPUT_FORMAT}",
            details={"quality": quality}
        )
    return encoded.tobytes()


def _scale(image: np.ndarray, width: int, height: int) -> np.ndarray:
    current_height, current_width = image.shape[:2]
    if width * height < current_width * current_height:
        interpolation = cv2.INTER_AREA
    else:
        interpolation = cv2.INTER_LANCZOS4
    return cv2.resize(image, (width, height), interpolation=interpolation)


def compress(data: bytes, quality: int) -> bytes:
    """Re-encode image bytes as JPEG at the given quality"""
    _validate_quality(quality)
    return encode(decode(data), quality)


def resize(data: bytes, width: int, height: int) -> bytes:
    """Stretch image bytes to exactly width x height"""
    width, height = _validate_size(width, height)
    return encode(_scale(decode(data), width, height))


def compress_and_resize(data: bytes, width: int, height: int, quality: int) -> bytes:
    """Resize then encode at the given quality, in one pass"""
    width, height = _validate_size(width, height)
    _validate_quality(quality)
    return encode(_scale(decode(data), width, height), quality)


def verify_image(data: bytes) -> Tuple[int, int]:
    """
    Check that bytes hold a decodable raster image.

    Args:
        data: Raw image bytes

    Returns:
        Tuple of (width, height)

    Raises:
        DecodeError: If the bytes are not a readable image
    """
    if not data:
        raise DecodeError("Cannot decode empty image data")
    try:
        with Image.open(io.BytesIO(data)) as img:
            size = img.size
            img.verify()
            return size
    except (UnidentifiedImageError, Image.DecompressionBombError,
            OSError, SyntaxError, ValueError) as e:
        raise DecodeError(
            "File is not a valid image or is corrupted",
            details={"error": str(e), "size": len(data)}
        ) from e
