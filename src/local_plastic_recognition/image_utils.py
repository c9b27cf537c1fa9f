"""Utility helpers for image loading and preprocessing."""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image

from .errors import DecodeFailureError, InvalidInputError
from .types import DetectedRegion

ImageInput = Union[str, Path, bytes, np.ndarray, Image.Image]

_DATA_URL_RE = re.compile(r"^data:([^;]+);base64,")
_BASE64_RE = re.compile(r"^\s*[A-Za-z0-9+/]+={0,2}\s*$")


def load_image(image_input: ImageInput, keep_alpha: bool = False, max_kb: Optional[int] = None) -> np.ndarray:
    """Load an image input into an OpenCV-compatible BGR (or BGRA) ndarray.

    With ``keep_alpha`` a four-channel BGRA array is returned whenever the
    source carries transparency; otherwise the alpha channel is dropped.
    A string is read as a file path when such a file exists and as a
    base64 payload (plain or ``data:`` URL) otherwise. ``max_kb`` caps the
    decoded size of base64 payloads.
    """

    if isinstance(image_input, np.ndarray):
        image = _normalize_array(image_input)
    elif isinstance(image_input, Image.Image):
        image = _from_pil(image_input)
    elif isinstance(image_input, (bytes, bytearray)):
        image = decode_image_bytes(bytes(image_input))
    elif isinstance(image_input, str) and _DATA_URL_RE.match(image_input):
        image = decode_base64_image(image_input, max_kb)
    else:
        image = _load_path_or_base64(image_input, max_kb)

    validate_image(image)
    if keep_alpha:
        return ensure_color_alpha(image)
    return ensure_color(image)


def decode_image_bytes(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, ...) keeping any alpha channel."""

    if not data:
        raise InvalidInputError("Image payload is empty")
    raw = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise DecodeFailureError("Unable to decode image payload")
    return _normalize_array(image)


def decode_base64_image(payload: str, max_kb: Optional[int] = None) -> np.ndarray:
    """Decode a base64 string or ``data:`` URL into a BGR/BGRA ndarray."""

    media_type = mime_type(payload)
    if not media_type.startswith("image/"):
        raise InvalidInputError(f"Unsupported payload type: {media_type}")
    if max_kb is not None and image_size_kb(payload) > max_kb:
        raise InvalidInputError(f"Image payload exceeds {max_kb} KB")
    encoded = _strip_data_url(payload)
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailureError(f"Invalid base64 image payload: {exc}") from exc
    return decode_image_bytes(data)


def image_size_kb(payload: str) -> int:
    """Estimate the decoded size of a base64 payload in kilobytes."""

    encoded = _strip_data_url(payload)
    return round(len(encoded) * 3 / 4 / 1024)


def mime_type(payload: str) -> str:
    match = _DATA_URL_RE.match(payload)
    return match.group(1) if match else "image/jpeg"


def validate_image(image: np.ndarray) -> None:
    """Reject arrays that cannot be treated as an image."""

    if image.size == 0 or image.ndim not in (2, 3):
        raise InvalidInputError(f"Image has unusable shape {image.shape}")
    if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
        raise InvalidInputError(f"Unsupported channel count: {image.shape[2]}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidInputError("Image has zero width or height")


def ensure_color(image: np.ndarray) -> np.ndarray:
    """Ensure the ndarray is three-channel BGR."""

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def ensure_color_alpha(image: np.ndarray) -> np.ndarray:
    """Like :func:`ensure_color` but keeps an existing alpha channel."""

    if image.ndim == 3 and image.shape[2] == 4:
        return image
    return ensure_color(image)


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Return an H x W x 4 RGBA uint8 buffer, opaque when there is no alpha."""

    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(ensure_color(image), cv2.COLOR_BGR2RGBA)


def resize_square(image: np.ndarray, size: int) -> np.ndarray:
    return cv2.resize(image, (size, size), interpolation=cv2.INTER_AREA)


def crop_region(image: np.ndarray, region: DetectedRegion, grid_extent: int) -> np.ndarray:
    """Cut ``region`` (grid coordinates) out of ``image`` and scale it back up.

    The crop is resized to the full image resolution so it is profiled at the
    same scale as the whole picture.
    """

    height, width = image.shape[:2]
    scale_x = width / float(grid_extent)
    scale_y = height / float(grid_extent)
    x0 = int(round(region.x * scale_x))
    y0 = int(round(region.y * scale_y))
    x1 = min(width, int(round((region.x + region.width) * scale_x)))
    y1 = min(height, int(round((region.y + region.height) * scale_y)))
    if x1 <= x0 or y1 <= y0:
        raise InvalidInputError(f"Region {region} is empty at {width}x{height}")
    crop = image[y0:y1, x0:x1]
    return cv2.resize(crop, (width, height), interpolation=cv2.INTER_LINEAR)


def _load_path_or_base64(image_input: Union[str, Path], max_kb: Optional[int]) -> np.ndarray:
    path = Path(image_input)
    try:
        is_file = path.is_file()
    except (OSError, ValueError):
        # Long base64 payloads can exceed the filesystem name limit.
        is_file = False
    if is_file:
        return decode_image_bytes(path.read_bytes())
    if isinstance(image_input, str) and _BASE64_RE.match(image_input):
        return decode_base64_image(image_input, max_kb)
    raise DecodeFailureError(f"Image path not found: {_shorten(str(image_input))}")


def _shorten(text: str, limit: int = 80) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _strip_data_url(payload: str) -> str:
    return _DATA_URL_RE.sub("", payload.strip(), count=1)


def _from_pil(image: Image.Image) -> np.ndarray:
    if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        return cv2.cvtColor(np.array(image.convert("RGBA")), cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2BGR)


def _normalize_array(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image.copy()
    if image.dtype == np.uint16:
        return (image / 257).astype(np.uint8)
    if np.issubdtype(image.dtype, np.floating) and image.size and float(np.nanmax(image)) <= 1.0:
        return np.clip(np.nan_to_num(image) * 255.0, 0, 255).astype(np.uint8)
    return np.clip(np.nan_to_num(image), 0, 255).astype(np.uint8)
