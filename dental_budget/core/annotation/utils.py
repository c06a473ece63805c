"""
Pure utility functions for annotation surfaces.

These functions have no side effects and can be tested in isolation.
"""

import base64
import binascii
import math
from typing import Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np
from matplotlib import colors as mcolors

from ..errors import ImageDecodeError

DATA_URI_PREFIX = "data:"


def decode_data_uri(uri: str) -> bytes:
    """
    Extract the payload of a ``data:image/...;base64,`` URI.

    Raises:
        ImageDecodeError: If the URI is not a base64 image data URI
    """
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith(DATA_URI_PREFIX):
        raise ImageDecodeError("Not a data URI")
    mime = header[len(DATA_URI_PREFIX):].split(";")[0]
    if not mime.startswith("image/"):
        raise ImageDecodeError(f"Data URI is not an image: {mime or 'unknown'}")
    if not header.endswith(";base64"):
        raise ImageDecodeError("Only base64 data URIs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ImageDecodeError(f"Invalid base64 payload: {e}") from e


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode raster bytes into an RGB image.

    Args:
        data: Encoded image (PNG, JPEG, BMP, ...)

    Returns:
        RGB image as uint8 numpy array (H, W, 3)

    Raises:
        ImageDecodeError: If the bytes are not a supported raster format
    """
    if not data:
        raise ImageDecodeError("Image data is empty")

    buffer = np.frombuffer(data, np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    if image is None:
        raise ImageDecodeError("Unsupported or corrupt image data")

    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def encode_png(image: np.ndarray) -> bytes:
    """Encode an RGB image as PNG bytes."""
    ok, buffer = cv2.imencode(".png", cv2.cvtColor(image, cv2.COLOR_RGB2BGR))
    if not ok:
        raise ValueError("PNG encoding failed")
    return buffer.tobytes()


def compute_render_scale(
    image_width: int, image_height: int, surface_width: int, surface_height: int
) -> float:
    """
    Scale that fits an image inside the surface viewport, keeping aspect ratio.

    Small images are scaled up, large ones down.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")
    return min(surface_width / image_width, surface_height / image_height)


def scaled_size(image_width: int, image_height: int, scale: float) -> Tuple[int, int]:
    """(width, height) of the drawing surface for a given render scale."""
    return (
        max(1, int(round(image_width * scale))),
        max(1, int(round(image_height * scale))),
    )


def resize_to_surface(image: np.ndarray, scale: float) -> np.ndarray:
    """Resize an RGB image by ``scale`` to match the drawing surface."""
    h, w = image.shape[:2]
    size = scaled_size(w, h, scale)
    interpolation = cv2.INTER_AREA if scale < 1 else cv2.INTER_LINEAR
    return cv2.resize(image, size, interpolation=interpolation)


def parse_color(token: str) -> Tuple[int, int, int]:
    """
    Convert a color token (``#DC2626``, ``red``, ...) to an RGB triple.

    Raises:
        ValueError: If the token is not a recognised color
    """
    r, g, b = mcolors.to_rgb(token)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


def marker_contains(
    marker, x: float, y: float, radius: float, stroke_width: float = 0
) -> bool:
    """Whether the point (x, y) falls on the marker disc, stroke included."""
    reach = radius + stroke_width / 2
    return math.hypot(x - marker.x, y - marker.y) <= reach


def find_topmost_marker(
    markers: Sequence, x: float, y: float, radius: float, stroke_width: float = 0
):
    """
    Find the marker under a point.

    Args:
        markers: Markers in z-order (first added first)
        x: Surface-local X coordinate
        y: Surface-local Y coordinate
        radius: Marker radius
        stroke_width: Marker outline width

    Returns:
        The most recently added marker containing the point, or None
    """
    for marker in reversed(markers):
        if marker_contains(marker, x, y, radius, stroke_width):
            return marker
    return None


def draw_markers_on_image(
    image: np.ndarray,
    markers: Iterable,
    radius: int = 8,
    stroke_width: int = 2,
    stroke_color: str = "#ffffff",
    selected_id: Optional[str] = None,
) -> np.ndarray:
    """
    Draw treatment markers on an image.

    Args:
        image: RGB image, already at surface resolution
        markers: Markers to draw, in z-order
        radius: Marker radius in pixels
        stroke_width: Outline width in pixels
        stroke_color: Outline color token
        selected_id: Marker drawn with an inverted outline

    Returns:
        Image with markers drawn
    """
    result = image.copy()
    outline = parse_color(stroke_color)
    inverted = tuple(255 - c for c in outline)

    for marker in markers:
        center = (int(round(marker.x)), int(round(marker.y)))
        cv2.circle(
            result, center, radius, parse_color(marker.color), -1, lineType=cv2.LINE_AA
        )
        if stroke_width > 0:
            color = inverted if marker.marker_id == selected_id else outline
            cv2.circle(
                result, center, radius, color, stroke_width, lineType=cv2.LINE_AA
            )

    return result


def validate_image(image: np.ndarray) -> None:
    """
    Validate that a decoded image has the expected format.

    Raises:
        ValueError: If image is invalid
    """
    if image is None:
        raise ValueError("Image is None")

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Image must be numpy array, got {type(image)}")

    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Image must be (H, W, 3), got shape {image.shape}")

    if image.dtype != np.uint8:
        raise ValueError(f"Invalid image dtype: {image.dtype}")
