"""Pixel filters for document images.

Provides the global contrast/brightness transform and an edge-only
unsharp mask. Both operate on RGBA ``uint8`` arrays and leave alpha
untouched.
"""

import numpy as np

from doccapture.utils.logger import get_logger
from doccapture.utils.numeric import clamp_to_uint8

logger = get_logger(__name__)

CONTRAST = 1.2
BRIGHTNESS = 5
SHARPEN_AMOUNT = 1.2
SHARPEN_THRESHOLD = 5


def _check_rgba(pixels: np.ndarray) -> None:
    if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
        raise ValueError(
            f"Unsupported pixel format: shape={pixels.shape}, dtype={pixels.dtype}"
        )


def adjust_contrast(
    pixels: np.ndarray,
    contrast: float = CONTRAST,
    brightness: float = BRIGHTNESS,
) -> np.ndarray:
    """Apply a linear contrast and brightness transform to the color channels.

    Each channel becomes ``(value - 128) * contrast + 128 + brightness``,
    clamped to ``[0, 255]``.

    Args:
        pixels: RGBA image as a ``(height, width, 4)`` uint8 array.
        contrast: Contrast multiplier around mid-grey.
        brightness: Offset added after the contrast stretch.

    Returns:
        New RGBA array with adjusted color channels.

    Raises:
        ValueError: If the array is not RGBA uint8.
    """
    _check_rgba(pixels)
    result = pixels.copy()
    color = pixels[:, :, :3].astype(np.float32)
    result[:, :, :3] = clamp_to_uint8((color - 128.0) * contrast + 128.0 + brightness)
    logger.debug("Applied contrast %.2f, brightness %+.1f", contrast, brightness)
    return result


def unsharp_mask(
    pixels: np.ndarray,
    amount: float = SHARPEN_AMOUNT,
    threshold: float = SHARPEN_THRESHOLD,
) -> np.ndarray:
    """Sharpen edges by amplifying the difference from a 3x3 box blur.

    Only interior pixels whose difference from the blurred neighbourhood
    exceeds ``threshold`` are changed; the 1-pixel border and the alpha
    channel are copied verbatim.

    Args:
        pixels: RGBA image as a ``(height, width, 4)`` uint8 array.
        amount: Multiplier applied to the difference.
        threshold: Minimum absolute difference that counts as an edge.

    Returns:
        New RGBA array with sharpened edges.

    Raises:
        ValueError: If the array is not RGBA uint8.
    """
    _check_rgba(pixels)
    result = pixels.copy()
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return result

    color = pixels[:, :, :3].astype(np.int32)
    total = np.zeros((height - 2, width - 2, 3), dtype=np.int32)
    for dy in range(3):
        for dx in range(3):
            total += color[dy : dy + height - 2, dx : dx + width - 2]

    # Nine times the difference from the box blur, kept integral so the
    # threshold comparison is exact.
    original = color[1:-1, 1:-1]
    diff9 = 9 * original - total
    edges = np.abs(diff9) > 9 * threshold
    sharpened = clamp_to_uint8(original + diff9 * (amount / 9.0))

    interior = result[1:-1, 1:-1, :3]
    interior[edges] = sharpened[edges]
    logger.debug(
        "Unsharp mask touched %d of %d channel values", int(edges.sum()), edges.size
    )
    return result
