"""Target-size computation and resampling for document images.

Bounds processing cost by capping the working resolution and computes
scale-to-fit-or-fill dimensions for the delivered image.
"""

import cv2

from doccapture.enhancement.raster import RasterImage
from doccapture.utils.logger import get_logger
from doccapture.utils.numeric import round_half_up

logger = get_logger(__name__)

PROCESSING_CAP = 4096


def cap_dimensions(
    width: int, height: int, cap: int = PROCESSING_CAP
) -> tuple[int, int]:
    """Shrink dimensions so the longer edge does not exceed ``cap``.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.
        cap: Maximum length of either edge.

    Returns:
        ``(width, height)``, unchanged when already within the cap.
    """
    if width <= cap and height <= cap:
        return width, height
    ratio = min(cap / width, cap / height)
    return (
        max(1, round_half_up(width * ratio)),
        max(1, round_half_up(height * ratio)),
    )


def compute_target_size(
    width: int, height: int, max_width: int, max_height: int
) -> tuple[int, int]:
    """Compute scale-to-fit-or-fill dimensions for a bounding box.

    The image is scaled, up or down, until it touches the box along the
    axis that is relatively longer, preserving aspect ratio.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.
        max_width: Bounding box width.
        max_height: Bounding box height.

    Returns:
        Target ``(width, height)``, each at least 1.

    Raises:
        ValueError: If any dimension is not positive.
    """
    if width <= 0 or height <= 0 or max_width <= 0 or max_height <= 0:
        raise ValueError(
            f"Invalid dimensions {width}x{height} for box {max_width}x{max_height}"
        )

    aspect_ratio = width / height
    if aspect_ratio > max_width / max_height:
        return max_width, max(1, round_half_up(max_width / aspect_ratio))
    return max(1, round_half_up(max_height * aspect_ratio)), max_height


def resample(raster: RasterImage, width: int, height: int) -> RasterImage:
    """Resample a raster to the given size.

    Uses area averaging when shrinking and bicubic interpolation when
    enlarging.

    Args:
        raster: Source image.
        width: Target width.
        height: Target height.

    Returns:
        Resized raster (the input itself if the size is unchanged).
    """
    if (width, height) == (raster.width, raster.height):
        return raster

    shrinking = width * height < raster.pixel_count
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC
    pixels = cv2.resize(raster.pixels, (width, height), interpolation=interpolation)
    logger.debug(
        "Resampled %dx%d -> %dx%d (%s)",
        raster.width,
        raster.height,
        width,
        height,
        "area" if shrinking else "cubic",
    )
    return raster.with_pixels(pixels)


def cap_to_processing_size(
    raster: RasterImage, cap: int = PROCESSING_CAP
) -> RasterImage:
    """Downsize a raster so neither edge exceeds the processing cap."""
    width, height = cap_dimensions(raster.width, raster.height, cap)
    return resample(raster, width, height)
