"""Raster decoding and encoding for document images.

Decodes compressed image bytes into an RGBA pixel grid (with EXIF
orientation already applied) and re-encodes processed rasters as JPEG.
"""

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageOps

from doccapture.utils.logger import get_logger
from doccapture.utils.numeric import round_half_up

logger = get_logger(__name__)

CHANNELS = 4

# Largest image accepted for decoding. Covers 200 MP phone sensors; larger
# inputs are rejected before their pixels are loaded. Pillow's own bomb
# check is aligned so it only warns above this and fails above twice this.
MAX_DECODE_PIXELS = 250_000_000
Image.MAX_IMAGE_PIXELS = MAX_DECODE_PIXELS


class DecodeError(ValueError):
    """Raised when input bytes cannot be decoded into a raster."""


class EncodeError(RuntimeError):
    """Raised when a raster cannot be encoded into deliverable bytes."""


@dataclass
class RasterImage:
    """A decoded RGBA image owned by a single enhancement call."""

    width: int
    height: int
    pixels: np.ndarray
    source: bytes = b""

    def __post_init__(self) -> None:
        expected = (self.height, self.width, CHANNELS)
        if self.pixels.shape != expected or self.pixels.dtype != np.uint8:
            raise ValueError(
                f"Pixel buffer {self.pixels.shape}/{self.pixels.dtype} "
                f"does not match {expected}/uint8"
            )

    @classmethod
    def from_pixels(cls, pixels: np.ndarray, source: bytes = b"") -> "RasterImage":
        """Wrap an ``(height, width, 4)`` uint8 array."""
        pixels = np.ascontiguousarray(pixels)
        return cls(
            width=pixels.shape[1],
            height=pixels.shape[0],
            pixels=pixels,
            source=source,
        )

    def with_pixels(self, pixels: np.ndarray) -> "RasterImage":
        """Return a new raster with replaced pixels and the same source."""
        return RasterImage.from_pixels(pixels, self.source)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


def decode_image(data: bytes) -> RasterImage:
    """Decode compressed image bytes into an RGBA raster.

    EXIF orientation is applied here, so later stages always see the
    image upright.

    Args:
        data: Encoded image bytes (JPEG, PNG, TIFF, ...).

    Returns:
        Decoded raster.

    Raises:
        DecodeError: If the bytes are not a readable image or the image
            has more than ``MAX_DECODE_PIXELS`` pixels.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.width * img.height > MAX_DECODE_PIXELS:
                raise DecodeError(
                    f"Image of {img.width}x{img.height} exceeds the "
                    f"{MAX_DECODE_PIXELS} pixel decode limit"
                )
            oriented = ImageOps.exif_transpose(img)
            rgba = oriented.convert("RGBA")
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc

    pixels = np.array(rgba, dtype=np.uint8)
    logger.debug("Decoded %dx%d image (%s)", rgba.width, rgba.height, rgba.mode)
    return RasterImage.from_pixels(pixels, source=data)


def encode_jpeg(raster: RasterImage, quality: float) -> bytes:
    """Encode a raster as JPEG, dropping the alpha channel.

    Args:
        raster: Image to encode.
        quality: Encoder quality in ``(0, 1]``.

    Returns:
        JPEG bytes.

    Raises:
        EncodeError: If the encoder rejects the image.
    """
    jpeg_quality = min(100, max(1, round_half_up(quality * 100)))
    try:
        rgb = np.ascontiguousarray(raster.pixels[:, :, :3])
        buffer = io.BytesIO()
        Image.fromarray(rgb).save(buffer, format="JPEG", quality=jpeg_quality)
    except (OSError, ValueError, TypeError) as exc:
        raise EncodeError(f"Failed to encode image: {exc}") from exc

    logger.debug(
        "Encoded %dx%d image at quality %d", raster.width, raster.height, jpeg_quality
    )
    return buffer.getvalue()
