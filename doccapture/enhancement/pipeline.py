"""Document image enhancement pipeline.

Runs decode, auto-align (contrast/brightness), quality enhancement
(resize plus unsharp mask) and JPEG encode. Every stage reports an
explicit ``StageResult`` and falls back to the best earlier raster on
failure, so the pipeline as a whole never raises: in the worst case the
original bytes are returned unchanged.
"""

from dataclasses import dataclass, field
from enum import Enum

from doccapture.enhancement.filters import adjust_contrast, unsharp_mask
from doccapture.enhancement.raster import (
    EncodeError,
    RasterImage,
    decode_image,
    encode_jpeg,
)
from doccapture.enhancement.resize import (
    cap_to_processing_size,
    compute_target_size,
    resample,
)
from doccapture.utils.config import EnhancementOptions
from doccapture.utils.logger import get_logger

logger = get_logger(__name__)

SHARPEN_PIXEL_LIMIT = 10_000_000


class StageStatus(Enum):
    """Outcome of a single pipeline stage."""

    OK = "ok"
    DEGRADED = "degraded"
    FATAL = "fatal"


@dataclass(frozen=True)
class StageResult:
    """Result of a pipeline stage: ``Ok(raster)``, ``Degraded`` or ``Fatal``."""

    status: StageStatus
    raster: RasterImage | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, raster: RasterImage) -> "StageResult":
        return cls(StageStatus.OK, raster)

    @classmethod
    def degraded(cls, raster: RasterImage, reason: str) -> "StageResult":
        return cls(StageStatus.DEGRADED, raster, reason)

    @classmethod
    def fatal(cls, reason: str) -> "StageResult":
        return cls(StageStatus.FATAL, None, reason)


@dataclass
class EnhancementResult:
    """Delivered bytes plus a record of how each stage went."""

    data: bytes
    width: int | None = None
    height: int | None = None
    stages: dict[str, StageResult] = field(default_factory=dict)
    fallback_to_original: bool = False


class ImageEnhancer:
    """Enhances captured document images for storage and OCR.

    Args:
        options: Enhancement options; defaults target an 8K bounding box.
    """

    def __init__(self, options: EnhancementOptions | None = None) -> None:
        self.options = options or EnhancementOptions()

    def process(self, raw: bytes) -> EnhancementResult:
        """Run the full pipeline on encoded image bytes.

        Args:
            raw: Encoded input image.

        Returns:
            Enhancement result. ``data`` is the original input whenever
            decoding or encoding failed.
        """
        stages: dict[str, StageResult] = {}

        decoded = self.decode(raw)
        stages["decode"] = decoded
        if decoded.raster is None:
            return EnhancementResult(data=raw, stages=stages, fallback_to_original=True)
        current = decoded.raster

        if self.options.auto_align:
            aligned = self.auto_align(current)
            stages["auto_align"] = aligned
            current = aligned.raster or current

        if self.options.enhance_quality:
            sized = self.enhance_quality(current)
            stages["enhance_quality"] = sized
        else:
            sized = self.resize(current)
            stages["resize"] = sized
        current = sized.raster or current

        try:
            data = self.encode(current)
        except EncodeError as exc:
            logger.error("Encoding failed, returning original image: %s", exc)
            stages["encode"] = StageResult.fatal(str(exc))
            return EnhancementResult(data=raw, stages=stages, fallback_to_original=True)

        stages["encode"] = StageResult.ok(current)
        logger.info(
            "Enhanced %dx%d -> %dx%d (%d -> %d bytes)",
            decoded.raster.width,
            decoded.raster.height,
            current.width,
            current.height,
            len(raw),
            len(data),
        )
        return EnhancementResult(
            data=data, width=current.width, height=current.height, stages=stages
        )

    def decode(self, raw: bytes) -> StageResult:
        """Decode input bytes; failure is fatal for the whole pipeline."""
        try:
            return StageResult.ok(decode_image(raw))
        except Exception as exc:
            logger.error("Decode failed, returning original bytes: %s", exc)
            return StageResult.fatal(str(exc))

    def auto_align(self, raster: RasterImage) -> StageResult:
        """Cap the working size and apply the contrast/brightness transform.

        Despite the name, no geometric correction happens here.
        """
        try:
            capped = cap_to_processing_size(raster)
            return StageResult.ok(capped.with_pixels(adjust_contrast(capped.pixels)))
        except Exception as exc:
            logger.warning("Auto-align failed, using decoded image: %s", exc)
            return StageResult.degraded(raster, f"auto-align failed: {exc}")

    def enhance_quality(self, raster: RasterImage) -> StageResult:
        """Resize to the target box and sharpen when the result is small enough.

        Falls back to a plain resize without sharpening on failure.
        """
        try:
            width, height = self._target_size(raster)
            resized = resample(raster, width, height)
            if width * height < SHARPEN_PIXEL_LIMIT:
                resized = resized.with_pixels(unsharp_mask(resized.pixels))
            else:
                logger.info(
                    "Skipping sharpen for %dx%d (over %d px)",
                    width,
                    height,
                    SHARPEN_PIXEL_LIMIT,
                )
            return StageResult.ok(resized)
        except Exception as exc:
            logger.warning("Quality enhancement failed, trying resize: %s", exc)
            fallback = self.resize(raster)
            return StageResult.degraded(
                fallback.raster or raster, f"quality enhancement failed: {exc}"
            )

    def resize(self, raster: RasterImage) -> StageResult:
        """Resize to the target box without sharpening."""
        try:
            return StageResult.ok(resample(raster, *self._target_size(raster)))
        except Exception as exc:
            logger.warning("Resize failed, keeping current size: %s", exc)
            return StageResult.degraded(raster, f"resize failed: {exc}")

    def encode(self, raster: RasterImage) -> bytes:
        """Encode the final raster.

        Raises:
            EncodeError: If encoding fails.
        """
        return encode_jpeg(raster, self.options.quality)

    def _target_size(self, raster: RasterImage) -> tuple[int, int]:
        return compute_target_size(
            raster.width,
            raster.height,
            self.options.max_width,
            self.options.max_height,
        )


def enhance(raw: bytes, options: EnhancementOptions | None = None) -> bytes:
    """Enhance an encoded document image.

    Never raises: any failure degrades to a weaker pipeline or, at worst,
    returns ``raw`` unchanged.

    Args:
        raw: Encoded input image.
        options: Enhancement options.

    Returns:
        Enhanced JPEG bytes, or the input bytes if processing failed.
    """
    try:
        return ImageEnhancer(options).process(raw).data
    except Exception:
        logger.exception("Unexpected enhancement failure, returning original")
        return raw
