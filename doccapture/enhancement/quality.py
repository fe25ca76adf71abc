"""Pre-OCR image quality assessment.

Scores blur (Laplacian variance), brightness and resolution so the
capture workflow can ask the user to retake an unusable photo.
"""

from dataclasses import dataclass, field

import cv2
import numpy as np

from doccapture.enhancement.raster import DecodeError, RasterImage, decode_image
from doccapture.enhancement.resize import cap_dimensions, resample
from doccapture.utils.logger import get_logger

logger = get_logger(__name__)

BLUR_ANALYSIS_SIZE = 1024

# Luma weights for the grey image the blur score is computed on.
GRAY_WEIGHTS = np.array([0.299, 0.587, 0.114])


@dataclass
class CheckResult:
    """Outcome of a single quality check."""

    quality: str
    score: int
    reason: str | None = None


@dataclass
class QualityAssessment:
    """Combined quality verdict for an image."""

    score: int
    quality: str
    issues: list[str] = field(default_factory=list)


def calculate_sharpness(pixels: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    The score is the variance of the absolute 4-neighbour Laplacian of a
    float luma image, taken over interior pixels only.

    Args:
        pixels: RGBA image array.

    Returns:
        Sharpness score (higher means sharper). Images smaller than 3x3
        score 0.
    """
    gray = pixels[:, :, :3].astype(np.float64) @ GRAY_WEIGHTS
    response = np.abs(cv2.Laplacian(gray, cv2.CV_64F)[1:-1, 1:-1])
    if response.size == 0:
        return 0.0
    return float(response.var())


def check_blur(raster: RasterImage) -> CheckResult:
    """Classify blur on a copy downsized to at most 1024 px per edge."""
    width, height = cap_dimensions(raster.width, raster.height, BLUR_ANALYSIS_SIZE)
    variance = calculate_sharpness(resample(raster, width, height).pixels)
    logger.debug("Laplacian variance: %.1f", variance)

    if variance < 100:
        return CheckResult("poor", 30, "Image is too blurry")
    if variance < 300:
        return CheckResult("fair", 60, "Slight blur detected")
    return CheckResult("good", 95, "Clear image")


def check_brightness(raster: RasterImage) -> CheckResult:
    """Classify exposure from the mean color intensity."""
    mean = float(raster.pixels[:, :, :3].mean())
    if mean < 50:
        return CheckResult("poor", 40, "Too dark")
    if mean > 220:
        return CheckResult("poor", 40, "Too bright/overexposed")
    return CheckResult("good", 90)


def check_resolution(raster: RasterImage) -> CheckResult:
    """Classify the pixel count."""
    pixels = raster.pixel_count
    if pixels < 300_000:
        return CheckResult("poor", 30, "Resolution too low")
    if pixels < 1_000_000:
        return CheckResult("fair", 70, "Acceptable resolution")
    return CheckResult("good", 95)


def assess_raster(raster: RasterImage) -> QualityAssessment:
    """Combine blur, brightness and resolution checks into one verdict.

    Args:
        raster: Decoded image.

    Returns:
        Averaged score, overall quality label and a list of issues.
    """
    checks = {
        "Blur": check_blur(raster),
        "Brightness": check_brightness(raster),
        "Resolution": check_resolution(raster),
    }
    issues = [
        f"{name}: {check.reason or 'Issue detected'}"
        for name, check in checks.items()
        if check.quality != "good"
    ]
    score = round(sum(c.score for c in checks.values()) / len(checks))

    if score >= 80:
        quality = "good"
    elif score >= 50:
        quality = "fair"
    else:
        quality = "poor"

    logger.info("Quality assessment: %s (%d), %d issues", quality, score, len(issues))
    return QualityAssessment(score=score, quality=quality, issues=issues)


def assess_image_quality(raw: bytes) -> QualityAssessment:
    """Assess encoded image bytes. Undecodable input scores 0."""
    try:
        raster = decode_image(raw)
    except DecodeError as exc:
        logger.warning("Quality assessment could not decode image: %s", exc)
        return QualityAssessment(
            score=0, quality="poor", issues=["Failed to load image"]
        )
    return assess_raster(raster)
