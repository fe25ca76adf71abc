"""Configuration management for the document capture core.

Loads and validates YAML configuration with sensible defaults for image
enhancement and field extraction.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class EnhancementOptions(BaseModel):
    """Per-call options for the image enhancement pipeline.

    ``max_width`` and ``max_height`` describe a bounding box the output is
    scaled to fit or fill, not an absolute size. The defaults target 8K.
    """

    model_config = ConfigDict(frozen=True)

    max_width: int = Field(default=7680, gt=0)
    max_height: int = Field(default=4320, gt=0)
    quality: float = Field(default=0.95, gt=0.0, le=1.0)
    auto_align: bool = True
    enhance_quality: bool = True


class ExtractionConfig(BaseModel):
    """Configuration for field extraction."""

    document_types_path: str = "configs/document_types.yaml"
    default_document_type: str | None = None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    enhancement: EnhancementOptions = Field(default_factory=EnhancementOptions)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
