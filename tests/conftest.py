"""Shared test fixtures for the document capture test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def sample_rgba() -> np.ndarray:
    """Create an 80x60 RGBA image: a light card on a grey background."""
    image = np.full((60, 80, 4), 100, dtype=np.uint8)
    image[20:40, 20:60, :3] = 200
    image[:, :, 3] = 255
    return image


@pytest.fixture
def sample_png_bytes(sample_rgba: np.ndarray) -> bytes:
    """Encode the sample image as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(sample_rgba).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
