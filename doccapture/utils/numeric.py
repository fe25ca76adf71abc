"""Numeric helpers shared by the resize and filter stages."""

import math

import numpy as np


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's built-in ``round`` uses banker's rounding, which would make
    ``2.5`` and ``3.5`` land on the same even neighbour.

    Args:
        value: Number to round.

    Returns:
        Rounded integer.
    """
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def clamp_to_uint8(values: np.ndarray) -> np.ndarray:
    """Round and clamp a wide intermediate array back to 8-bit channels.

    Args:
        values: Float or wide-integer channel values.

    Returns:
        ``uint8`` array with values in ``[0, 255]``.
    """
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)
