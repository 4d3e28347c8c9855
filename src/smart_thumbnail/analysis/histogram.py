"""
Color Histograms
================

Per-frame normalized RGB histograms and the L1 distance between them.

Histogram Layout:
    [R_0 .. R_{bins-1}, G_0 .. G_{bins-1}, B_0 .. B_{bins-1}]
    Each value is (pixel count in bucket) / (total pixels), so every
    channel block sums to 1.0 and images of different sizes compare.

Formulas:
    bucket = clip(value * bins // 256, 0, bins - 1)
    distance(h1, h2) = sum(|h1_i - h2_i|)

Properties of distance:
    - symmetric
    - zero iff identical
    - satisfies the triangle inequality
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from smart_thumbnail.errors import DimensionMismatchError, FatalConfigError


logger = logging.getLogger(__name__)


DEFAULT_BINS = 8


def compute_histogram(image: np.ndarray, bins: int = DEFAULT_BINS) -> Tuple[float, ...]:
    """
    Compute the normalized per-channel color histogram of an image.

    Args:
        image: RGB image (H, W, 3), dtype=uint8
        bins: Number of equal-width buckets per channel

    Returns:
        Tuple of 3 * bins floats in [0, 1]

    Raises:
        FatalConfigError: If bins < 1
    """
    if bins < 1:
        raise FatalConfigError(f"Histogram bins must be >= 1, got {bins}")

    pixels = image.reshape(-1, image.shape[-1])
    total = pixels.shape[0]
    if total == 0:
        return tuple(0.0 for _ in range(3 * bins))

    # Bin channel values from [0, 255] to [0, bins)
    bucket_indices = (pixels[:, :3].astype(np.int64) * bins) // 256
    bucket_indices = np.clip(bucket_indices, 0, bins - 1)

    histogram = []
    for channel in range(3):
        counts = np.bincount(bucket_indices[:, channel], minlength=bins)
        histogram.extend((counts / total).tolist())

    return tuple(float(v) for v in histogram)


def histogram_distance(h1: Sequence[float], h2: Sequence[float]) -> float:
    """
    L1 distance between two histograms.

    Args:
        h1: First histogram
        h2: Second histogram

    Returns:
        Sum of absolute differences (0 = identical)

    Raises:
        DimensionMismatchError: If the histograms differ in length
    """
    if len(h1) != len(h2):
        raise DimensionMismatchError(
            f"Histogram lengths differ: {len(h1)} vs {len(h2)}"
        )
    a = np.asarray(h1, dtype=np.float64)
    b = np.asarray(h2, dtype=np.float64)
    return float(np.sum(np.abs(a - b)))
